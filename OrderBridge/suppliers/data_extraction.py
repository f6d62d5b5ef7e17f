"""
Common Data Extraction Utilities for Suppliers

Standardized helpers for reading untrusted supplier payloads:
- Safe nested access and type conversion
- Probing an ordered list of envelope paths for the priced-line array
- Unit price extraction across the field names suppliers use
- Loose field lookup for product records
"""

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

# Field names suppliers use for a unit price, most specific first
PRICE_FIELDS: Tuple[str, ...] = (
    "unitPrice",
    "price",
    "unit_price",
    "unitPriceValue",
    "pricePerUnit",
    "listPrice",
    "salePrice",
)

PathSpec = Union[str, Sequence[Union[str, int]]]


class DataExtractor:
    """
    Data extraction utilities for supplier payloads.

    Never raises on malformed input: missing keys, wrong types and nulls all
    fall back to the supplied default.
    """

    def __init__(self, supplier_name: str):
        self.supplier_name = supplier_name

    # ========== Safe Data Access ==========

    def safe_get(self, data: Any, keys: PathSpec, default: Any = None) -> Any:
        """
        Safely get nested dictionary values with null protection.

        Example:
            price = extractor.safe_get(data, ["data", "lines", 0, "unitPrice"], 0.0)
            price = extractor.safe_get(data, "data.lines")
        """
        if isinstance(keys, str):
            keys = keys.split(".")

        current = data
        for key in keys:
            if current is None:
                return default

            if isinstance(current, dict):
                current = current.get(key)
            elif isinstance(current, list) and isinstance(key, int) and 0 <= key < len(current):
                current = current[key]
            else:
                return default

        return current if current is not None else default

    def safe_cast(self, value: Any, target_type: type, default: Any = None) -> Any:
        """Safely cast value to target type with fallback."""
        if value is None:
            return default

        try:
            if target_type == float:
                if isinstance(value, str):
                    value = value.replace("$", "").replace(",", "").strip()
                result = float(value)
                return default if math.isnan(result) or math.isinf(result) else result
            elif target_type == int:
                if isinstance(value, float):
                    return int(value)
                return int(value)
            else:
                return target_type(value)

        except (ValueError, TypeError, InvalidOperation) as e:
            logger.debug(f"Failed to cast {value!r} to {target_type.__name__} for {self.supplier_name}: {e}")
            return default

    # ========== Envelope Probing ==========

    def first_array(self, data: Any, paths: Sequence[PathSpec]) -> Tuple[Optional[str], List[Any]]:
        """
        Probe ``paths`` in order and return the first value that is a list.

        Returns:
            (path that matched, the list) or (None, []) when nothing matched
        """
        for path in paths:
            value = self.safe_get(data, path)
            if isinstance(value, list):
                label = path if isinstance(path, str) else ".".join(str(p) for p in path)
                return label, value
        return None, []

    def first_mapping(self, data: Any, paths: Sequence[PathSpec]) -> Tuple[Optional[str], Dict[str, Any]]:
        """Like first_array, for dict-shaped collections (e.g. sku -> prices)"""
        for path in paths:
            value = self.safe_get(data, path)
            if isinstance(value, dict) and value:
                label = path if isinstance(path, str) else ".".join(str(p) for p in path)
                return label, value
        return None, {}

    # ========== Field Extraction ==========

    def extract_unit_price(self, record: Dict[str, Any], fields: Sequence[str] = PRICE_FIELDS) -> Optional[float]:
        """First positive numeric value among the candidate price fields"""
        if not isinstance(record, dict):
            return None
        for name in fields:
            value = record.get(name)
            if isinstance(value, dict):
                value = value.get("value", value.get("amount"))
            if isinstance(value, bool):
                continue
            price = self.safe_cast(value, float)
            if price is not None and price > 0:
                return price
        return None

    def first_present(self, record: Dict[str, Any], fields: Sequence[str], default: Any = None) -> Any:
        """Value of the first field that is present and non-empty"""
        if not isinstance(record, dict):
            return default
        for name in fields:
            value = record.get(name)
            if value is not None and value != "":
                return value
        return default

    def string_list(self, value: Any) -> List[str]:
        """Coerce a scalar-or-list field into a list of non-empty strings"""
        if value is None:
            return []
        if not isinstance(value, (list, tuple, set)):
            value = [value]
        result = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("uom") or item.get("code") or item.get("value")
            if item is not None and str(item).strip():
                result.append(str(item).strip())
        return result

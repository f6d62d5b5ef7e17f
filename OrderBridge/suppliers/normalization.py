"""
Line item normalization shared by every supplier adapter.

Quantities become positive numbers (default 1), units are uppercased and
trimmed (default "EA"), and lines whose SKU is empty after trimming are dropped.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

DEFAULT_UOM = "EA"
DEFAULT_QUANTITY = 1

SKU_FIELDS = ("itemNumber", "sku", "itemCode")
QUANTITY_FIELDS = ("quantity", "qty")
UOM_FIELDS = ("uom", "unitOfMeasure")


@dataclass
class NormalizedLine:
    line_id: Optional[str]
    sku: str
    quantity: float
    uom: str
    product_id: Optional[str] = None
    title: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


def normalize_sku(value: Any) -> str:
    """Matching key for a SKU: trimmed and uppercased"""
    if value is None:
        return ""
    return str(value).strip().upper()


def normalize_quantity(value: Any) -> float:
    """Positive numeric quantity; anything else becomes 1"""
    if isinstance(value, bool):
        return DEFAULT_QUANTITY
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        return DEFAULT_QUANTITY
    if math.isnan(quantity) or math.isinf(quantity) or quantity <= 0:
        return DEFAULT_QUANTITY
    return int(quantity) if quantity.is_integer() else quantity


def normalize_uom(value: Any, default: str = DEFAULT_UOM) -> str:
    if value is None:
        return default
    uom = str(value).strip().upper()
    return uom or default


def _first(item: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None and value != "":
            return value
    return None


def normalize_line_item(item: Dict[str, Any]) -> Optional[NormalizedLine]:
    """Normalize one raw line item; None when it carries no usable SKU"""
    if not isinstance(item, dict):
        return None

    sku = str(_first(item, SKU_FIELDS) or "").strip()
    if not sku:
        return None

    line_id = item.get("id")
    product_id = item.get("productId")
    return NormalizedLine(
        line_id=str(line_id) if line_id is not None else None,
        sku=sku,
        quantity=normalize_quantity(_first(item, QUANTITY_FIELDS)),
        uom=normalize_uom(_first(item, UOM_FIELDS)),
        product_id=str(product_id) if product_id is not None else None,
        title=item.get("title") or item.get("productName") or item.get("name"),
        raw=item,
    )


def normalize_line_items(items: Iterable[Dict[str, Any]]) -> List[NormalizedLine]:
    lines = []
    for item in items or []:
        line = normalize_line_item(item)
        if line is not None:
            lines.append(line)
    return lines

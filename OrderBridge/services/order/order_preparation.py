"""
Order preparation helpers shared by the draft and submission routes.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from OrderBridge.models.order_models import LineItem
from OrderBridge.suppliers.normalization import DEFAULT_UOM, normalize_uom

logger = logging.getLogger(__name__)

PRODUCT_SKU_FIELDS = ("sku", "itemNumber", "itemnumber", "itemCode", "itemcode", "productId", "product_id")
PRODUCT_UOM_FIELDS = ("uom", "unitOfMeasure", "unit_of_measure", "defaultUom", "defaultUOM")
PRODUCT_UOMS_FIELDS = ("uoms", "availableUoms", "availableUOMs", "unitOfMeasures", "unitsOfMeasure")
PRODUCT_TITLE_FIELDS = ("title", "description", "productName", "productname", "name")

# Title hints for products listed in EA that are really sold by another unit
TITLE_UNIT_HINTS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"/\s*SQ\b|\bPER\s+SQUARE\b"), "SQ"),
    (re.compile(r"\bBUNDLE\b|/\s*BNDL\b"), "BNDL"),
    (re.compile(r"\bROLL\b|/\s*RL\b"), "RL"),
    (re.compile(r"/\s*LF\b"), "LF"),
    (re.compile(r"\bBOX\b|/\s*BX\b"), "BX"),
]


def prepare_order(
    full_order: Optional[Dict[str, Any]],
    parsed_order: Optional[Dict[str, Any]] = None,
    environment: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Merge the UI's order with a previously parsed copy; keys from ``full_order`` win.

    The result always has ``supplier``, ``fullOrderItems`` and ``delivery``.
    """
    full_order = full_order if isinstance(full_order, dict) else {}
    parsed_order = parsed_order if isinstance(parsed_order, dict) else {}

    order = {**parsed_order, **full_order}
    if not isinstance(order.get("supplier"), str) or not order.get("supplier"):
        order["supplier"] = str(order.get("supplier") or "")
    if not isinstance(order.get("fullOrderItems"), list):
        order["fullOrderItems"] = []

    delivery: Dict[str, Any] = {}
    for source in (parsed_order.get("delivery"), full_order.get("delivery")):
        if isinstance(source, dict):
            delivery.update(source)
    order["delivery"] = delivery

    if environment:
        order["environment"] = environment
    return order


def _number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number == number else 0.0


def order_total(order: Dict[str, Any]) -> float:
    """``orderTotal`` when the order carries one, else the sum of qty * unitPrice"""
    if order.get("orderTotal") not in (None, ""):
        return _number(order["orderTotal"])
    total = 0.0
    for item in order.get("fullOrderItems") or []:
        if isinstance(item, dict):
            quantity = item.get("qty", item.get("quantity"))
            total += _number(quantity) * _number(item.get("unitPrice"))
    return round(total, 2)


def infer_uom_from_title(title: Optional[str]) -> Optional[str]:
    if not title:
        return None
    text = str(title).upper()
    for pattern, uom in TITLE_UNIT_HINTS:
        if pattern.search(text):
            return uom
    return None


def _first(product: Dict[str, Any], fields) -> Any:
    for name in fields:
        value = product.get(name)
        if value not in (None, "", []):
            return value
    return None


def line_item_from_product(product: Dict[str, Any], quantity: Any = 1, line_id: Optional[str] = None) -> LineItem:
    """Build an unpriced line item from a search result or a manual entry"""
    sku = _first(product, PRODUCT_SKU_FIELDS) or ""
    title = _first(product, PRODUCT_TITLE_FIELDS)
    uom = normalize_uom(_first(product, PRODUCT_UOM_FIELDS))

    units = _first(product, PRODUCT_UOMS_FIELDS) or []
    if isinstance(units, str):
        units = [u for u in re.split(r"[,\s]+", units) if u]

    if uom == DEFAULT_UOM:
        inferred = infer_uom_from_title(title)
        if inferred:
            logger.debug(f"Inferred UOM {inferred} for {sku} from title '{title}'")
            uom = inferred

    line = LineItem(
        id=line_id,
        sku=sku,
        title=title,
        qty=quantity,
        uom=uom,
        availableUoms=units,
        productId=product.get("productId") or product.get("product_id"),
    )
    line.add_unit(uom)
    return line

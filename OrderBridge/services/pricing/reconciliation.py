"""
Pricing reconciliation.

Matches canonical supplier price records back onto the requested line items.
Individual lines that cannot be priced are annotated, never raised: partial
pricing is a normal outcome.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from OrderBridge.exceptions import LineItemError
from OrderBridge.models.order_models import LineItem
from OrderBridge.suppliers.base import PriceRecord
from OrderBridge.suppliers.beacon import base_sku
from OrderBridge.suppliers.normalization import normalize_sku, normalize_uom

logger = logging.getLogger(__name__)


@dataclass
class UomOverride:
    sku: str
    requested: str
    adopted: str


@dataclass
class ReconciliationResult:
    lines: List[LineItem]
    errors: List[LineItemError] = field(default_factory=list)
    uom_overrides: List[UomOverride] = field(default_factory=list)

    @property
    def priced_count(self) -> int:
        return sum(1 for line in self.lines if line.is_priced)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def unmatched_skus(self) -> List[str]:
        return [e.sku for e in self.errors if e.reason == LineItemError.SKU_NOT_FOUND]


class PriceIndex:
    """Normalized-SKU lookup over a supplier's price records"""

    def __init__(self, records: Iterable[PriceRecord]):
        self._by_key: Dict[str, List[PriceRecord]] = {}
        self._by_base: Dict[str, List[PriceRecord]] = {}

        for record in records:
            keys = [normalize_sku(record.sku)] + [normalize_sku(k) for k in record.alternate_keys]
            for key in dict.fromkeys(k for k in keys if k):
                self._by_key.setdefault(key, []).append(record)

            base = normalize_sku(base_sku(record.sku))
            if base:
                self._by_base.setdefault(base, []).append(record)

    def candidates(self, line: LineItem) -> List[PriceRecord]:
        """
        Records for a line: by its SKU, then its product id, then the SKU
        with any variant suffix removed.
        """
        sku = normalize_sku(line.sku)
        if not sku:
            return []

        for key in (sku, normalize_sku(line.product_id or "")):
            if key and key in self._by_key:
                return self._by_key[key]

        base = normalize_sku(base_sku(line.sku))
        return self._by_key.get(base) or self._by_base.get(base) or []


def choose_record(line: LineItem, candidates: List[PriceRecord]) -> Optional[PriceRecord]:
    """Requested UOM first, then the same line id, then the first valid price"""
    priced = [record for record in candidates if record.has_valid_price]
    if not priced:
        return None

    for record in priced:
        if record.uom and normalize_uom(record.uom) == line.unit_of_measure:
            return record

    if line.id is not None:
        for record in priced:
            if record.line_id is not None and str(record.line_id) == line.id:
                return record

    return priced[0]


def reconcile(lines: Iterable[LineItem], records: Iterable[PriceRecord], supplier: str = "") -> ReconciliationResult:
    """
    Price each requested line from the supplier's records.

    Returns copies of the lines; the inputs are left untouched.
    """
    index = PriceIndex(records)
    result = ReconciliationResult(lines=[])

    for original in lines:
        line = original.model_copy(deep=True)
        result.lines.append(line)

        candidates = index.candidates(line)
        if not candidates:
            _fail(line, LineItemError.SKU_NOT_FOUND, result)
            continue

        record = choose_record(line, candidates)
        if record is None:
            supplier_errors = [c.error for c in candidates if c.error]
            _fail(line, supplier_errors[0] if supplier_errors else LineItemError.PRICE_UNAVAILABLE, result)
            continue

        requested_uom = line.unit_of_measure
        adopted_uom = normalize_uom(record.uom) if record.uom else requested_uom
        if adopted_uom != requested_uom:
            logger.warning(
                f"UOM override: {supplier} priced {line.sku} in {adopted_uom}, requested {requested_uom}"
            )
            result.uom_overrides.append(UomOverride(sku=line.sku, requested=requested_uom, adopted=adopted_uom))

        if record.quantity is not None and record.quantity != line.quantity:
            logger.warning(
                f"Quantity mismatch for {line.sku}: requested {line.quantity}, {supplier} priced {record.quantity}"
            )

        if record.available_uoms:
            line.available_units = []
            for uom in record.available_uoms:
                line.add_unit(uom)
        line.mark_priced(record.unit_price, adopted_uom)
        line.add_unit(adopted_uom)

    if result.unmatched_skus:
        logger.warning(f"{supplier} returned no price for SKUs: {', '.join(result.unmatched_skus)}")
    logger.info(
        f"Reconciled {len(result.lines)} lines for {supplier}: "
        f"{result.priced_count} priced, {result.error_count} errors"
    )
    return result


def fail_all(lines: Iterable[LineItem], cause: str) -> ReconciliationResult:
    """Mark every line with the same failure, used when the supplier could not be reached"""
    result = ReconciliationResult(lines=[])
    for original in lines:
        line = original.model_copy(deep=True)
        result.lines.append(line)
        _fail(line, cause, result)
    return result


def _fail(line: LineItem, reason: str, result: ReconciliationResult):
    line.mark_error(reason)
    result.errors.append(LineItemError(line.sku, reason))

from .pricing_service import PricedOrder, PricingService, session_from_payload
from .reconciliation import PriceIndex, ReconciliationResult, UomOverride, choose_record, fail_all, reconcile

__all__ = [
    "PricedOrder",
    "PricingService",
    "session_from_payload",
    "PriceIndex",
    "ReconciliationResult",
    "UomOverride",
    "choose_record",
    "fail_all",
    "reconcile",
]

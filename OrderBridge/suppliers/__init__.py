"""
Supplier Adapters

One adapter per supplier behind a common capability interface
(authenticate, get_pricing, submit_order, search_products).

Usage:
    from OrderBridge.suppliers import SupplierRegistry

    supplier = SupplierRegistry.get_supplier("ABC")
    result = await supplier.get_pricing("sandbox", {"fullOrder": order})
"""

from .base import (
    AuthKind,
    AuthSession,
    BaseSupplier,
    OrderConfirmation,
    PriceRecord,
    PricingResult,
    SubmissionStatus,
    SupplierKey,
)
from .registry import SupplierRegistry, register_supplier

# Import adapter implementations to register them
from . import abc_supply
from . import srs
from . import beacon

__all__ = [
    "AuthKind",
    "AuthSession",
    "BaseSupplier",
    "OrderConfirmation",
    "PriceRecord",
    "PricingResult",
    "SubmissionStatus",
    "SupplierKey",
    "SupplierRegistry",
    "register_supplier",
]

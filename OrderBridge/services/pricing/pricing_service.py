"""
Pricing Service

Whole-order pricing: authenticate, request prices, reconcile the records
onto the order's lines. Supplier-level failures mark every line with the
cause instead of raising.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from OrderBridge.exceptions import (
    InvalidRequestError,
    SupplierApiError,
    SupplierAuthenticationError,
    SupplierConnectionError,
    log_exception,
)
from OrderBridge.models.order_models import LineItem
from OrderBridge.services.base_service import BaseService
from OrderBridge.suppliers import AuthKind, AuthSession, BaseSupplier, SupplierKey, SupplierRegistry
from .reconciliation import fail_all, reconcile

TOKEN_FIELDS = ("token", "accessToken", "access_token")
COOKIE_FIELDS = ("cookies", "cookie", "sessionCookie")


@dataclass
class PricedOrder:
    supplier: str
    environment: Optional[str]
    success: bool
    items: List[LineItem] = field(default_factory=list)
    error: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None
    uom_overrides: int = 0

    @property
    def total(self) -> float:
        return round(sum(item.line_price or 0 for item in self.items if item.is_priced), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "supplier": self.supplier,
            "environment": self.environment,
            "fullOrderItems": [item.to_payload() for item in self.items],
            "total": self.total,
            "pricedCount": sum(1 for item in self.items if item.is_priced),
            "uomOverrides": self.uom_overrides,
            "error": self.error,
        }


def session_from_payload(supplier: SupplierKey, payload: Dict[str, Any], environment: Optional[str] = None) -> AuthSession:
    """AuthSession from a token or cookie string the caller obtained through login"""
    fields = COOKIE_FIELDS if supplier == SupplierKey.BEACON else TOKEN_FIELDS
    value = next((payload.get(name) for name in fields if payload.get(name)), None)
    if not value:
        raise InvalidRequestError(
            f"{supplier.value}: missing session ({' or '.join(fields)}); log in first", parameter=fields[0]
        )
    kind = AuthKind.COOKIE if supplier == SupplierKey.BEACON else AuthKind.BEARER
    return AuthSession(supplier=supplier.value, kind=kind, value=str(value), environment=environment)


class PricingService(BaseService):
    """Prices orders against one supplier"""

    def __init__(self, supplier_factory: Optional[Callable[[SupplierKey], BaseSupplier]] = None):
        super().__init__()
        self.supplier_factory = supplier_factory or SupplierRegistry.get_supplier

    def _supplier(self, supplier: Union[SupplierKey, str]) -> BaseSupplier:
        key = SupplierKey.parse(supplier)
        if key is None:
            raise InvalidRequestError(f"Unsupported supplier: {supplier}", parameter="supplier", value=supplier)
        return self.supplier_factory(key)

    @staticmethod
    def _order_lines(order: Union[Dict[str, Any], List[Dict[str, Any]]]) -> List[LineItem]:
        items = order.get("fullOrderItems") if isinstance(order, dict) else order
        if not isinstance(items, list):
            raise InvalidRequestError("Missing fullOrderItems", parameter="fullOrderItems")
        return [LineItem.from_payload(item) for item in items if isinstance(item, dict)]

    async def price_order(
        self,
        supplier: Union[SupplierKey, str],
        order: Union[Dict[str, Any], List[Dict[str, Any]]],
        environment: Optional[str] = None,
        session: Optional[AuthSession] = None,
    ) -> PricedOrder:
        """
        Price every line of ``order`` (an order dict or a bare list of line items).

        Raises:
            InvalidRequestError: unknown supplier, or no line carries a SKU
            SupplierConfigurationError: credentials cannot be resolved
        """
        adapter = self._supplier(supplier)
        lines = self._order_lines(order)
        full_order = dict(order) if isinstance(order, dict) else {}
        full_order["fullOrderItems"] = [line.to_payload() for line in lines]

        try:
            result = await adapter.get_pricing(environment, {"fullOrder": full_order}, session=session)
        except (SupplierAuthenticationError, SupplierApiError, SupplierConnectionError) as e:
            log_exception(e, context="PricingService.price_order", extra_info={"supplier": adapter.name})
            failed = fail_all(lines, e.message)
            return PricedOrder(
                supplier=adapter.name,
                environment=environment,
                success=False,
                items=failed.lines,
                error=e.message,
            )

        reconciled = reconcile(lines, result.records, adapter.name)
        return PricedOrder(
            supplier=adapter.name,
            environment=result.environment,
            success=True,
            items=reconciled.lines,
            raw=result.raw,
            uom_overrides=len(reconciled.uom_overrides),
        )

    async def supplier_pricing(
        self, supplier: Union[SupplierKey, str], payload: Dict[str, Any], environment: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Per-supplier pricing with a session from an earlier login.

        Returns ``{success, data, environment}`` with the raw supplier payload;
        supplier failures propagate as typed exceptions.
        """
        adapter = self._supplier(supplier)
        session = session_from_payload(adapter.key, payload or {}, environment)
        result = await adapter.get_pricing(environment, payload, session=session)
        return result.to_dict()

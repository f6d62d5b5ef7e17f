"""
Supplier Gateway

Single action surface for the supplier adapters. Dispatches
(supplier, environment, action, payload) to the right adapter and always
answers with a status code and a {success, data, error} body, whatever the
adapter raised. The gateway never retries.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from OrderBridge.exceptions import (
    InvalidRequestError,
    OrderBridgeException,
    get_http_status_code,
    log_exception,
)
from OrderBridge.suppliers import BaseSupplier, SupplierKey, SupplierRegistry

logger = logging.getLogger(__name__)

GATEWAY_ACTIONS = ("login", "getPricing", "order")

# Status embedded in messages of exceptions that carry no structured code, e.g. "... (503): upstream down"
_EMBEDDED_STATUS = re.compile(r"\((\d+)\)")


@dataclass
class GatewayResult:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))

    def to_dict(self) -> Dict[str, Any]:
        return {"statusCode": self.status_code, "body": self.body}

    @classmethod
    def ok(cls, data: Any) -> "GatewayResult":
        return cls(200, {"success": True, "data": data})

    @classmethod
    def failure(cls, status_code: int, error: str, data: Any = None) -> "GatewayResult":
        body = {"success": False, "error": error}
        if data is not None:
            body["data"] = data
        return cls(status_code, body)


def _valid_status(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool) and 400 <= value <= 599:
        return value
    return None


def status_code_for(exc: Exception) -> int:
    """
    HTTP status for an adapter failure.

    Typed errors supply their own status_code; for anything else a status
    embedded in the message is recovered. Values outside 400-599 become 500.
    """
    status = _valid_status(getattr(exc, "status_code", None))
    if status is not None:
        return status

    if isinstance(exc, OrderBridgeException):
        return get_http_status_code(exc)

    match = _EMBEDDED_STATUS.search(str(exc))
    if match:
        status = _valid_status(int(match.group(1)))
        if status is not None:
            return status
    return 500


def _error_message(exc: Exception) -> str:
    if isinstance(exc, OrderBridgeException):
        return exc.message
    return str(exc) or type(exc).__name__


class SupplierGateway:
    """
    Routes gateway actions to supplier adapters.

    Args:
        supplier_factory: builds an adapter for a key; defaults to the registry
    """

    def __init__(self, supplier_factory: Optional[Callable[[SupplierKey], BaseSupplier]] = None):
        self.supplier_factory = supplier_factory or SupplierRegistry.get_supplier

    def validate(self, supplier_key: Any, action: Any) -> SupplierKey:
        if not supplier_key or not action:
            raise InvalidRequestError("Missing supplierKey or action", parameter="supplierKey" if not supplier_key else "action")

        key = SupplierKey.parse(supplier_key)
        if key is None:
            raise InvalidRequestError(f"Unknown supplier: {supplier_key}", parameter="supplierKey", value=supplier_key)

        if action not in GATEWAY_ACTIONS:
            raise InvalidRequestError(f"Unknown action: {action}", parameter="action", value=action)

        return key

    async def dispatch(
        self,
        supplier_key: Any,
        environment: Optional[str],
        action: Any,
        payload: Optional[Dict[str, Any]] = None,
    ) -> GatewayResult:
        """Run one gateway action. Never raises."""
        try:
            key = self.validate(supplier_key, action)
        except InvalidRequestError as e:
            logger.warning(f"Rejected gateway request: {e.message}")
            return GatewayResult.failure(400, e.message)

        payload = payload or {}
        context = f"{key.value} {action} ({environment or 'default'})"

        try:
            supplier = self.supplier_factory(key)

            if action == "login":
                session = await supplier.authenticate(environment)
                return GatewayResult.ok(session.to_dict())

            if action == "getPricing":
                result = await supplier.get_pricing(environment, payload)
                embedded_error = supplier.find_embedded_error(result.raw)
                if embedded_error:
                    logger.warning(f"{context}: supplier reported a line error: {embedded_error}")
                    return GatewayResult.failure(400, embedded_error, data=result.raw)
                return GatewayResult.ok(result.to_dict())

            confirmation = await supplier.submit_order(environment, payload)
            return GatewayResult.ok(confirmation.to_dict())

        except Exception as e:  # every adapter failure becomes a structured result
            status_code = status_code_for(e)
            log_exception(e, context=context, extra_info={"status_code": status_code})
            return GatewayResult.failure(status_code, _error_message(e))

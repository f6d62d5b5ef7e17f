"""
Base Supplier Interface

Defines the capability interface every supplier adapter implements:
authenticate, get_pricing, submit_order, plus the live catalog search used
by the product search ladder. Each adapter owns its wire format and login
flow and hands back canonical result types, so nothing downstream has to
guess at a supplier's response shape.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from OrderBridge.clients.http_client import ServiceHTTPClient, HTTPResponse
from OrderBridge.config.credentials import (
    CredentialResolver,
    SupplierCredentialBundle,
    get_credential_resolver,
)
from OrderBridge.exceptions import SupplierApiError, InvalidRequestError
from .data_extraction import DataExtractor
from .normalization import NormalizedLine, normalize_line_items


class SupplierKey(str, Enum):
    """The closed set of suppliers this service integrates with"""
    ABC = "ABC"
    SRS = "SRS"
    BEACON = "BEACON"

    @classmethod
    def parse(cls, value: Any) -> Optional["SupplierKey"]:
        """Case-insensitive lookup; None for anything unknown"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class AuthKind(Enum):
    BEARER = "bearer"
    COOKIE = "cookie"


@dataclass
class AuthSession:
    """Proof of authentication for one request. Never cached or persisted."""
    supplier: str
    kind: AuthKind
    value: str
    environment: Optional[str] = None

    def to_headers(self) -> Dict[str, str]:
        if self.kind == AuthKind.COOKIE:
            return {"Cookie": self.value}
        return {"Authorization": f"Bearer {self.value}"}

    def to_dict(self) -> Dict[str, Any]:
        key = "cookies" if self.kind == AuthKind.COOKIE else "access_token"
        return {"success": True, key: self.value, "environment": self.environment}

    def __repr__(self) -> str:
        return f"AuthSession(supplier={self.supplier!r}, kind={self.kind.value}, length={len(self.value or '')})"


@dataclass
class PriceRecord:
    """One supplier-priced record, in canonical form"""
    sku: str
    unit_price: Optional[float] = None
    uom: Optional[str] = None
    line_id: Optional[str] = None
    quantity: Optional[float] = None
    error: Optional[str] = None
    status: Optional[str] = None
    available_uoms: List[str] = field(default_factory=list)
    alternate_keys: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def reports_error_status(self) -> bool:
        """Supplier flagged this line with an explicit "Error" status"""
        return (self.status or "").strip().upper() == "ERROR"

    @property
    def has_valid_price(self) -> bool:
        return self.unit_price is not None and self.unit_price > 0 and not self.error


@dataclass
class PricingResult:
    """Pricing call outcome: raw supplier payload plus the canonical records"""
    supplier: str
    environment: Optional[str]
    raw: Dict[str, Any]
    records: List[PriceRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "data": self.raw, "environment": self.environment}


class SubmissionStatus(Enum):
    """Whether the supplier itself accepted the order"""
    CONFIRMED = "confirmed"
    PENDING_SUPPLIER_INTEGRATION = "pending"


@dataclass
class OrderConfirmation:
    supplier: str
    status: SubmissionStatus
    environment: Optional[str] = None
    confirmation_number: Optional[str] = None
    order_id: Optional[str] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_confirmed(self) -> bool:
        return self.status == SubmissionStatus.CONFIRMED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "supplierIntegration": self.status.value,
            "message": self.message,
            "confirmationNumber": self.confirmation_number,
            "orderId": self.order_id,
            "environment": self.environment,
            "data": self.raw or None,
        }


HTTPClientFactory = Callable[[str], ServiceHTTPClient]


class BaseSupplier(ABC):
    """
    Abstract base class for all supplier adapters.

    Subclasses implement the login flow, request construction and response
    normalization for one supplier. A fresh session is obtained for every
    pricing, order or search call.
    """

    key: SupplierKey
    config: Dict[str, Any] = {}

    def __init__(
        self,
        credential_resolver: Optional[CredentialResolver] = None,
        http_client_factory: Optional[HTTPClientFactory] = None,
    ):
        self._credential_resolver = credential_resolver
        self._http_client_factory = http_client_factory
        self.logger = logging.getLogger(self.__class__.__name__)
        self.extractor = DataExtractor(self.key.value)

    @property
    def name(self) -> str:
        return self.key.value

    @property
    def credential_resolver(self) -> CredentialResolver:
        return self._credential_resolver or get_credential_resolver()

    def get_credentials(self, environment: Optional[str]) -> SupplierCredentialBundle:
        return self.credential_resolver.resolve(self.name, environment)

    def create_http_client(self) -> ServiceHTTPClient:
        if self._http_client_factory is not None:
            return self._http_client_factory(self.name)
        return ServiceHTTPClient(
            self.name,
            default_timeout=self.config.get("timeout_seconds", 30),
            default_headers=self.config.get("custom_headers"),
        )

    def endpoint(self, credentials: SupplierCredentialBundle, name: str) -> str:
        return f"{credentials.api_base_url}{self.config['endpoints'][name]}"

    # ========== Capability Interface ==========

    @abstractmethod
    async def authenticate(self, environment: Optional[str] = None) -> AuthSession:
        """Perform the supplier-specific login flow"""
        pass

    @abstractmethod
    async def get_pricing(
        self,
        environment: Optional[str],
        payload: Dict[str, Any],
        session: Optional[AuthSession] = None,
    ) -> PricingResult:
        """Normalize line items, request prices and return canonical records"""
        pass

    @abstractmethod
    async def submit_order(self, environment: Optional[str], payload: Dict[str, Any]) -> OrderConfirmation:
        """Submit an order, or return a pending-integration confirmation"""
        pass

    @abstractmethod
    async def search_products(
        self, environment: Optional[str], query: str, limit: int
    ) -> List[Dict[str, Any]]:
        """Search the live supplier catalog"""
        pass

    @abstractmethod
    def extract_price_records(self, raw_response: Dict[str, Any]) -> List[PriceRecord]:
        """Turn a raw pricing payload, in any known envelope, into canonical records"""
        pass

    # ========== Shared Helpers ==========

    def normalized_lines(self, payload: Dict[str, Any], operation: str = "price") -> List[NormalizedLine]:
        """Pull line items out of a gateway payload and normalize them"""
        payload = payload or {}
        full_order = (payload.get("orderBody") if operation == "order" else None) or payload.get("fullOrder")
        if not isinstance(full_order, dict) or not isinstance(full_order.get("fullOrderItems"), list):
            raise InvalidRequestError(f"{self.name}: Missing fullOrder", parameter="fullOrder")

        lines = normalize_line_items(full_order["fullOrderItems"])
        if not lines:
            raise InvalidRequestError(f"{self.name}: No valid items to {operation}", parameter="fullOrderItems")
        return lines

    def raise_for_status(self, response: HTTPResponse, operation: str):
        """Raise SupplierApiError for any non-2xx response"""
        if response.success:
            return
        message = response.error_text()
        self.logger.error(f"{self.name} {operation} API error ({response.status}): {message}")
        raise SupplierApiError(response.status, message, supplier_name=self.name, endpoint=response.url)

    def search_items(self, data: Dict[str, Any], keys: List[str]) -> List[Dict[str, Any]]:
        """First list found under one of ``keys`` in a live search response"""
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
        return []

    def find_embedded_error(self, raw_response: Dict[str, Any]) -> Optional[str]:
        """
        Message of the first line the supplier flagged with an "Error" status
        inside an otherwise successful response, or None.
        """
        for record in self.extract_price_records(raw_response):
            if record.reports_error_status:
                return record.error or f"Line error for {record.sku}"
        return None

    def order_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """The order document from a gateway payload (orderBody wins over fullOrder)"""
        order = (payload or {}).get("orderBody") or (payload or {}).get("fullOrder")
        if not isinstance(order, dict):
            raise InvalidRequestError(
                f"{self.name}: Missing order data (fullOrder or orderBody)", parameter="fullOrder"
            )
        return order

"""
ABC Supply adapter

OAuth2 client-credentials login with a Basic header, JSON pricing and order
APIs keyed by item number, and the partner product catalog for live search.
"""

import time
from typing import Any, Dict, List, Optional

from OrderBridge.clients.http_client import ServiceHTTPClient
from OrderBridge.config.credentials import SupplierCredentialBundle
from OrderBridge.config.suppliers import ABC_CONFIG
from .auth_framework import OAuth2ClientCredentialsAuthenticator
from .base import (
    AuthSession,
    BaseSupplier,
    OrderConfirmation,
    PriceRecord,
    PricingResult,
    SubmissionStatus,
    SupplierKey,
)
from .normalization import NormalizedLine, normalize_uom
from .registry import register_supplier

PRICE_COLLECTION_PATHS = ["data.lines", "lines", "data.data.lines", "items"]


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


@register_supplier(SupplierKey.ABC)
class ABCSupplySupplier(BaseSupplier):
    """ABC Supply pricing, ordering and catalog search"""

    key = SupplierKey.ABC
    config = ABC_CONFIG

    async def _login(
        self, client: ServiceHTTPClient, credentials: SupplierCredentialBundle, scope: Optional[str] = None
    ) -> AuthSession:
        authenticator = OAuth2ClientCredentialsAuthenticator(
            self.name, client, scope=scope or self.config["scope"]
        )
        result = await authenticator.authenticate(credentials)
        return result.require_session(self.name)

    async def authenticate(self, environment: Optional[str] = None) -> AuthSession:
        credentials = self.get_credentials(environment)
        async with self.create_http_client() as client:
            return await self._login(client, credentials)

    # ========== Pricing ==========

    def build_pricing_request(self, lines: List[NormalizedLine]) -> Dict[str, Any]:
        account = self.config["account"]
        return {
            "branchNumber": account["branch_number"],
            "shipToNumber": account["ship_to_number"],
            "requestId": f"Pricing-{_timestamp_ms()}",
            "purpose": account["pricing_purpose"],
            "lines": [
                {
                    "id": line.line_id or str(index + 1),
                    "itemNumber": line.sku,
                    "quantity": line.quantity,
                    "uom": line.uom,
                }
                for index, line in enumerate(lines)
            ],
        }

    async def get_pricing(
        self,
        environment: Optional[str],
        payload: Dict[str, Any],
        session: Optional[AuthSession] = None,
    ) -> PricingResult:
        lines = self.normalized_lines(payload)
        credentials = self.get_credentials(environment)

        async with self.create_http_client() as client:
            session = session or await self._login(client, credentials)
            response = await client.post(
                self.endpoint(credentials, "pricing"),
                headers={**session.to_headers(), "Accept": "application/json"},
                json_data=self.build_pricing_request(lines),
            )
        self.raise_for_status(response, "Pricing")

        return PricingResult(
            supplier=self.name,
            environment=credentials.environment,
            raw=response.data,
            records=self.extract_price_records(response.data),
        )

    def extract_price_records(self, raw_response: Dict[str, Any]) -> List[PriceRecord]:
        path, lines = self.extractor.first_array(raw_response, PRICE_COLLECTION_PATHS)
        records = []
        for line in lines:
            if not isinstance(line, dict):
                continue
            sku = self.extractor.first_present(line, ("itemNumber", "sku"))
            if sku is None:
                continue

            status = line.get("status") if isinstance(line.get("status"), dict) else {}
            status_code = status.get("code")
            error = None
            if str(status_code or "").strip().upper() == "ERROR":
                error = status.get("message") or "Supplier reported an error"

            quantity = line.get("quantity")
            if isinstance(quantity, dict):
                quantity = quantity.get("value")

            line_id = line.get("id")
            records.append(
                PriceRecord(
                    sku=str(sku),
                    unit_price=self.extractor.extract_unit_price(line),
                    uom=normalize_uom(line.get("uom"), default=None),
                    line_id=str(line_id) if line_id is not None else None,
                    quantity=self.extractor.safe_cast(quantity, float),
                    error=error,
                    status=status_code,
                    available_uoms=self.extractor.string_list(
                        self.extractor.first_present(line, ("availableUoms", "uoms"))
                    ),
                    raw=line,
                )
            )

        self.logger.debug(f"Extracted {len(records)} ABC price records from {path}")
        return records

    # ========== Ordering ==========

    def build_ship_to(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """Ship-to block from the order's delivery details, falling back to the account default"""
        default = self.config["default_ship_to"]
        delivery = order.get("delivery") if isinstance(order.get("delivery"), dict) else {}

        def pick(*keys, fallback=None):
            for key in keys:
                value = delivery.get(key)
                if isinstance(value, (str, int)) and str(value).strip():
                    return value
            return fallback

        return {
            "number": pick("shipToNumber", fallback=default["number"]),
            "name": pick("name", "companyName", fallback=default["name"]),
            "address": {
                "line1": pick("address", "line1", "street", fallback=default["address"]["line1"]),
                "city": pick("city", fallback=default["address"]["city"]),
                "state": pick("state", fallback=default["address"]["state"]),
                "postal": pick("zip", "postal", "postalCode", fallback=default["address"]["postal"]),
            },
            "contacts": [
                {
                    "name": pick("contactName", fallback=default["contact"]["name"]),
                    "functionCode": "SM",
                    "email": pick("contactEmail", "email", fallback=default["contact"]["email"]),
                    "phones": [
                        {
                            "number": pick("contactPhone", "phone", fallback=default["contact"]["phone"]),
                            "type": "MOBILE",
                        }
                    ],
                }
            ],
        }

    def build_order_request(self, lines: List[NormalizedLine], order: Dict[str, Any]) -> Dict[str, Any]:
        account = self.config["account"]
        order_lines = []
        for index, line in enumerate(lines):
            line_id = int(line.line_id) if line.line_id and line.line_id.isdigit() else index + 1
            order_lines.append(
                {
                    "id": line_id,
                    "itemNumber": line.sku,
                    "orderedQty": {"value": line.quantity, "uom": line.uom},
                }
            )

        return {
            "requestId": f"Order-{_timestamp_ms()}",
            "branchNumber": account["branch_number"],
            "typeCode": account["order_type_code"],
            "deliveryService": account["delivery_service"],
            "shipTo": self.build_ship_to(order),
            "lines": order_lines,
        }

    async def submit_order(self, environment: Optional[str], payload: Dict[str, Any]) -> OrderConfirmation:
        order = self.order_payload(payload)
        lines = self.normalized_lines(payload, operation="order")
        credentials = self.get_credentials(environment)

        async with self.create_http_client() as client:
            session = await self._login(client, credentials)
            response = await client.post(
                self.endpoint(credentials, "order"),
                headers={**session.to_headers(), "Accept": "application/json"},
                json_data=self.build_order_request(lines, order),
            )
        self.raise_for_status(response, "Order")

        data = response.data
        confirmation = self.extractor.first_present(
            data, ("confirmationNumber", "orderNumber", "orderId", "requestId")
        ) or self.extractor.safe_get(data, "data.orderNumber")
        self.logger.info(f"ABC accepted order {order.get('orderId')} as {confirmation}")

        return OrderConfirmation(
            supplier=self.name,
            status=SubmissionStatus.CONFIRMED,
            environment=credentials.environment,
            confirmation_number=str(confirmation) if confirmation is not None else None,
            order_id=order.get("orderId"),
            message="ABC order submitted successfully",
            raw=data,
        )

    # ========== Live Search ==========

    async def search_products(self, environment: Optional[str], query: str, limit: int) -> List[Dict[str, Any]]:
        credentials = self.get_credentials(environment)
        params = {"itemsPerPage": limit, "pageNumber": 1, "embed": "branches"}
        if query:
            params["search"] = query

        async with self.create_http_client() as client:
            session = await self._login(client, credentials, scope=self.config["search_scope"])
            response = await client.get(
                self.endpoint(credentials, "search"),
                headers={**session.to_headers(), "Accept": "application/json"},
                params=params,
            )
        self.raise_for_status(response, "Search")

        return self.search_items(response.data, ["items", "data", "results"])

"""
Beacon Building Products adapter

Username/password login yields a cookie session. Pricing is a GET keyed by
comma-joined SKU ids and answers with ``priceInfo: {sku: {uom: price}}``.
Order submission is not wired to a live Beacon endpoint yet and returns a
pending-integration confirmation.
"""

import time
from typing import Any, Dict, List, Optional

from OrderBridge.clients.http_client import ServiceHTTPClient
from OrderBridge.config.credentials import SupplierCredentialBundle
from OrderBridge.config.suppliers import BEACON_CONFIG
from .auth_framework import CookieSessionAuthenticator
from .base import (
    AuthSession,
    BaseSupplier,
    OrderConfirmation,
    PriceRecord,
    PricingResult,
    SubmissionStatus,
    SupplierKey,
)
from .normalization import normalize_uom
from .registry import register_supplier

PRICE_INFO_PATHS = ["data.priceInfo", "priceInfo", "data.data.priceInfo"]

# Beacon SKUs can carry a variant suffix, e.g. "660455 - Black"
VARIANT_SEPARATOR = " - "


def base_sku(sku: str) -> str:
    return str(sku).split(VARIANT_SEPARATOR)[0].strip()


@register_supplier(SupplierKey.BEACON)
class BeaconSupplier(BaseSupplier):
    """Beacon pricing and catalog search over a cookie session"""

    key = SupplierKey.BEACON
    config = BEACON_CONFIG

    def _login_url(self, credentials: SupplierCredentialBundle) -> str:
        return self.endpoint(credentials, "login")

    def _login_body(self, credentials: SupplierCredentialBundle) -> Dict[str, Any]:
        login = self.config["login"]
        return {
            "username": credentials.username,
            "password": credentials.password,
            "siteId": login["site_id"],
            "persistentLoginType": login["persistent_login_type"],
            "userAgent": login["user_agent"],
            "apiSiteId": credentials.api_site_id or login["default_api_site_id"],
        }

    async def _login(self, client: ServiceHTTPClient, credentials: SupplierCredentialBundle) -> AuthSession:
        authenticator = CookieSessionAuthenticator(self.name, client, self._login_url, self._login_body)
        result = await authenticator.authenticate(credentials)
        return result.require_session(self.name)

    async def authenticate(self, environment: Optional[str] = None) -> AuthSession:
        credentials = self.get_credentials(environment)
        async with self.create_http_client() as client:
            return await self._login(client, credentials)

    # ========== Pricing ==========

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
            response = await client.get(
                self.endpoint(credentials, "pricing"),
                headers=session.to_headers(),
                params={"skuIds": ",".join(line.sku for line in lines)},
            )
        self.raise_for_status(response, "Pricing")

        return PricingResult(
            supplier=self.name,
            environment=credentials.environment,
            raw=response.data,
            records=self.extract_price_records(response.data),
        )

    def extract_price_records(self, raw_response: Dict[str, Any]) -> List[PriceRecord]:
        """One record per (sku, uom) pair in priceInfo"""
        path, price_info = self.extractor.first_mapping(raw_response, PRICE_INFO_PATHS)
        records = []
        for sku, prices in price_info.items():
            if isinstance(prices, dict):
                uoms = [normalize_uom(u) for u in prices.keys()]
                for uom, value in prices.items():
                    price = self.extractor.safe_cast(value, float)
                    records.append(
                        PriceRecord(
                            sku=str(sku),
                            unit_price=price if price and price > 0 else None,
                            uom=normalize_uom(uom),
                            available_uoms=uoms,
                            raw={"sku": sku, "uom": uom, "price": value},
                        )
                    )
            else:
                price = self.extractor.safe_cast(prices, float)
                records.append(
                    PriceRecord(
                        sku=str(sku),
                        unit_price=price if price and price > 0 else None,
                        raw={"sku": sku, "price": prices},
                    )
                )

        self.logger.debug(f"Extracted {len(records)} Beacon price records from {path}")
        return records

    # ========== Ordering ==========

    async def submit_order(self, environment: Optional[str], payload: Dict[str, Any]) -> OrderConfirmation:
        order = self.order_payload(payload)
        credentials = self.get_credentials(environment)

        self.logger.warning(
            f"BEACON order submission is not integrated; order {order.get('orderId')} accepted locally only"
        )
        return OrderConfirmation(
            supplier=self.name,
            status=SubmissionStatus.PENDING_SUPPLIER_INTEGRATION,
            environment=credentials.environment,
            confirmation_number=f"BEACON-{int(time.time() * 1000)}",
            order_id=order.get("orderId"),
            message="BEACON order accepted locally; supplier integration pending",
        )

    # ========== Live Search ==========

    async def search_products(self, environment: Optional[str], query: str, limit: int) -> List[Dict[str, Any]]:
        credentials = self.get_credentials(environment)
        params = {"limit": limit}
        if query:
            params["search"] = query

        async with self.create_http_client() as client:
            session = await self._login(client, credentials)
            response = await client.get(
                self.endpoint(credentials, "search"),
                headers=session.to_headers(),
                params=params,
            )
        self.raise_for_status(response, "Search")

        return self.search_items(response.data, ["items", "products"])

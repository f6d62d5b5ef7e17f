"""
SRS Distribution adapter

OAuth2 client credentials are posted in the form body. Pricing uses the
productList payload keyed by item code and numeric product id. Order
submission is not wired to a live SRS endpoint yet and returns a
pending-integration confirmation.
"""

import time
from typing import Any, Dict, List, Optional

from OrderBridge.clients.http_client import ServiceHTTPClient
from OrderBridge.config.credentials import SupplierCredentialBundle
from OrderBridge.config.suppliers import SRS_CONFIG
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

PRICE_COLLECTION_PATHS = [
    "data.productList",
    "productList",
    "data.data.productList",
    "data.lines",
    "lines",
    "items",
]


@register_supplier(SupplierKey.SRS)
class SRSSupplier(BaseSupplier):
    """SRS Distribution pricing and catalog search"""

    key = SupplierKey.SRS
    config = SRS_CONFIG

    async def _login(self, client: ServiceHTTPClient, credentials: SupplierCredentialBundle) -> AuthSession:
        authenticator = OAuth2ClientCredentialsAuthenticator(
            self.name, client, scope=self.config["scope"], credentials_in_body=True
        )
        result = await authenticator.authenticate(credentials)
        return result.require_session(self.name)

    async def authenticate(self, environment: Optional[str] = None) -> AuthSession:
        credentials = self.get_credentials(environment)
        async with self.create_http_client() as client:
            return await self._login(client, credentials)

    # ========== Pricing ==========

    def _product_entry(self, line: NormalizedLine) -> Dict[str, Any]:
        raw = line.raw
        product_id = self.extractor.safe_cast(line.product_id, int)

        options = raw.get("productOptions") or raw.get("variant")
        if not isinstance(options, list):
            options = [options] if options else []
        options = [str(o).strip() for o in options if o is not None and str(o).strip()]

        entry = {
            "productName": line.title or "",
            "productOptions": options or ["N/A"],
            "quantity": line.quantity,
            "uom": line.uom if (raw.get("uom") or raw.get("unitOfMeasure")) else self.config["account"]["default_uom"],
            "itemCode": line.sku,
        }
        if product_id is not None:
            entry["productId"] = product_id
        return entry

    def build_pricing_request(self, lines: List[NormalizedLine], order: Dict[str, Any]) -> Dict[str, Any]:
        account = self.config["account"]
        job_account = self.extractor.safe_cast(
            order.get("jobAccountNumber") or order.get("jobNumber"), int, account["job_account_number"]
        )
        return {
            "sourceSystem": order.get("sourceSystem") or account["source_system"],
            "customerCode": order.get("customerCode") or order.get("accountId") or account["customer_code"],
            "branchCode": order.get("branchCode") or account["branch_code"],
            "transactionId": order.get("transactionId") or account["transaction_id"],
            "jobAccountNumber": job_account or account["job_account_number"],
            "productList": [self._product_entry(line) for line in lines],
        }

    async def get_pricing(
        self,
        environment: Optional[str],
        payload: Dict[str, Any],
        session: Optional[AuthSession] = None,
    ) -> PricingResult:
        lines = self.normalized_lines(payload)
        order = payload.get("fullOrder") or {}
        credentials = self.get_credentials(environment)

        async with self.create_http_client() as client:
            session = session or await self._login(client, credentials)
            response = await client.post(
                self.endpoint(credentials, "pricing"),
                headers=session.to_headers(),
                json_data=self.build_pricing_request(lines, order),
            )
        self.raise_for_status(response, "Pricing")

        return PricingResult(
            supplier=self.name,
            environment=credentials.environment,
            raw=response.data,
            records=self.extract_price_records(response.data),
        )

    def _record_error(self, product: Dict[str, Any], unit_price: Optional[float]) -> Optional[str]:
        error = product.get("error")
        if isinstance(error, dict):
            error = error.get("message") or error.get("code") or "Supplier reported an error"
        if error:
            return str(error)
        message = product.get("message")
        if unit_price is None and isinstance(message, str) and message.strip():
            return message
        return None

    def extract_price_records(self, raw_response: Dict[str, Any]) -> List[PriceRecord]:
        path, products = self.extractor.first_array(raw_response, PRICE_COLLECTION_PATHS)
        records = []
        for product in products:
            if not isinstance(product, dict):
                continue
            product_id = product.get("productId")
            sku = self.extractor.first_present(product, ("itemCode", "sku", "itemNumber"))
            if sku is None and product_id is None:
                continue

            unit_price = self.extractor.extract_unit_price(product)
            error = self._record_error(product, unit_price)
            alternate_keys = [str(product_id)] if product_id is not None and sku is not None else []

            records.append(
                PriceRecord(
                    sku=str(sku if sku is not None else product_id),
                    unit_price=unit_price,
                    uom=normalize_uom(product.get("uom"), default=None),
                    quantity=self.extractor.safe_cast(product.get("quantity"), float),
                    error=error,
                    status="Error" if product.get("error") else None,
                    available_uoms=self.extractor.string_list(
                        self.extractor.first_present(product, ("availableUoms", "uoms", "unitsOfMeasure"))
                    ),
                    alternate_keys=alternate_keys,
                    raw=product,
                )
            )

        self.logger.debug(f"Extracted {len(records)} SRS price records from {path}")
        return records

    # ========== Ordering ==========

    async def submit_order(self, environment: Optional[str], payload: Dict[str, Any]) -> OrderConfirmation:
        order = self.order_payload(payload)
        credentials = self.get_credentials(environment)

        self.logger.warning(
            f"SRS order submission is not integrated; order {order.get('orderId')} accepted locally only"
        )
        return OrderConfirmation(
            supplier=self.name,
            status=SubmissionStatus.PENDING_SUPPLIER_INTEGRATION,
            environment=credentials.environment,
            confirmation_number=f"SRS-{int(time.time() * 1000)}",
            order_id=order.get("orderId"),
            message="SRS order accepted locally; supplier integration pending",
        )

    # ========== Live Search ==========

    async def search_products(self, environment: Optional[str], query: str, limit: int) -> List[Dict[str, Any]]:
        credentials = self.get_credentials(environment)
        params = {"pageSize": limit}
        if query:
            params["q"] = query

        async with self.create_http_client() as client:
            session = await self._login(client, credentials)
            response = await client.get(
                self.endpoint(credentials, "search"),
                headers=session.to_headers(),
                params=params,
            )
        self.raise_for_status(response, "Search")

        return self.search_items(response.data, ["products", "items"])

"""
Route tests with FastAPI's TestClient.

Services are swapped through app.dependency_overrides so no route touches a
supplier, the CRM or the on-disk database.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from OrderBridge.dependencies import (
    get_engine,
    get_gateway,
    get_pricing_service,
    get_search_service,
    get_submission_pipeline,
)
from OrderBridge.main import app
from OrderBridge.services.gateway import GatewayResult
from OrderBridge.services.order import DraftResult, SubmissionResult
from OrderBridge.services.pricing import PricedOrder, PricingService
from OrderBridge.services.search import FieldDiscoveryCache, ProductSearchService
from OrderBridge.suppliers.abc_supply import ABCSupplySupplier


class TestAPIRoutes:

    def setup_method(self):
        self.client = TestClient(app)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_root(self):
        response = self.client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "OrderBridge API"

    def test_list_suppliers(self):
        response = self.client.get("/api/suppliers/")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert sorted(body["data"]) == ["ABC", "BEACON", "SRS"]

    def test_proxy_passes_gateway_status_through(self):
        gateway = MagicMock()
        gateway.dispatch = AsyncMock(return_value=GatewayResult.failure(503, "ABC API error (503): down"))
        app.dependency_overrides[get_gateway] = lambda: gateway

        response = self.client.post(
            "/api/suppliers/proxy",
            json={"supplierKey": "ABC", "env": "sandbox", "action": "getPricing", "payload": {"fullOrder": {}}},
        )

        assert response.status_code == 503
        assert response.json() == {"success": False, "error": "ABC API error (503): down"}
        gateway.dispatch.assert_awaited_once_with("ABC", "sandbox", "getPricing", {"fullOrder": {}})

    def test_proxy_rejects_unknown_supplier(self):
        response = self.client.post("/api/suppliers/proxy", json={"supplierKey": "XYZ", "action": "login"})

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown supplier: XYZ"

    def test_supplier_pricing_without_session(self):
        response = self.client.post("/api/suppliers/beacon/pricing", json={"env": "sandbox", "fullOrder": {}})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["environment"] == "sandbox"
        assert "log in first" in body["error"]

    def test_supplier_pricing_with_token(self, supplier_kwargs, fake_http, http_response):
        fake_http.queue(http_response(data={"lines": [{"itemNumber": "A1", "unitPrice": 2}]}))
        service = PricingService(supplier_factory=lambda key: ABCSupplySupplier(**supplier_kwargs))
        app.dependency_overrides[get_pricing_service] = lambda: service

        response = self.client.post(
            "/api/suppliers/ABC/pricing",
            json={"env": "sandbox", "token": "tok", "fullOrder": {"fullOrderItems": [{"sku": "A1"}]}},
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"lines": [{"itemNumber": "A1", "unitPrice": 2}]}

    def test_price_order(self):
        service = MagicMock()
        service.price_order = AsyncMock(return_value=PricedOrder(supplier="ABC", environment="sandbox", success=True))
        app.dependency_overrides[get_pricing_service] = lambda: service

        response = self.client.post(
            "/api/pricing/price-order", json={"supplier": "ABC", "env": "sandbox", "lineItems": [{"sku": "A1"}]}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        service.price_order.assert_awaited_once_with("ABC", [{"sku": "A1"}], environment="sandbox")

    def test_price_order_requires_items(self):
        app.dependency_overrides[get_pricing_service] = lambda: MagicMock()

        response = self.client.post("/api/pricing/price-order", json={"supplier": "ABC"})

        assert response.status_code == 400
        assert response.json()["status"] == "error"

    def test_price_order_reports_supplier_outage(self):
        service = MagicMock()
        service.price_order = AsyncMock(
            return_value=PricedOrder(supplier="SRS", environment=None, success=False, error="SRS: no token")
        )
        app.dependency_overrides[get_pricing_service] = lambda: service

        response = self.client.post("/api/pricing/price-order", json={"supplier": "SRS", "fullOrder": {"fullOrderItems": []}})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == "SRS: no token"

    def test_search(self, product_engine):
        live = MagicMock()
        live.search_products = AsyncMock(return_value=[{"sku": "LIVE-1"}])
        service = ProductSearchService(
            engine_override=product_engine,
            field_cache=FieldDiscoveryCache(),
            supplier_factory=lambda key: live,
        )
        app.dependency_overrides[get_search_service] = lambda: service

        response = self.client.post("/api/products/search", json={"supplier": "abc", "q": "vent", "pageSize": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["sourceStep"] == "LIVE_FALLBACK"
        assert body["items"][0]["sku"] == "LIVE-1"
        assert body["nextCursor"] is None
        assert body["meta"]["pageSize"] == 5
        assert body["fallback"] is True

    def test_search_uses_overridden_engine(self, product_engine):
        from sqlmodel import Session

        from OrderBridge.models.product_models import ProductModel

        with Session(product_engine) as session:
            session.add(ProductModel(supplier="ABC", itemnumber="26VPJ118CY", description="Ridge vent"))
            session.commit()
        app.dependency_overrides[get_engine] = lambda: product_engine

        response = self.client.post("/api/products/search", json={"supplier": "ABC", "q": ""})

        assert response.status_code == 200
        body = response.json()
        assert body["sourceStep"] == "RECENT"
        assert [item["itemnumber"] for item in body["items"]] == ["26VPJ118CY"]

    def test_search_rejects_unknown_supplier(self):
        app.dependency_overrides[get_search_service] = lambda: ProductSearchService(field_cache=FieldDiscoveryCache())

        response = self.client.post("/api/products/search", json={"supplier": "XYZ", "q": "vent"})

        assert response.status_code == 400

    def test_save_draft(self):
        pipeline = MagicMock()
        pipeline.save_draft = AsyncMock(return_value=DraftResult(order_id="obj-1", order_number="ORD-1", created=True))
        app.dependency_overrides[get_submission_pipeline] = lambda: pipeline

        response = self.client.post("/api/orders/draft", json={"fullOrder": {"supplier": "ABC"}, "dealId": 9001})

        assert response.status_code == 200
        assert response.json()["data"]["orderId"] == "obj-1"
        pipeline.save_draft.assert_awaited_once_with({"supplier": "ABC"}, 9001, None)

    def test_submit_uses_pipeline_status(self):
        pipeline = MagicMock()
        pipeline.submit = AsyncMock(
            return_value=SubmissionResult(success=False, message="ABC order failed: down", status_code=502)
        )
        app.dependency_overrides[get_submission_pipeline] = lambda: pipeline

        response = self.client.post("/api/orders/submit", json={"fullOrder": {"supplier": "ABC"}, "dealId": "d1"})

        assert response.status_code == 502
        assert response.json()["success"] is False

    @pytest.mark.parametrize("body", [{"dealId": "d1"}, {"fullOrder": {"supplier": "ABC"}}])
    def test_submit_validation_is_400(self, body):
        from OrderBridge.services.order import OrderSubmissionPipeline

        pipeline = OrderSubmissionPipeline(crm_client=MagicMock(), gateway=MagicMock())
        app.dependency_overrides[get_submission_pipeline] = lambda: pipeline

        response = self.client.post("/api/orders/submit", json=body)

        assert response.status_code == 400
        assert response.json()["status"] == "error"

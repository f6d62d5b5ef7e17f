"""
Unit tests for draft saving and order submission
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from OrderBridge.clients.crm import UploadedFile
from OrderBridge.exceptions import CRMError, InvalidRequestError
from OrderBridge.services.gateway import GatewayResult, SupplierGateway
from OrderBridge.services.order import (
    DocumentService,
    OrderSubmissionPipeline,
    infer_uom_from_title,
    line_item_from_product,
    order_total,
    prepare_order,
)
from OrderBridge.suppliers import SupplierKey
from OrderBridge.suppliers.srs import SRSSupplier


def make_crm(order_id="obj-1"):
    crm = MagicMock()
    crm.create_order_object = AsyncMock(return_value=order_id)
    crm.update_order_object = AsyncMock(return_value={})
    crm.associate_deal = AsyncMock(return_value={})
    crm.set_status = AsyncMock(return_value={})
    crm.upload_file = AsyncMock(return_value=UploadedFile(url="https://files.example.com/order.pdf", file_id="f1"))
    return crm


def abc_order(**extra):
    return {
        "supplier": "ABC",
        "fullOrderItems": [{"sku": "26VPJ118CY", "qty": 10, "uom": "EA", "unitPrice": 12.5, "linePrice": 125.0}],
        "delivery": {"city": "Springfield"},
        **extra,
    }


def fake_renderer(lines):
    return b"%PDF-1.4 test"


class TestSaveDraft:
    """Create-or-update of the CRM order record"""

    def setup_method(self):
        self.crm = make_crm()
        self.pipeline = OrderSubmissionPipeline(
            crm_client=self.crm,
            gateway=MagicMock(),
            document_service=DocumentService(self.crm, renderer=fake_renderer),
        )

    @pytest.mark.asyncio
    async def test_new_draft_is_created_and_associated(self):
        draft = await self.pipeline.save_draft(abc_order(), deal_id=9001)

        assert draft.created
        assert draft.order_id == "obj-1"
        assert draft.order_number.startswith("ORD-")
        properties = self.crm.create_order_object.await_args.args[0]
        assert properties["status"] == "Draft"
        assert properties["total"] == "125.0"
        assert properties["order_id"] == draft.order_number
        assert '"26VPJ118CY"' in properties["payload_snapshot"]
        self.crm.associate_deal.assert_awaited_once_with("obj-1", "9001")
        assert draft.to_dict()["message"] == "Draft saved successfully"

    @pytest.mark.asyncio
    async def test_existing_draft_is_updated(self):
        draft = await self.pipeline.save_draft(abc_order(orderNumber="ORD-5"), deal_id="d1", order_object_id="obj-7")

        assert not draft.created
        assert draft.order_id == "obj-7"
        assert draft.order_number == "ORD-5"
        self.crm.create_order_object.assert_not_awaited()
        self.crm.associate_deal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_update_falls_back_to_create(self):
        self.crm.update_order_object = AsyncMock(side_effect=CRMError("conflict", status_code=409))
        self.crm.create_order_object = AsyncMock(return_value="obj-8")

        draft = await self.pipeline.save_draft(abc_order(selectedOrderId="obj-7"), deal_id="d1")

        assert draft.created
        assert draft.order_id == "obj-8"
        self.crm.associate_deal.assert_awaited_once_with("obj-8", "d1")

    @pytest.mark.asyncio
    async def test_association_failure_is_not_fatal(self):
        self.crm.associate_deal = AsyncMock(side_effect=CRMError("association rejected", status_code=400))

        draft = await self.pipeline.save_draft(abc_order(), deal_id="d1")

        assert draft.order_id == "obj-1"

    @pytest.mark.asyncio
    async def test_deal_id_is_required(self):
        with pytest.raises(InvalidRequestError):
            await self.pipeline.save_draft(abc_order(), deal_id=None)
        with pytest.raises(InvalidRequestError):
            await self.pipeline.save_draft(None, deal_id="d1")


class TestSubmit:
    """draft -> supplier -> document -> status"""

    def setup_method(self):
        self.crm = make_crm()
        self.gateway = MagicMock()
        self.gateway.dispatch = AsyncMock(
            return_value=GatewayResult.ok({"supplierIntegration": "confirmed", "confirmationNumber": "ABC-778"})
        )
        self.pipeline = OrderSubmissionPipeline(
            crm_client=self.crm,
            gateway=self.gateway,
            document_service=DocumentService(self.crm, renderer=fake_renderer),
        )

    @pytest.mark.asyncio
    async def test_confirmed_supplier_marks_order_placed(self):
        result = await self.pipeline.submit(abc_order(), deal_id="d1", environment="sandbox")

        assert result.success
        assert result.order_id == "obj-1"
        assert result.confirmation_number == "ABC-778"
        assert result.supplier_integration == "confirmed"
        assert result.pdf_url == "https://files.example.com/order.pdf"
        assert result.stages == {"draft": "ok", "supplier": "ok", "document": "ok", "status": "ok"}

        key, environment, action, payload = self.gateway.dispatch.await_args.args
        assert (key, environment, action) == (SupplierKey.ABC, "sandbox", "order")
        assert payload["fullOrder"]["orderId"] == "obj-1"
        assert payload["fullOrder"]["environment"] == "sandbox"

        self.crm.set_status.assert_awaited_once_with("obj-1", "Placed", "https://files.example.com/order.pdf")
        file_name = self.crm.upload_file.await_args.args[1]
        assert file_name.startswith("Order-") and file_name.endswith("-ABC.pdf")

    @pytest.mark.asyncio
    async def test_pending_supplier_marks_order_submitted(self, supplier_kwargs):
        pipeline = OrderSubmissionPipeline(
            crm_client=self.crm,
            gateway=SupplierGateway(supplier_factory=lambda key: SRSSupplier(**supplier_kwargs)),
            document_service=DocumentService(self.crm, renderer=fake_renderer),
        )

        result = await pipeline.submit(abc_order(supplier="srs"), deal_id="d1", environment="sandbox")

        assert result.success
        assert result.supplier_integration == "pending"
        assert result.confirmation_number.startswith("SRS-")
        assert "pending" in result.message
        self.crm.set_status.assert_awaited_once()
        assert self.crm.set_status.await_args.args[1] == "Submitted"

    @pytest.mark.asyncio
    async def test_supplier_failure_stops_the_pipeline(self):
        self.gateway.dispatch = AsyncMock(return_value=GatewayResult.failure(503, "ABC API error (503): down"))

        result = await self.pipeline.submit(abc_order(), deal_id="d1")

        assert not result.success
        assert result.status_code == 503
        assert "ABC API error (503): down" in result.message
        assert result.order_id == "obj-1"
        assert result.stages == {"draft": "ok", "supplier": "failed", "document": "skipped", "status": "skipped"}
        self.crm.upload_file.assert_not_awaited()
        self.crm.set_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upload_failure_falls_back_to_inline_pdf(self):
        self.crm.upload_file = AsyncMock(side_effect=CRMError("upload rejected", status_code=500))

        result = await self.pipeline.submit(abc_order(), deal_id="d1")

        assert result.success
        assert result.stages["document"] == "fallback"
        assert result.pdf_url.startswith("data:application/pdf;base64,")
        self.crm.set_status.assert_awaited_once_with("obj-1", "Placed", result.pdf_url)

    @pytest.mark.asyncio
    async def test_draft_failure_still_submits_to_supplier(self):
        self.crm.create_order_object = AsyncMock(side_effect=CRMError("HubSpot down", status_code=502))

        result = await self.pipeline.submit(abc_order(), deal_id="d1")

        assert result.success
        assert result.order_id is None
        assert result.stages["draft"] == "failed"
        assert result.stages["status"] == "skipped"
        self.gateway.dispatch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_status_failure_is_reported(self):
        self.crm.set_status = AsyncMock(side_effect=CRMError("status write failed"))

        result = await self.pipeline.submit(abc_order(), deal_id="d1")

        assert result.success
        assert result.stages["status"] == "failed"

    @pytest.mark.asyncio
    async def test_request_validation(self):
        with pytest.raises(InvalidRequestError):
            await self.pipeline.submit(abc_order(supplier="XYZ"), deal_id="d1")
        with pytest.raises(InvalidRequestError):
            await self.pipeline.submit(abc_order(), deal_id="")
        self.gateway.dispatch.assert_not_awaited()


class TestOrderPreparation:

    def test_prepare_order_merges_parsed_copy(self):
        parsed = {"supplier": "ABC", "ticket": "T-1", "delivery": {"city": "Old", "zip": "11111"}}
        full = {"fullOrderItems": [{"sku": "A1"}], "delivery": {"city": "New"}}

        order = prepare_order(full, parsed, "sandbox")

        assert order["supplier"] == "ABC"
        assert order["ticket"] == "T-1"
        assert order["delivery"] == {"city": "New", "zip": "11111"}
        assert order["environment"] == "sandbox"

    def test_prepare_order_fills_defaults(self):
        order = prepare_order({"fullOrderItems": "nope"})
        assert order["supplier"] == ""
        assert order["fullOrderItems"] == []
        assert order["delivery"] == {}

    def test_order_total(self):
        assert order_total({"orderTotal": "99.5"}) == 99.5
        items = [{"qty": 2, "unitPrice": 1.25}, {"quantity": "3", "unitPrice": "2"}, {"qty": 1, "unitPrice": None}]
        assert order_total({"fullOrderItems": items}) == 8.5

    def test_infer_uom_from_title(self):
        assert infer_uom_from_title("Duration Shingles /SQ") == "SQ"
        assert infer_uom_from_title("Ice and water shield roll") == "RL"
        assert infer_uom_from_title("Coil nails") is None
        assert infer_uom_from_title(None) is None

    def test_line_item_from_cached_row(self):
        row = {"itemnumber": "RV-4", "description": "Ridge vent 4ft bundle", "uom": "EA", "uoms": "EA, BNDL"}

        line = line_item_from_product(row, quantity="3", line_id=7)

        assert line.sku == "RV-4"
        assert line.id == "7"
        assert line.quantity == 3
        assert line.unit_of_measure == "BNDL"
        assert line.available_units == ["EA", "BNDL"]
        assert not line.is_priced

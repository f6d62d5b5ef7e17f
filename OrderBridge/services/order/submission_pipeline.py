"""
Order Submission Pipeline

    draft -> supplier -> document -> status

Each stage is fallible on its own and nothing is rolled back: a failed draft
update falls back to creating a new record, a failed document degrades to
an inline data URL, and a failed status write leaves the supplier order in
place. Stage failures are logged as PipelineStageError with enough context
to finish the order by hand.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from OrderBridge.clients.crm import BaseCRMClient, HubSpotClient
from OrderBridge.exceptions import CRMError, InvalidRequestError, PipelineStageError, log_exception
from OrderBridge.models.order_models import OrderStatus
from OrderBridge.services.base_service import BaseService
from OrderBridge.services.gateway import SupplierGateway
from OrderBridge.suppliers import SubmissionStatus, SupplierKey
from .document_service import DocumentService
from .order_preparation import order_total, prepare_order

STAGE_OK = "ok"
STAGE_FAILED = "failed"
STAGE_SKIPPED = "skipped"
STAGE_FALLBACK = "fallback"


@dataclass
class DraftResult:
    order_id: str
    order_number: Optional[str]
    created: bool

    def to_dict(self) -> Dict[str, Any]:
        message = "Draft saved successfully" if self.created else "Draft updated successfully"
        return {"ok": True, "message": message, "orderId": self.order_id, "orderNumber": self.order_number}


@dataclass
class SubmissionResult:
    success: bool
    message: str
    order_id: Optional[str] = None
    confirmation_number: Optional[str] = None
    supplier_integration: Optional[str] = None
    pdf_url: Optional[str] = None
    stages: Dict[str, str] = field(default_factory=dict)
    status_code: int = 200

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "confirmationNumber": self.confirmation_number,
            "orderId": self.order_id,
            "supplierIntegration": self.supplier_integration,
            "pdfUrl": self.pdf_url,
            "stages": self.stages,
        }


def _existing_order_id(full_order: Dict[str, Any], order_object_id: Optional[str]) -> Optional[str]:
    existing = order_object_id or full_order.get("selectedOrderId") or full_order.get("orderObjectId")
    return str(existing) if existing else None


def draft_properties(full_order: Dict[str, Any], order_number: Optional[str]) -> Dict[str, Any]:
    """CRM properties for a draft save; order_id is only set when known"""
    properties = {
        "payload_snapshot": json.dumps(full_order, default=str),
        "status": OrderStatus.DRAFT.value,
        "total": str(order_total(full_order)),
        "last_saved_at": datetime.now(timezone.utc).isoformat(),
    }
    if order_number:
        properties["order_id"] = order_number
    if full_order.get("placed_order_address"):
        properties["placed_order_address"] = full_order["placed_order_address"]
    order_url = full_order.get("pdfUrl") or full_order.get("order_url")
    if order_url:
        properties["order_url"] = order_url
    return properties


class OrderSubmissionPipeline(BaseService):
    """
    Persists drafts and submits finished orders.

    Args:
        crm_client: CRM collaborator; defaults to HubSpotClient
        gateway: supplier gateway used for the supplier stage
        document_service: confirmation document builder
    """

    def __init__(
        self,
        crm_client: Optional[BaseCRMClient] = None,
        gateway: Optional[SupplierGateway] = None,
        document_service: Optional[DocumentService] = None,
    ):
        super().__init__()
        self.crm_client = crm_client or HubSpotClient()
        self.gateway = gateway or SupplierGateway()
        self.document_service = document_service or DocumentService(self.crm_client)

    # ========== Draft ==========

    async def save_draft(
        self, full_order: Dict[str, Any], deal_id: Any, order_object_id: Optional[str] = None
    ) -> DraftResult:
        """
        Create-or-update the CRM order record.

        An existing id is updated; if that update fails a new record is
        created and associated with the deal instead.

        Raises:
            InvalidRequestError: missing order or deal id
            CRMError: the create itself failed
        """
        if not isinstance(full_order, dict):
            raise InvalidRequestError("fullOrder is required", parameter="fullOrder")
        if not deal_id:
            raise InvalidRequestError("dealId is required for association", parameter="dealId")

        existing_id = _existing_order_id(full_order, order_object_id)
        order_number = full_order.get("orderNumber") or full_order.get("order_id")

        if existing_id:
            try:
                await self.crm_client.update_order_object(existing_id, draft_properties(full_order, order_number))
                self.logger.info(f"Draft {existing_id} updated")
                return DraftResult(order_id=existing_id, order_number=order_number, created=False)
            except CRMError as e:
                log_exception(
                    PipelineStageError("draft", f"update failed, creating a new record: {e.message}", order_id=existing_id, deal_id=str(deal_id)),
                    context="OrderSubmissionPipeline.save_draft",
                )

        order_number = order_number or f"ORD-{int(time.time() * 1000)}"
        order_id = await self.crm_client.create_order_object(draft_properties(full_order, order_number))

        try:
            await self.crm_client.associate_deal(order_id, str(deal_id))
        except CRMError as e:
            log_exception(
                PipelineStageError("draft", f"deal association failed: {e.message}", order_id=order_id, deal_id=str(deal_id)),
                context="OrderSubmissionPipeline.save_draft",
            )

        self.logger.info(f"Draft {order_id} created as {order_number}")
        return DraftResult(order_id=order_id, order_number=order_number, created=True)

    # ========== Submission ==========

    async def submit(
        self,
        full_order: Dict[str, Any],
        deal_id: Any,
        environment: Optional[str] = None,
        parsed_order: Optional[Dict[str, Any]] = None,
        order_object_id: Optional[str] = None,
    ) -> SubmissionResult:
        """
        Run every stage. Only request validation raises; stage failures are
        reported in ``stages`` and the log.
        """
        if not isinstance(full_order, dict):
            raise InvalidRequestError("fullOrder is required", parameter="fullOrder")
        if not deal_id:
            raise InvalidRequestError("dealId is required", parameter="dealId")

        order = prepare_order(full_order, parsed_order, environment)
        key = SupplierKey.parse(order["supplier"])
        if key is None:
            raise InvalidRequestError(
                f"Unsupported supplier: {order['supplier'] or '(none)'}", parameter="supplier", value=order["supplier"]
            )

        stages: Dict[str, str] = {}

        # 1. draft
        order_id = None
        try:
            draft = await self.save_draft(order, deal_id, order_object_id)
            order_id = draft.order_id
            order["orderId"] = draft.order_id
            if draft.order_number:
                order.setdefault("orderNumber", draft.order_number)
            stages["draft"] = STAGE_OK
        except Exception as e:
            self._stage_failed("draft", e, order_id=_existing_order_id(order, order_object_id), supplier=key, deal_id=deal_id)
            stages["draft"] = STAGE_FAILED

        # 2. supplier
        gateway_result = await self.gateway.dispatch(key, environment, "order", {"fullOrder": order})
        if not gateway_result.success:
            error = gateway_result.body.get("error") or "Supplier rejected the order"
            self._stage_failed("supplier", error, order_id=order_id, supplier=key, deal_id=deal_id)
            stages["supplier"] = STAGE_FAILED
            stages["document"] = STAGE_SKIPPED
            stages["status"] = STAGE_SKIPPED
            return SubmissionResult(
                success=False,
                message=f"{key.value} order failed: {error}",
                order_id=order_id,
                stages=stages,
                status_code=gateway_result.status_code,
            )

        confirmation = gateway_result.body.get("data") or {}
        confirmation_number = confirmation.get("confirmationNumber")
        integration = confirmation.get("supplierIntegration") or SubmissionStatus.PENDING_SUPPLIER_INTEGRATION.value
        stages["supplier"] = STAGE_OK

        # 3. document
        pdf_url = None
        try:
            document = await self.document_service.create_confirmation(order, confirmation_number)
            pdf_url = document.url
            stages["document"] = STAGE_FALLBACK if document.fallback else STAGE_OK
        except Exception as e:
            self._stage_failed("document", e, order_id=order_id, supplier=key, deal_id=deal_id)
            stages["document"] = STAGE_FAILED

        # 4. final status
        confirmed = integration == SubmissionStatus.CONFIRMED.value
        final_status = OrderStatus.PLACED if confirmed else OrderStatus.SUBMITTED
        if order_id:
            try:
                await self.crm_client.set_status(order_id, final_status.value, pdf_url)
                stages["status"] = STAGE_OK
            except Exception as e:
                self._stage_failed("status", e, order_id=order_id, supplier=key, deal_id=deal_id)
                stages["status"] = STAGE_FAILED
        else:
            stages["status"] = STAGE_SKIPPED

        if confirmed:
            message = f"Order placed with {key.value}"
        else:
            message = f"Order accepted locally; {key.value} supplier integration pending"

        self.logger.info(f"{message} (order {order_id}, confirmation {confirmation_number}, stages {stages})")
        return SubmissionResult(
            success=True,
            message=message,
            order_id=order_id,
            confirmation_number=confirmation_number,
            supplier_integration=integration,
            pdf_url=pdf_url,
            stages=stages,
        )

    def _stage_failed(self, stage: str, error: Any, order_id=None, supplier: Optional[SupplierKey] = None, deal_id=None):
        message = getattr(error, "message", None) or str(error)
        log_exception(
            PipelineStageError(
                stage,
                message,
                order_id=order_id,
                supplier_name=supplier.value if supplier else None,
                deal_id=str(deal_id) if deal_id else None,
            ),
            context="OrderSubmissionPipeline.submit",
        )

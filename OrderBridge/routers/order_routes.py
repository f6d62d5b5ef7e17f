from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from OrderBridge.dependencies import get_submission_pipeline
from OrderBridge.schemas.order_schemas import DraftOrderRequest, SubmitOrderRequest
from OrderBridge.schemas.response import ResponseSchema
from OrderBridge.services.order import OrderSubmissionPipeline

router = APIRouter()


@router.post("/draft", response_model=ResponseSchema)
async def save_draft(request: DraftOrderRequest, pipeline: OrderSubmissionPipeline = Depends(get_submission_pipeline)):
    """Create or update the CRM draft for an order"""
    draft = await pipeline.save_draft(request.full_order, request.deal_id, request.order_object_id)
    data = draft.to_dict()
    return ResponseSchema(status="success", message=data["message"], data=data)


@router.post("/submit")
async def submit_order(request: SubmitOrderRequest, pipeline: OrderSubmissionPipeline = Depends(get_submission_pipeline)):
    """Run the submission pipeline: draft, supplier, document, final status"""
    result = await pipeline.submit(
        request.full_order,
        request.deal_id,
        environment=request.env,
        parsed_order=request.parsed_order,
        order_object_id=request.order_object_id,
    )
    return JSONResponse(status_code=result.status_code, content=result.to_dict())

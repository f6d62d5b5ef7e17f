from fastapi import APIRouter, Depends

from OrderBridge.dependencies import get_pricing_service
from OrderBridge.exceptions import InvalidRequestError
from OrderBridge.schemas.order_schemas import PriceOrderRequest
from OrderBridge.schemas.response import ResponseSchema
from OrderBridge.services.pricing import PricingService

router = APIRouter()


@router.post("/price-order", response_model=ResponseSchema)
async def price_order(request: PriceOrderRequest, pricing_service: PricingService = Depends(get_pricing_service)):
    """
    Price every line of an order and return the annotated lines.

    Lines the supplier could not price come back with pricingState "Error"
    and a reason; the call itself only reports an error when the supplier
    could not be reached at all.
    """
    order = request.full_order if request.full_order is not None else request.line_items
    if order is None:
        raise InvalidRequestError("fullOrder or lineItems is required", parameter="fullOrder")

    priced = await pricing_service.price_order(request.supplier, order, environment=request.env)
    if not priced.success:
        return ResponseSchema(status="error", message=priced.error or "Pricing failed", data=priced.to_dict())

    return ResponseSchema(
        status="success",
        message=f"Priced {priced.to_dict()['pricedCount']} of {len(priced.items)} lines",
        data=priced.to_dict(),
    )

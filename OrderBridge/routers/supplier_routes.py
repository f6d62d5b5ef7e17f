"""
Supplier Routes

The gateway action surface (login / getPricing / order) and the
per-supplier pricing entry point that reuses a session from an earlier login.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from OrderBridge.dependencies import get_gateway, get_pricing_service
from OrderBridge.exceptions import OrderBridgeException, log_exception
from OrderBridge.schemas.order_schemas import GatewayRequest
from OrderBridge.schemas.response import ResponseSchema
from OrderBridge.services.gateway import SupplierGateway
from OrderBridge.services.gateway.supplier_gateway import status_code_for
from OrderBridge.services.pricing import PricingService
from OrderBridge.suppliers import SupplierRegistry

router = APIRouter()


@router.get("/", response_model=ResponseSchema[List[str]])
async def get_available_suppliers():
    """Get list of available supplier keys"""
    suppliers = SupplierRegistry.get_available_suppliers()
    return ResponseSchema(
        status="success",
        message=f"Found {len(suppliers)} available suppliers",
        data=suppliers,
    )


@router.post("/proxy")
async def supplier_proxy(request: GatewayRequest, gateway: SupplierGateway = Depends(get_gateway)):
    """Dispatch one gateway action; the HTTP status is the gateway's statusCode"""
    result = await gateway.dispatch(request.supplier_key, request.env, request.action, request.payload)
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.post("/{supplier}/pricing")
async def supplier_pricing(
    supplier: str,
    payload: Dict[str, Any] = Body(...),
    pricing_service: PricingService = Depends(get_pricing_service),
):
    """
    Price an order with a token (ABC, SRS) or cookie (BEACON) from a prior login.

    Body: ``{env, token | cookies, fullOrder}``
    """
    environment = payload.get("env")
    try:
        return await pricing_service.supplier_pricing(supplier, payload, environment)
    except OrderBridgeException as e:
        log_exception(e, context=f"POST /api/suppliers/{supplier}/pricing")
        return JSONResponse(
            status_code=status_code_for(e),
            content={"success": False, "error": e.message, "environment": environment},
        )

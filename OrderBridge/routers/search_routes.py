from fastapi import APIRouter, Depends

from OrderBridge.dependencies import get_search_service
from OrderBridge.schemas.order_schemas import ProductSearchRequest
from OrderBridge.services.search import ProductSearchService

router = APIRouter()


@router.post("/search")
async def search_products(
    request: ProductSearchRequest, search_service: ProductSearchService = Depends(get_search_service)
):
    """
    Search the cached product index, falling back to the live supplier API.

    Always 200 for operational failures (``fallback: true``); only a missing
    or unsupported supplier is rejected.
    """
    page = await search_service.search(
        request.supplier,
        q=request.q,
        page_size=request.page_size,
        cursor=request.cursor,
        filters=request.filters,
        environment=request.env,
    )
    return page.to_dict()

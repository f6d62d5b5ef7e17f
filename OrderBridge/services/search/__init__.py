from .field_discovery import FieldDiscoveryCache, get_field_discovery_cache, normalize_field_name
from .product_search_service import (
    ProductSearchService,
    SearchCursor,
    SearchPage,
    SearchStep,
    prepare_for_display,
)
from .retry import is_client_error, retry_with_backoff

__all__ = [
    "FieldDiscoveryCache",
    "get_field_discovery_cache",
    "normalize_field_name",
    "ProductSearchService",
    "SearchCursor",
    "SearchPage",
    "SearchStep",
    "prepare_for_display",
    "is_client_error",
    "retry_with_backoff",
]

# Router imports
from . import (
    supplier_routes,
    pricing_routes,
    search_routes,
    order_routes,
)

__all__ = [
    "supplier_routes",
    "pricing_routes",
    "search_routes",
    "order_routes",
]

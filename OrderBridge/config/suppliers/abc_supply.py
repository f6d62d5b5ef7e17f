"""
ABC Supply Configuration

Endpoints, account identifiers and cached-search settings for ABC Supply.
"""

from typing import Dict, Any

ABC_CONFIG: Dict[str, Any] = {
    "supplier_name": "ABC",
    "display_name": "ABC Supply Co.",
    "description": "Roofing, siding and window distributor with OAuth2 partner APIs",
    "api_type": "rest",
    "timeout_seconds": 30,

    # Authentication requirements
    "auth_type": "oauth2_basic",
    "required_credentials": ["client_id", "client_secret"],
    "scope": "product.read pricing.read location.read account.read order.write",
    "search_scope": "product.read pricing.read",

    "custom_headers": {
        "Accept": "application/json",
        "Content-Type": "application/json"
    },

    # API endpoints, relative to the environment's apiBaseUrl
    "endpoints": {
        "pricing": "/api/pricing/v2/prices",
        "order": "/api/order/v2/orders",
        "search": "/product/v1/items",
    },

    # Fixed account identifiers for the single organization using this service
    "account": {
        "branch_number": "461",
        "ship_to_number": "2063975-2",
        "pricing_purpose": "estimating",
        "order_type_code": "SO",
        "delivery_service": "OTG",
    },

    # Default ship-to used when an order carries no delivery block
    "default_ship_to": {
        "number": "855712",
        "name": "ABC Supply",
        "address": {"line1": "123 Main St", "city": "Anytown", "state": "CA", "postal": "12345"},
        "contact": {"name": "John Doe", "email": "john.doe@example.com", "phone": "1234567890"},
    },

    # Cached product index search settings
    "search": {
        "sku_fields": ["itemnumber"],
        "description_fields": ["description", "family"],
        "page_size": 20,
        "primary_key": "id",
    },
}

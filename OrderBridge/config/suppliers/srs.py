"""
SRS Distribution Configuration

Endpoints, account identifiers and cached-search settings for SRS Distribution.
"""

from typing import Dict, Any

SRS_CONFIG: Dict[str, Any] = {
    "supplier_name": "SRS",
    "display_name": "SRS Distribution",
    "description": "Roofing distributor exposing OAuth2 product and pricing APIs",
    "api_type": "rest",
    "timeout_seconds": 30,

    # Authentication requirements. Credentials travel in the form body, not a Basic header.
    "auth_type": "oauth2_body",
    "required_credentials": ["client_id", "client_secret"],
    "scope": "ALL",

    "custom_headers": {
        "Accept": "application/json",
        "Content-Type": "application/json"
    },

    "endpoints": {
        "pricing": "/products/v2/price",
        "search": "/products/v2/catalog",
    },

    "account": {
        "source_system": "RHINO",
        "customer_code": "RCO207",
        "branch_code": "SSSAN",
        "transaction_id": "SPR-1",
        "job_account_number": 1,
        "default_uom": "PC",
    },

    # Order submission is not wired to a live SRS endpoint yet
    "order_integration": False,

    "search": {
        "sku_fields": ["itemcode", "sku"],
        "description_fields": ["productname", "description"],
        "page_size": 20,
        "primary_key": "id",
    },
}

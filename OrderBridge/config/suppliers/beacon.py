"""
Beacon Building Products Configuration

Endpoints, login settings and cached-search settings for Beacon.
"""

from typing import Dict, Any

BEACON_CONFIG: Dict[str, Any] = {
    "supplier_name": "BEACON",
    "display_name": "Beacon Building Products",
    "description": "Building products distributor with a cookie-session REST API",
    "api_type": "rest",
    "timeout_seconds": 30,

    # Authentication requirements
    "auth_type": "cookie_session",
    "required_credentials": ["username", "password"],

    "custom_headers": {
        "Accept": "application/json",
        "Content-Type": "application/json"
    },

    "endpoints": {
        "login": "/v1/rest/com/becn/login",
        "pricing": "/v1/rest/com/becn/pricing",
        "search": "/v1/rest/com/becn/products",
    },

    "login": {
        "site_id": "homeSite",
        "persistent_login_type": "RememberMe",
        "user_agent": "desktop",
        "default_api_site_id": "UAT",
    },

    # Order submission is not wired to a live Beacon endpoint yet
    "order_integration": False,

    "search": {
        "sku_fields": ["itemnumber", "sku"],
        "description_fields": ["description", "name"],
        "page_size": 20,
        "primary_key": "id",
    },
}

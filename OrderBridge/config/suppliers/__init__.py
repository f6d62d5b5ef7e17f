"""
Supplier Configuration Module

Static per-supplier settings. Secrets never live here: credential bundles
are resolved from environment variables by OrderBridge.config.credentials.
"""

from typing import Dict, Any
import logging

from .abc_supply import ABC_CONFIG
from .srs import SRS_CONFIG
from .beacon import BEACON_CONFIG

logger = logging.getLogger(__name__)

# Registry of all supported suppliers, keyed by supplier key
SUPPLIER_REGISTRY: Dict[str, Dict[str, Any]] = {
    "ABC": ABC_CONFIG,
    "SRS": SRS_CONFIG,
    "BEACON": BEACON_CONFIG,
}


def get_supplier_config(supplier_name: str) -> Dict[str, Any]:
    """
    Get configuration for a specific supplier

    Args:
        supplier_name: Supplier key (ABC, SRS, BEACON), case-insensitive

    Returns:
        Supplier configuration dictionary

    Raises:
        KeyError: If supplier not found
    """
    key = (supplier_name or "").strip().upper()
    if key not in SUPPLIER_REGISTRY:
        available = ", ".join(SUPPLIER_REGISTRY.keys())
        raise KeyError(f"Supplier '{supplier_name}' not found. Available: {available}")

    return SUPPLIER_REGISTRY[key]


def get_search_config(supplier_name: str) -> Dict[str, Any]:
    """Get the cached-search block (field lists, page size, primary key) for a supplier."""
    return get_supplier_config(supplier_name)["search"]


__all__ = [
    "SUPPLIER_REGISTRY",
    "ABC_CONFIG",
    "SRS_CONFIG",
    "BEACON_CONFIG",
    "get_supplier_config",
    "get_search_config",
]

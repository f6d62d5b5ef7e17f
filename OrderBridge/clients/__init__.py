"""
Outbound clients for OrderBridge.

ServiceHTTPClient is the one aiohttp wrapper every supplier adapter and the
CRM client send requests through.
"""

from .http_client import HTTPResponse, RetryConfig, ServiceHTTPClient

__all__ = ["HTTPResponse", "RetryConfig", "ServiceHTTPClient"]

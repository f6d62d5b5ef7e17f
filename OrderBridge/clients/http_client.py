"""
Unified HTTP Client for Supplier and CRM Calls

Provides consistent HTTP operations for every outbound integration:
- Session management with automatic cleanup
- Defensive null safety for JSON responses
- Multi-valued Set-Cookie capture for cookie-session logins
- Transport failures raised as typed connection errors

Each call is a single attempt. Retrying belongs to the product search ladder,
never to pricing or ordering.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Union, List

import aiohttp

from OrderBridge.exceptions import SupplierConnectionError

logger = logging.getLogger(__name__)


@dataclass
class HTTPResponse:
    """Standardized HTTP response wrapper"""
    status: int
    data: Dict[str, Any]
    headers: Dict[str, str]
    url: str
    duration_ms: int
    success: bool = True
    reason: Optional[str] = None
    error_message: Optional[str] = None
    raw_content: Optional[str] = None
    set_cookies: List[str] = field(default_factory=list)

    @classmethod
    def from_aiohttp_response(
        cls,
        response: aiohttp.ClientResponse,
        data: Dict[str, Any],
        duration_ms: int,
        raw_content: Optional[str] = None,
    ):
        """Create HTTPResponse from aiohttp response"""
        return cls(
            status=response.status,
            data=data,
            headers=dict(response.headers),
            url=str(response.url),
            duration_ms=duration_ms,
            success=200 <= response.status < 300,
            reason=response.reason,
            raw_content=raw_content,
            set_cookies=list(response.headers.getall("Set-Cookie", [])),
        )

    def error_text(self) -> str:
        """
        Best available error description, preferring the remote service's own
        error or message field over the generic HTTP reason.
        """
        data = self.data or {}
        for key in ("error", "message"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
        return self.reason or self.error_message or f"HTTP {self.status}"


@dataclass
class RetryConfig:
    """Backoff settings for callers that retry on their own"""
    max_retries: int = 3
    base_delay: float = 0.5  # Initial delay in seconds
    max_delay: float = 5.0  # Maximum delay in seconds
    backoff_factor: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)"""
        return min(self.base_delay * (self.backoff_factor ** attempt), self.max_delay)


class ServiceHTTPClient:
    """
    HTTP client shared by supplier adapters and the CRM client.

    Usage:
        async with ServiceHTTPClient("ABC") as client:
            response = await client.post(url, json_data=body, headers=auth_headers)
    """

    def __init__(
        self,
        service_name: str,
        default_timeout: int = 30,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        self.service_name = service_name
        self.default_timeout = default_timeout
        self.default_headers = default_headers or {}

        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if not self._session or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.default_timeout, sock_connect=10)
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30, enable_cleanup_closed=True)
            self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self._session

    def _safe_json_parse(self, response_text: str) -> Dict[str, Any]:
        """
        Safely parse JSON response with defensive null handling.

        Lists are wrapped as {"items": [...]}, primitives as {"value": ...}.
        """
        try:
            if not response_text:
                return {}

            parsed = json.loads(response_text)

            if parsed is None:
                return {}

            if isinstance(parsed, dict):
                return parsed
            elif isinstance(parsed, list):
                return {"items": parsed}
            else:
                return {"value": parsed}

        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning(f"Failed to parse JSON response for {self.service_name}: {e}")
            return {}

    async def _make_request(self, method: str, url: str, **kwargs) -> HTTPResponse:
        """Issue one request. Transport failures raise SupplierConnectionError."""
        start_time = time.time()
        try:
            session = await self._get_session()
            async with session.request(method, url, **kwargs) as response:
                duration_ms = int((time.time() - start_time) * 1000)
                response_text = await response.text()
                data = self._safe_json_parse(response_text)
                http_response = HTTPResponse.from_aiohttp_response(
                    response, data, duration_ms, raw_content=response_text
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{method} {url} failed for {self.service_name}: {type(e).__name__}: {e}")
            raise SupplierConnectionError(
                f"{self.service_name} request failed: {e or type(e).__name__}",
                supplier_name=self.service_name,
                endpoint=url,
            ) from e

        if not http_response.success:
            logger.warning(f"{method} {url} returned {http_response.status} for {self.service_name}")
        else:
            logger.debug(f"{method} {url} -> {http_response.status} in {http_response.duration_ms}ms")

        return http_response

    def _merge_headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        request_headers = {**self.default_headers}
        if headers:
            request_headers.update(headers)
        return request_headers

    # ========== Public API Methods ==========

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> HTTPResponse:
        """Make GET request"""
        return await self._make_request("GET", url, headers=self._merge_headers(headers), params=params, **kwargs)

    async def post(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[Union[Dict[str, Any], str, bytes, aiohttp.FormData]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> HTTPResponse:
        """Make POST request"""
        return await self._make_request(
            "POST", url, headers=self._merge_headers(headers), data=data, json=json_data, **kwargs
        )

    async def patch(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> HTTPResponse:
        """Make PATCH request"""
        return await self._make_request("PATCH", url, headers=self._merge_headers(headers), json=json_data, **kwargs)

    # ========== Cleanup ==========

    async def close(self):
        """Close HTTP session and cleanup resources"""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug(f"Closed HTTP session for {self.service_name}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

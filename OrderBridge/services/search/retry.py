"""
Exponential backoff for the product search ladder.

Client errors (4xx) fail fast; everything else is retried up to
``RetryConfig.max_retries`` times with delays of 0.5s, 1s, 2s... capped at 5s.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from OrderBridge.clients.http_client import RetryConfig
from OrderBridge.exceptions import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEARCH_RETRY_CONFIG = RetryConfig(max_retries=3, base_delay=0.5, max_delay=5.0, backoff_factor=2.0)


def is_client_error(exc: Exception) -> bool:
    """True for failures that retrying cannot fix"""
    if isinstance(exc, (ValidationError, ConfigurationError)):
        return True
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    return isinstance(status, int) and 400 <= status < 500


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    retry_config: Optional[RetryConfig] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    description: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds, it raises a client error, or the
    retries are exhausted. The last exception propagates.
    """
    config = retry_config or SEARCH_RETRY_CONFIG

    for attempt in range(config.max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            if is_client_error(e):
                logger.warning(f"{description} failed with a client error, not retrying: {e}")
                raise
            if attempt >= config.max_retries:
                logger.error(f"{description} failed after {attempt + 1} attempts: {e}")
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                f"{description} failed ({e}), retrying in {delay:.2f}s "
                f"(attempt {attempt + 1}/{config.max_retries + 1})"
            )
            await sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover

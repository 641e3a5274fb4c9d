"""Exponential backoff for calls to delegated LLM services.

Source collection does not retry: a failed query is logged and skipped.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_HTTP_CODES = {429, 500, 502, 503, 504}
RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)
# anthropic SDK errors, matched by name so this module does not import it
RETRYABLE_SDK_ERRORS = {
    "RateLimitError",
    "OverloadedError",
    "InternalServerError",
    "APIConnectionError",
    "APITimeoutError",
}


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, RETRYABLE_EXCEPTIONS):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_HTTP_CODES
    return type(exc).__name__ in RETRYABLE_SDK_ERRORS


def _backoff(exc: Exception, attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before the next attempt; honours Retry-After on HTTP errors."""
    if isinstance(exc, httpx.HTTPStatusError):
        retry_after = exc.response.headers.get("retry-after")
        if retry_after:
            try:
                return min(float(retry_after), max_delay)
            except ValueError:
                pass
    return min(base_delay * (2**attempt), max_delay)


async def retry_async(
    fn,
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    **kwargs,
):
    """Call an async function, retrying transient failures.

    Retries timeouts, connection errors, HTTP 429/5xx and the SDK's
    rate-limit/overload errors. Anything else propagates immediately.
    """
    for attempt in range(max_retries + 1):
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            if not _is_retryable(exc) or attempt == max_retries:
                raise
            delay = _backoff(exc, attempt, base_delay, max_delay)
            logger.warning(
                "Retry %d/%d after %s (waiting %.1fs)",
                attempt + 1, max_retries, type(exc).__name__, delay,
            )
            await asyncio.sleep(delay)

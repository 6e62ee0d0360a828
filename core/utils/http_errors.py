"""HTTP error taxonomy and the resilient fetch primitive.

Outcomes of ``fetch_with_retry``:
- 2xx: returned immediately
- 404: returned as-is; callers treat it as "not found", not as an error
- RETRYABLE_STATUS_CODES and transport errors: retried with exponential
  backoff plus random jitter, up to ``max_attempts``
- anything else: ``FatalHttpError`` raised immediately
- retries exhausted: ``RetryExhaustedError``
"""

import asyncio
import logging
import random
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
DEFAULT_MAX_ATTEMPTS = 5


class FetchError(Exception):
    """Base class for fatal fetch failures."""

    def __init__(self, message: str, url: str, status_code: int | None = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class FatalHttpError(FetchError):
    """Non-retryable, non-404 HTTP status."""

    pass


class RetryExhaustedError(FetchError):
    """Retryable failure persisted through every attempt."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        attempts: int = 0,
    ):
        self.attempts = attempts
        super().__init__(message, url, status_code)


def backoff_delay(attempt: int, base_delay: float = 1.0, jitter: float = 1.0) -> float:
    """Delay before the next attempt: base * 2**attempt + uniform(0, jitter)."""
    return base_delay * (2**attempt) + random.uniform(0, jitter)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict[str, Any]] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = 1.0,
    jitter: float = 1.0,
) -> httpx.Response:
    """GET ``url`` with bounded exponential-backoff retry.

    Args:
        client: httpx.AsyncClient instance
        url: Absolute URL or path relative to the client's base_url
        params: Query parameters
        max_attempts: Total attempts including the first
        base_delay: Seconds for the first backoff step
        jitter: Upper bound of the uniform random addition, in seconds

    Returns:
        A 2xx or 404 response

    Raises:
        FatalHttpError: Non-retryable status
        RetryExhaustedError: Retryable status or transport error on every attempt
    """
    last_status: int | None = None
    last_error: Exception | None = None

    for attempt in range(max_attempts):
        try:
            response = await client.get(url, params=params)
        except httpx.TransportError as e:
            last_error = e
            last_status = None
            logger.warning(
                f"Transport error on attempt {attempt + 1}/{max_attempts} for {url}: {e}"
            )
        else:
            if response.is_success:
                logger.debug(f"GET {url} -> {response.status_code} (attempt {attempt + 1})")
                return response

            if response.status_code == 404:
                logger.debug(f"Resource not found (404), continuing: {url}")
                return response

            if response.status_code not in RETRYABLE_STATUS_CODES:
                logger.error(f"Fatal status {response.status_code} for {url}")
                raise FatalHttpError(
                    f"Fatal API error: status {response.status_code} for {url}",
                    url=url,
                    status_code=response.status_code,
                )

            last_status = response.status_code
            last_error = None

        if attempt < max_attempts - 1:
            delay = backoff_delay(attempt, base_delay, jitter)
            logger.info(
                f"Retryable failure ({last_status or type(last_error).__name__}) for {url}, "
                f"retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    logger.error(f"Giving up on {url} after {max_attempts} attempts (last status {last_status})")
    raise RetryExhaustedError(
        f"API continued to fail after {max_attempts} attempts"
        + (f" with status {last_status}" if last_status else f": {last_error}"),
        url=url,
        status_code=last_status,
        attempts=max_attempts,
    ) from last_error

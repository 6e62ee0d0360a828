"""Core utilities for async HTTP clients, retrying fetches and concurrency."""

from .async_context import AsyncContextManager
from .async_http_client import (
    BaseAsyncHttpClient,
    cleanup_all_clients,
    register_cleanup,
)
from .concurrency import chunked, run_with_concurrency
from .http_errors import (
    RETRYABLE_STATUS_CODES,
    FatalHttpError,
    FetchError,
    RetryExhaustedError,
    fetch_with_retry,
)

__all__ = [
    "AsyncContextManager",
    "BaseAsyncHttpClient",
    "cleanup_all_clients",
    "register_cleanup",
    "chunked",
    "run_with_concurrency",
    "RETRYABLE_STATUS_CODES",
    "FetchError",
    "FatalHttpError",
    "RetryExhaustedError",
    "fetch_with_retry",
]

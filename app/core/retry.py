from __future__ import annotations

from collections.abc import Callable
from typing import Any

import psycopg
import structlog
from psycopg_pool import PoolTimeout
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from app.core.config import settings
from app.core.errors import StoreUnavailableError

logger = structlog.get_logger(__name__)

# Connection-level failures only; query errors (syntax, constraint) are not transient.
TRANSIENT_STORE_ERRORS: tuple[type[BaseException], ...] = (
    psycopg.OperationalError,
    PoolTimeout,
    StoreUnavailableError,
)


def _log_store_retry(service: str) -> Callable[[RetryCallState], None]:
    def _log(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome is not None else None
        logger.warning(
            "store_retry",
            service=service,
            attempt=state.attempt_number,
            error_type=type(error).__name__ if error else None,
            reason=str(error) if error else None,
        )

    return _log


def retryable(service: str, attempts: int | None = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Retry a store call on transient connection errors with jittered backoff.

    Backoff settings are read when the decorator is applied.
    """
    return retry(
        retry=retry_if_exception_type(TRANSIENT_STORE_ERRORS),
        stop=stop_after_attempt(attempts or settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_backoff_initial,
            max=settings.retry_backoff_max,
        ),
        before_sleep=_log_store_retry(service),
        reraise=True,
    )

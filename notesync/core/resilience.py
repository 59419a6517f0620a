"""
Resilience Infrastructure.

Circuit breaker listener, retry callback, and composed resilience patterns
for calls to the remote store.

The composed resilience stack is applied in this order (outside-in):
    Retry (tenacity, caller side, idempotent ops only) → Circuit Breaker
    (aiobreaker, inside the remote client) → Timeout (httpx) → Call

The repositories never retry on their own. Retrying is opted into by the
caller, e.g. the sync manager re-issuing an idempotent upsert:

    retrying = transient_retry(max_attempts=3, multiplier=0.5, max_wait=8)
    await retrying(repo.upsert, note, owner_id, category)
"""

from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import aiobreaker
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from notesync.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RemoteStoreError,
    TransientError,
    ValidationError,
)
from notesync.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Failures that say something about the request, not the health of the store.
NON_TRIPPING_ERRORS: tuple[type[Exception], ...] = (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RemoteStoreError,
    ValidationError,
)


class ResilienceLogger(aiobreaker.CircuitBreakerListener):
    """Circuit breaker listener that emits structured resilience events.

    Every state transition is logged with a standardized set of fields
    so that resilience events can be filtered and aggregated:

        jq 'select(.resilience_event != null)' logs/system.jsonl
    """

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency

    def state_change(self, cb: aiobreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        event_map = {
            "open": "circuit_breaker_opened",
            "half-open": "circuit_breaker_half_open",
            "closed": "circuit_breaker_closed",
        }
        new_str = str(getattr(new_state, "state", new_state)).lower().rsplit(".", 1)[-1]
        new_str = new_str.replace("_", "-")
        event = event_map.get(new_str, f"circuit_breaker_{new_str}")
        log_level = "error" if new_str == "open" else "info"

        getattr(logger, log_level)(
            f"Circuit breaker {self.dependency}: {old_state} → {new_state}",
            extra={
                "resilience_event": event,
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
            },
        )

    def failure(self, cb: aiobreaker.CircuitBreaker, exception: Exception) -> None:
        logger.warning(
            f"Circuit breaker {self.dependency}: failure recorded",
            extra={
                "resilience_event": "circuit_breaker_failure",
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
                "error": str(exception),
            },
        )


def log_retry(retry_state: Any) -> None:
    """Tenacity before_sleep callback that emits structured retry events.

    Args:
        retry_state: tenacity.RetryCallState instance
    """
    duration_ms = None
    if retry_state.outcome_timestamp and retry_state.start_time:
        duration_ms = round(
            (retry_state.outcome_timestamp - retry_state.start_time) * 1000
        )

    error = None
    if retry_state.outcome and retry_state.outcome.failed:
        error = str(retry_state.outcome.exception())

    fn_name = getattr(retry_state.fn, "__name__", "unknown")

    logger.warning(
        f"Retrying {fn_name} (attempt {retry_state.attempt_number})",
        extra={
            "resilience_event": "retry_attempt",
            "dependency": fn_name,
            "attempt": retry_state.attempt_number,
            "duration_ms": duration_ms,
            "error": error,
        },
    )


def create_circuit_breaker(
    dependency: str,
    fail_max: int = 5,
    timeout_duration: int = 30,
) -> aiobreaker.CircuitBreaker:
    """Create a circuit breaker with structured logging.

    Request-level failures (auth, conflict, not found) are excluded so
    only transport trouble opens the circuit.

    Args:
        dependency: Name of the external dependency (for logging)
        fail_max: Number of failures before opening
        timeout_duration: Seconds to wait before half-open test

    Returns:
        Configured CircuitBreaker instance
    """
    return aiobreaker.CircuitBreaker(
        fail_max=fail_max,
        timeout_duration=timedelta(seconds=timeout_duration),
        exclude=list(NON_TRIPPING_ERRORS),
        listeners=[ResilienceLogger(dependency)],
    )


def transient_retry(
    max_attempts: int = 3,
    multiplier: float = 0.5,
    max_wait: float = 8,
) -> Callable[..., Awaitable[Any]]:
    """Build a caller-side retry wrapper for idempotent remote operations.

    Only TransientError is retried; every other class propagates on the
    first attempt.

    Returns:
        Coroutine function ``retrying(fn, *args, **kwargs)``
    """

    async def retrying(fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=multiplier, max=max_wait),
            retry=retry_if_exception_type(TransientError),
            before_sleep=log_retry,
            reraise=True,
        ):
            with attempt:
                return await fn(*args, **kwargs)
        raise AssertionError("unreachable")  # pragma: no cover

    return retrying

"""Bounded retry and best-effort call policies for upstream calls."""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhausted(Exception):
    """Every attempt of a retried call failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Gave up after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 1.0,
    retry_on: Callable[[Exception], bool] | None = None,
    label: str = "upstream call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call ``fn`` until it succeeds or ``attempts`` are used up.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt.
        attempts: Maximum number of attempts (at least 1).
        delay: Seconds to wait before the second attempt.
        backoff: Multiplier applied to the delay after each failed attempt
            (1.0 = fixed delay).
        retry_on: Predicate deciding whether an exception is retryable.
            Non-retryable exceptions propagate immediately. Defaults to
            retrying every ``Exception``.
        label: Name used in log messages.
        sleep: Awaitable sleep, injectable for tests.

    Returns:
        The first successful result.

    Raises:
        RetryExhausted: when the last attempt fails.
    """
    attempts = max(1, attempts)
    wait = delay
    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as exc:  # pylint: disable=broad-except
            if retry_on is not None and not retry_on(exc):
                raise
            if attempt == attempts:
                raise RetryExhausted(attempts, exc) from exc
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                label, attempt, attempts, exc, wait,
            )
            await sleep(wait)
            wait *= backoff
    raise AssertionError("unreachable")


@dataclass(frozen=True)
class BestEffortResult(Generic[T]):
    """Outcome of a call whose failure must not block the caller."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def best_effort(
    call: Awaitable[T],
    *,
    label: str,
    tolerate: tuple[type[Exception], ...] = (Exception,),
) -> BestEffortResult[T]:
    """Await ``call``; log and capture tolerated failures instead of raising.

    Used for writes that should happen before a read (e.g. portfolio sync
    before profit/loss) where the read must still run if the write fails.
    """
    try:
        return BestEffortResult(value=await call)
    except tolerate as exc:
        logger.warning("%s failed; continuing without it: %s", label, exc)
        return BestEffortResult(error=exc)

"""Bounded retry with linearly increasing delay for unreliable operations.

Unlike a raising retry decorator, the helper here never raises: the
operation reports success through a structured result, and exceptions are
folded into failed results so callers can inspect partial failure.

Example:
    policy = RetryPolicy(max_attempts=3, base_delay=3.0)
    result, attempts = await retry_until_success_async(
        lambda: storer.store_once(video_id, index_id),
        policy,
        on_error=lambda e: StoreResult(success=False, message=str(e)),
        describe=f"store embeddings for {video_id}",
    )

Backoff schedule (with base_delay=3.0):
    Attempt 1: immediate
    Attempt 2: 3s delay
    Attempt 3: 6s delay
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol, TypeVar

logger = logging.getLogger(__name__)


class Outcome(Protocol):
    """Anything that reports success with an optional message."""

    success: bool
    message: str | None


R = TypeVar("R", bound=Outcome)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry bounds for an operation.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Delay unit in seconds; attempt N waits N * base_delay
    """

    max_attempts: int = 3
    base_delay: float = 3.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return attempt * self.base_delay


async def retry_until_success_async(
    operation: Callable[[], Awaitable[R]],
    policy: RetryPolicy,
    on_error: Callable[[Exception], R],
    describe: str = "operation",
) -> tuple[R, int]:
    """Run an async operation until it reports success or attempts run out.

    Args:
        operation: Zero-argument coroutine factory returning an Outcome
        policy: Retry bounds
        on_error: Converts a raised exception into a failed Outcome
        describe: Human-readable name used in log messages

    Returns:
        Tuple of (last result, attempts made)
    """
    result: R | None = None
    attempt = 0

    while attempt < policy.max_attempts:
        attempt += 1
        try:
            result = await operation()
        except Exception as e:
            logger.warning(f"{describe} attempt {attempt}/{policy.max_attempts} raised: {e}")
            result = on_error(e)

        if result.success:
            if attempt > 1:
                logger.info(f"{describe} succeeded on attempt {attempt}")
            return result, attempt

        if attempt < policy.max_attempts:
            delay = policy.delay_for(attempt)
            logger.info(
                f"{describe} attempt {attempt} failed: {result.message or 'unknown error'}. "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    logger.warning(f"{describe} failed after {policy.max_attempts} attempts")
    return result, attempt

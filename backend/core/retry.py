import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def exponential_backoff(base_seconds: float = 1.0) -> Callable[[int], float]:
    """Delay before attempt ``k`` (k >= 2) is ``base * 2 ** (k - 2)``: 1s, 2s, 4s..."""

    def _delay(attempt: int) -> float:
        if attempt < 2:
            return 0.0
        return base_seconds * (2 ** (attempt - 2))

    return _delay


class RetryPolicy:
    """Bounded retry with a pluggable backoff function.

    ``sleep`` is injectable so the policy can be exercised without waiting.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: Optional[Callable[[int], float]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        label: str = "operation",
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff = backoff or exponential_backoff()
        self.sleep = sleep
        self.label = label

    def delay_before(self, attempt: int) -> float:
        return self.backoff(attempt)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                wait_s = self.delay_before(attempt)
                logger.info(f"{self.label}: retrying in {wait_s:g}s (attempt {attempt}/{self.max_attempts})")
                await self.sleep(wait_s)
            try:
                return await operation()
            except Exception as e:
                last_error = e
                logger.warning(f"{self.label} failed (attempt {attempt}/{self.max_attempts}): {e}")
        logger.error(f"{self.label} failed after {self.max_attempts} attempts")
        raise last_error

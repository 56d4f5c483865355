"""Bounded exponential backoff for calls to rate-limited model services."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

from .errors import RateLimitError

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Retry an async callable on rate-limit errors with exponential backoff.

    The first call is not a retry: with ``max_retries=3`` a callable may be
    invoked up to four times. Delays start at ``initial_delay`` seconds and
    double after every retry. Errors other than :class:`RateLimitError`
    propagate from the first attempt.
    """

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 2.0,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """Initialize retry policy.

        Args:
            max_retries: Maximum number of retries after the first attempt
            initial_delay: Delay before the first retry, in seconds
            sleep: Awaitable sleep function (defaults to asyncio.sleep)
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep or asyncio.sleep

    def delays(self) -> List[float]:
        """Return the backoff schedule, one entry per possible retry."""
        return [self.initial_delay * (2**attempt) for attempt in range(self.max_retries)]

    async def call(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Await ``fn(*args, **kwargs)``, retrying on rate limiting.

        Returns:
            Whatever ``fn`` returns on its first successful attempt

        Raises:
            RateLimitError: If the call is still rate limited after all retries
        """
        delay = self.initial_delay
        attempt = 0

        while True:
            try:
                return await fn(*args, **kwargs)
            except RateLimitError as e:
                if attempt >= self.max_retries:
                    logger.error(f"Rate limited after {attempt} retries, giving up: {e}")
                    raise

                attempt += 1
                logger.warning(
                    f"Rate limited (retry {attempt}/{self.max_retries}), "
                    f"retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)
                delay *= 2

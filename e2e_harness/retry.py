"""Command-level polling and test-level retry budgets."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from e2e_harness.config import HarnessConfig, Mode
from e2e_harness.errors import AssertionTimeout

DEFAULT_POLL_INTERVAL = 0.05


async def poll_until[T](
    read: Callable[[], Awaitable[T]],
    accept: Callable[[T], bool],
    *,
    description: str,
    expected: object,
    timeout: float,
    interval: float = DEFAULT_POLL_INTERVAL,
) -> T:
    """Poll ``read`` until ``accept`` holds for its value.

    ``read`` runs at least once, even with a zero timeout.

    Args:
        read: Returns the current observed value
        accept: Decides whether the observed value satisfies the assertion
        description: What is being observed, used in the failure message
        expected: Expected value, used in the failure message
        timeout: Maximum wait time in seconds
        interval: Seconds between reads

    Returns:
        The first accepted value

    Raises:
        AssertionTimeout: With the last observed value once the timeout elapses

    """
    deadline = asyncio.get_event_loop().time() + timeout

    while True:
        value = await read()
        if accept(value):
            return value

        if asyncio.get_event_loop().time() >= deadline:
            raise AssertionTimeout(
                description, expected=expected, actual=value, timeout=timeout
            )

        await asyncio.sleep(interval)


@dataclass(frozen=True, kw_only=True)
class RetryPolicy:
    """Number of times a failed test is re-executed."""

    retries: int = 0

    @classmethod
    def for_mode(cls, config: HarnessConfig, mode: Mode) -> "RetryPolicy":
        return cls(retries=config.retries.for_mode(mode))

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def should_retry(self, attempt_number: int, passed: bool) -> bool:
        """Return True if another attempt follows attempt ``attempt_number``."""
        return not passed and attempt_number < self.max_attempts

"""Page object for the counter application."""

from collections.abc import Mapping
from dataclasses import dataclass

from e2e_harness.commands import Commands

SELECTORS: Mapping[str, str] = {
    "counter": "#counter",
    "increment": "#increment-btn",
    "decrement": "#decrement-btn",
}


@dataclass(frozen=True, kw_only=True)
class CounterPage:
    """Intention-revealing operations over the counter's selector contract.

    Nothing is cached between calls; every assertion reads the live page.
    """

    commands: Commands

    async def visit(self) -> None:
        await self.commands.visit("/")

    async def assert_value(self, n: int) -> None:
        """Wait until the counter displays ``n``.

        Raises:
            ValueError: If ``n`` is not a non-negative integer
            AssertionTimeout: If the display never shows ``n``

        """
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ValueError(f"Counter values are non-negative integers, got {n!r}")
        await self.commands.should_have_text(SELECTORS["counter"], str(n))

    async def increment_by(self, times: int = 1) -> None:
        await self._click_repeatedly(SELECTORS["increment"], times)

    async def decrement_by(self, times: int = 1) -> None:
        await self._click_repeatedly(SELECTORS["decrement"], times)

    async def _click_repeatedly(self, selector: str, times: int) -> None:
        if times < 0:
            raise ValueError(f"Click count must be non-negative, got {times}")
        for _ in range(times):
            await self.commands.click(selector)

"""Retrying UI commands on top of a browser engine."""

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from yarl import URL

from e2e_harness.engines.base import BrowserEngine
from e2e_harness.models.result import CommandStats
from e2e_harness.retry import DEFAULT_POLL_INTERVAL, poll_until

log = logging.getLogger(__name__)

SPECIAL_KEYS: Mapping[str, str] = {
    "enter": "Enter",
    "tab": "Tab",
    "esc": "Escape",
    "backspace": "Backspace",
    "space": "Space",
    "uparrow": "ArrowUp",
    "downarrow": "ArrowDown",
    "leftarrow": "ArrowLeft",
    "rightarrow": "ArrowRight",
}

KEY_SEQUENCE_PATTERN = re.compile(r"\{(\w+)\}")


def resolve_url(base_url: str, path: str) -> str:
    """Resolve ``path`` against ``base_url``; absolute URLs pass through."""
    target = URL(path)
    if target.is_absolute():
        return str(target)

    base = URL(base_url)
    if not base.path.endswith("/"):
        base = base.with_path(base.path + "/")
    return str(base.join(URL(path.lstrip("/"))))


def parse_keys(keys: str) -> Sequence[tuple[str, str]]:
    """Split a key string into ``("key", name)`` and ``("text", chars)`` parts.

    ``"ab{enter}"`` becomes ``[("text", "ab"), ("key", "Enter")]``.
    """
    parts: list[tuple[str, str]] = []
    position = 0
    for match in KEY_SEQUENCE_PATTERN.finditer(keys):
        if match.start() > position:
            parts.append(("text", keys[position : match.start()]))
        name = match.group(1).lower()
        if name not in SPECIAL_KEYS:
            raise ValueError(f"Unknown special key sequence: {{{name}}}")
        parts.append(("key", SPECIAL_KEYS[name]))
        position = match.end()
    if position < len(keys):
        parts.append(("text", keys[position:]))
    return parts


@dataclass(kw_only=True)
class CommandTimings:
    """Per-command count and total duration for the run report."""

    _totals: dict[str, list[float]] = field(default_factory=dict)

    def add(self, command: str, duration: float) -> None:
        entry = self._totals.setdefault(command, [0, 0.0])
        entry[0] += 1
        entry[1] += duration

    def snapshot(self) -> Mapping[str, CommandStats]:
        return {
            name: CommandStats(count=int(count), total=total)
            for name, (count, total) in sorted(self._totals.items())
        }


@dataclass(frozen=True, kw_only=True)
class Commands:
    """UI commands with per-command timeouts.

    Assertions poll the live page until they hold or ``command_timeout``
    elapses. Actions rely on the engine's actionability checks bounded by
    ``click_timeout``.
    """

    engine: BrowserEngine
    base_url: str
    command_timeout: float = 8.0
    click_timeout: float = 4.0
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timings: CommandTimings = field(default_factory=CommandTimings)

    @asynccontextmanager
    async def _command(self, name: str, subject: str) -> AsyncIterator[None]:
        log.debug("%s %s", name, subject)
        started = asyncio.get_event_loop().time()
        try:
            yield
        finally:
            self.timings.add(name, asyncio.get_event_loop().time() - started)

    async def visit(self, path: str = "/") -> None:
        """Navigate to ``path`` relative to the base URL."""
        url = resolve_url(self.base_url, path)
        async with self._command("visit", url):
            await self.engine.goto(url, timeout=self.command_timeout)

    async def should_have_text(self, selector: str, text: str) -> str | None:
        """Wait until the element's text content equals ``text``."""
        async with self._command("should.have.text", f"{selector} {text!r}"):
            return await poll_until(
                lambda: self.engine.text_content(selector),
                lambda actual: actual == text,
                description=f"text of {selector}",
                expected=text,
                timeout=self.command_timeout,
                interval=self.poll_interval,
            )

    async def should_be_visible(self, selector: str) -> None:
        async with self._command("should.be.visible", selector):
            await poll_until(
                lambda: self.engine.is_visible(selector),
                bool,
                description=f"visibility of {selector}",
                expected=True,
                timeout=self.command_timeout,
                interval=self.poll_interval,
            )

    async def should_be_enabled(self, selector: str) -> None:
        async with self._command("should.be.enabled", selector):
            await poll_until(
                lambda: self.engine.is_enabled(selector),
                bool,
                description=f"enabled state of {selector}",
                expected=True,
                timeout=self.command_timeout,
                interval=self.poll_interval,
            )

    async def should_be_focused(self, element_id: str) -> None:
        """Wait until the element with id ``element_id`` has keyboard focus."""
        async with self._command("focused.should.have.id", element_id):
            await poll_until(
                self.engine.focused_element_id,
                lambda actual: actual == element_id,
                description="id of the focused element",
                expected=element_id,
                timeout=self.command_timeout,
                interval=self.poll_interval,
            )

    async def click(self, selector: str, *, force: bool = False) -> None:
        async with self._command("click", selector):
            await self.engine.click(selector, timeout=self.click_timeout, force=force)

    async def dblclick(self, selector: str) -> None:
        async with self._command("dblclick", selector):
            await self.engine.dblclick(selector, timeout=self.click_timeout)

    async def focus(self, selector: str) -> None:
        async with self._command("focus", selector):
            await self.engine.focus(selector, timeout=self.click_timeout)

    async def type(self, selector: str, keys: str) -> None:
        """Type into the element; ``{enter}``-style sequences press named keys."""
        parts = parse_keys(keys)
        async with self._command("type", f"{selector} {keys!r}"):
            for kind, value in parts:
                if kind == "key":
                    await self.engine.press(
                        selector, value, timeout=self.click_timeout
                    )
                else:
                    await self.engine.type_text(
                        selector, value, timeout=self.click_timeout
                    )

"""Run-wide and per-test execution contexts."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from e2e_harness.bridge import TaskBridge
from e2e_harness.commands import Commands
from e2e_harness.config import HarnessConfig, Mode
from e2e_harness.pages.counter import CounterPage
from e2e_harness.retry import RetryPolicy
from e2e_harness.tree import HookNode, HookPhase

log = logging.getLogger(__name__)
command_log = logging.getLogger("e2e_harness.log")


@dataclass(frozen=True, kw_only=True)
class RunContext:
    """State populated once at process start and shared by every spec file.

    ``support_hooks`` come from the support file. Its ``beforeAllSpecs`` and
    ``afterAllSpecs`` hooks are replayed around each spec file; nothing runs
    once per whole run.
    """

    config: HarnessConfig
    mode: Mode
    commands: Commands
    bridge: TaskBridge
    retry_policy: RetryPolicy
    support_hooks: Sequence[HookNode] = ()
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def support_hooks_for(self, phase: HookPhase) -> Sequence[HookNode]:
        return [hook for hook in self.support_hooks if hook.phase is phase]

    def test_context(self, scope: str) -> "TestContext":
        return TestContext(
            scope=scope,
            commands=self.commands,
            page=CounterPage(commands=self.commands),
            bridge=self.bridge,
        )


@dataclass(frozen=True, kw_only=True)
class TestContext:
    """What a test or hook body can use."""

    __test__ = False

    scope: str
    commands: Commands
    page: CounterPage
    bridge: TaskBridge

    async def task(self, name: str, payload: Any = None) -> Any:
        """Send a task to the host process and return its result."""
        return await self.bridge.send(name, payload)

    def log(self, message: str) -> None:
        """Add a message to the command log of the current test."""
        command_log.info("[%s] %s", self.scope, message)

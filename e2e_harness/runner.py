"""Spec runner: walks spec files, suites and tests in declaration order."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from e2e_harness.bridge import TaskBridge, TaskHandler
from e2e_harness.commands import Commands, CommandTimings
from e2e_harness.config import HarnessConfig, Mode
from e2e_harness.context import RunContext
from e2e_harness.engines.base import BrowserEngine
from e2e_harness.errors import HookError, RunnerFatal
from e2e_harness.hooks import HookDispatcher
from e2e_harness.loader import load_spec_file, load_support_file, spec_name
from e2e_harness.models.result import Attempt, AttemptStatus, SuitePath, TestKey
from e2e_harness.reporting.artifacts import screenshot_path
from e2e_harness.reporting.collector import ReportCollector
from e2e_harness.retry import RetryPolicy
from e2e_harness.tree import SpecFile, SuiteNode, TestNode, iter_suite_tests

log = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    "passed": "✓",
    "failed": "✗",
    "errored": "!",
}


def _elapsed(started: float) -> float:
    return asyncio.get_event_loop().time() - started


def _now() -> float:
    return asyncio.get_event_loop().time()


@dataclass(frozen=True, kw_only=True)
class SpecRunner:
    """Runs spec files one at a time and feeds results to the collector."""

    run_context: RunContext
    collector: ReportCollector

    @property
    def dispatcher(self) -> HookDispatcher:
        return HookDispatcher(run_context=self.run_context)

    async def run(self, paths: Sequence[Path]) -> None:
        """Load and run each spec file in the given order."""
        log.info("Running %d spec file(s)...", len(paths))
        for path in paths:
            await self.run_path(path)

    async def run_path(self, path: Path) -> None:
        """Load and run one spec file; load errors mark only that file errored."""
        root = self.run_context.config.project_root
        try:
            spec = await load_spec_file(path, root)
        except (FileNotFoundError, ValueError) as e:
            name = spec_name(path, root)
            log.error("Could not load %s: %s", name, e)
            self.collector.start_spec(name, path)
            self.collector.record_spec_error(name, str(e))
            return
        await self.run_spec(spec)

    async def run_spec(self, spec: SpecFile) -> None:
        """Drive one spec file from setup to teardown."""
        log.info("Running: %s (%d test(s))", spec.name, len(spec.declared_keys()))
        self.collector.declare(spec)
        started = _now()

        try:
            await self.dispatcher.spec_setup(spec)
        except HookError as e:
            self.collector.record_spec_error(spec.name, str(e))
            for suite_path, test in spec.iter_tests():
                self._record_errored(spec, suite_path, test, e)
        else:
            await self._run_children(spec, spec.children, (), ())

        try:
            await self.dispatcher.spec_teardown(spec)
        except HookError as e:
            self.collector.record_spec_error(spec.name, str(e))

        self.collector.finish_spec(spec.name, _elapsed(started))
        log.info("Finished: %s", spec.name)

    async def _run_children(
        self,
        spec: SpecFile,
        children: Sequence[SuiteNode | TestNode],
        suites: Sequence[SuiteNode],
        path: SuitePath,
    ) -> None:
        for child in children:
            if isinstance(child, TestNode):
                await self._run_test(spec, suites, path, child)
            else:
                await self._run_suite(spec, suites, path, child)

    async def _run_suite(
        self,
        spec: SpecFile,
        suites: Sequence[SuiteNode],
        path: SuitePath,
        suite: SuiteNode,
    ) -> None:
        suite_path = (*path, suite.title)
        scope = " ".join(suite_path)
        log.info("Suite: %s", scope)

        try:
            await self.dispatcher.suite_setup(suite, scope)
        except HookError as e:
            self.collector.record_suite_error(spec.name, suite_path, str(e))
            for test_path, test in iter_suite_tests(suite, suite_path):
                self._record_errored(spec, test_path, test, e)
        else:
            await self._run_children(spec, suite.children, (*suites, suite), suite_path)

        try:
            await self.dispatcher.suite_teardown(suite, scope)
        except HookError as e:
            self.collector.record_suite_error(spec.name, suite_path, str(e))

    async def _run_test(
        self,
        spec: SpecFile,
        suites: Sequence[SuiteNode],
        path: SuitePath,
        test: TestNode,
    ) -> None:
        key = TestKey(spec=spec.name, suite_path=path, title=test.title)
        policy = self.run_context.retry_policy
        number = 0

        while True:
            number += 1
            attempt = await self._run_attempt(spec, suites, key, test, number)
            outcome = self.collector.record_attempt(key, attempt)
            if not policy.should_retry(number, attempt.status == "passed"):
                break
            log.warning(
                "Retrying %s (attempt %d of %d) after: %s",
                key.full_title,
                number + 1,
                policy.max_attempts,
                attempt.error,
            )

        log.info(
            "%s %s (%.0fms)",
            STATUS_SYMBOLS[outcome.status],
            key.full_title,
            outcome.duration * 1000,
        )

    async def _run_attempt(
        self,
        spec: SpecFile,
        suites: Sequence[SuiteNode],
        key: TestKey,
        test: TestNode,
        number: int,
    ) -> Attempt:
        """Run setup hooks, body and teardown hooks once.

        The failure screenshot is taken before teardown hooks run.
        """
        scope = key.full_title
        started = _now()
        status: AttemptStatus = "passed"
        error: Exception | None = None
        screenshot: Path | None = None

        try:
            await self.dispatcher.test_setup(spec, suites, scope)
        except HookError as e:
            status, error = "errored", e
        else:
            try:
                await test.body(self.run_context.test_context(scope))
            except Exception as e:
                log.debug("Attempt %d of %s failed", number, scope, exc_info=e)
                status, error = "failed", e

        if error is not None:
            screenshot = await self._capture_failure(key, number)

        try:
            await self.dispatcher.test_teardown(spec, suites, scope)
        except HookError as e:
            if error is None:
                status, error = "errored", e
                screenshot = await self._capture_failure(key, number)

        return make_attempt(number, status, _elapsed(started), error, screenshot)

    def _record_errored(
        self, spec: SpecFile, suite_path: SuitePath, test: TestNode, error: HookError
    ) -> None:
        key = TestKey(spec=spec.name, suite_path=suite_path, title=test.title)
        self.collector.record_attempt(key, make_attempt(1, "errored", 0.0, error, None))
        log.info(
            "%s %s (not run: hook failed)", STATUS_SYMBOLS["errored"], key.full_title
        )

    async def _capture_failure(self, key: TestKey, number: int) -> Path | None:
        config = self.run_context.config
        if not config.screenshot_on_failure:
            return None
        path = screenshot_path(
            config.screenshots_dir,
            key,
            number,
            overwrite=config.reporter_options.overwrite,
        )
        try:
            return await self.run_context.commands.engine.screenshot(path)
        except Exception as e:
            log.warning("Could not capture screenshot for %s: %s", key.full_title, e)
            return None


def make_attempt(
    number: int,
    status: AttemptStatus,
    duration: float,
    error: Exception | None,
    screenshot: Path | None,
) -> Attempt:
    """Build an attempt, lifting expected/actual values out of the error."""
    cause: BaseException | None = error
    if isinstance(error, HookError):
        cause = error.cause
    return Attempt(
        number=number,
        status=status,
        duration=duration,
        error=str(error) if error is not None else None,
        error_type=type(error).__name__ if error is not None else None,
        expected=getattr(cause, "expected", None),
        actual=getattr(cause, "actual", None),
        screenshot=screenshot,
    )


async def run_specs(
    *,
    config: HarnessConfig,
    mode: Mode,
    engine: BrowserEngine,
    spec_paths: Sequence[Path],
    collector: ReportCollector,
    timings: CommandTimings,
    task_handlers: Mapping[str, TaskHandler] | None = None,
) -> None:
    """Set up the run context once, then run every spec file.

    Raises:
        RunnerFatal: If the support file cannot be loaded

    """
    support_hooks = ()
    if (support_path := config.support_path) is not None and support_path.exists():
        try:
            support_hooks = await load_support_file(support_path)
        except ValueError as e:
            raise RunnerFatal(f"Could not load support file: {e}") from e

    commands = Commands(
        engine=engine,
        base_url=config.base_url,
        command_timeout=config.command_timeout,
        click_timeout=config.click_timeout,
        timings=timings,
    )

    async with TaskBridge(task_handlers) as bridge:
        run_context = RunContext(
            config=config,
            mode=mode,
            commands=commands,
            bridge=bridge,
            retry_policy=RetryPolicy.for_mode(config, mode),
            support_hooks=support_hooks,
        )
        await SpecRunner(run_context=run_context, collector=collector).run(spec_paths)

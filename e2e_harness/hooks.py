"""Lifecycle hook dispatch."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from e2e_harness.context import RunContext
from e2e_harness.errors import HookError
from e2e_harness.tree import HookNode, HookPhase, SpecFile, SuiteNode

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class HookDispatcher:
    """Runs ordered hook sets for a phase and scope.

    The first failing hook stops the remaining hooks of that phase for that
    scope and surfaces as ``HookError``.
    """

    run_context: RunContext

    async def run(
        self, phase: HookPhase, hooks: Sequence[HookNode], scope: str
    ) -> None:
        """Run ``hooks`` in order.

        Raises:
            HookError: Wrapping the first exception raised by a hook body

        """
        for hook in hooks:
            log.debug('Running "%s" hook for "%s"', phase, scope)
            ctx = self.run_context.test_context(scope)
            try:
                await hook.body(ctx)
            except Exception as e:
                log.warning('"%s" hook for "%s" failed: %s', phase, scope, e)
                raise HookError(str(phase), scope, e) from e

    async def spec_setup(self, spec: SpecFile) -> None:
        """Run support ``beforeAllSpecs``, then ``beforeEachSpec`` hooks."""
        before_all = self.run_context.support_hooks_for(HookPhase.BEFORE_ALL_SPECS)
        if before_all:
            log.info(
                '"%s" hooks run once per spec file, now for %s',
                HookPhase.BEFORE_ALL_SPECS,
                spec.name,
            )
        await self.run(HookPhase.BEFORE_ALL_SPECS, before_all, spec.name)
        await self.run(
            HookPhase.BEFORE_EACH_SPEC,
            [
                *self.run_context.support_hooks_for(HookPhase.BEFORE_EACH_SPEC),
                *spec.hooks_for(HookPhase.BEFORE_EACH_SPEC),
            ],
            spec.name,
        )

    async def spec_teardown(self, spec: SpecFile) -> None:
        """Run ``afterEachSpec`` hooks, then support ``afterAllSpecs``.

        Both phases run even if the first one fails; the first error wins.
        """
        errors: list[HookError] = []
        for phase, hooks in (
            (
                HookPhase.AFTER_EACH_SPEC,
                [
                    *spec.hooks_for(HookPhase.AFTER_EACH_SPEC),
                    *self.run_context.support_hooks_for(HookPhase.AFTER_EACH_SPEC),
                ],
            ),
            (
                HookPhase.AFTER_ALL_SPECS,
                self.run_context.support_hooks_for(HookPhase.AFTER_ALL_SPECS),
            ),
        ):
            try:
                await self.run(phase, hooks, spec.name)
            except HookError as e:
                errors.append(e)
        if errors:
            raise errors[0]

    async def suite_setup(self, suite: SuiteNode, scope: str) -> None:
        await self.run(
            HookPhase.BEFORE_SUITE, suite.hooks_for(HookPhase.BEFORE_SUITE), scope
        )

    async def suite_teardown(self, suite: SuiteNode, scope: str) -> None:
        await self.run(
            HookPhase.AFTER_SUITE, suite.hooks_for(HookPhase.AFTER_SUITE), scope
        )

    async def test_setup(
        self, spec: SpecFile, suites: Sequence[SuiteNode], scope: str
    ) -> None:
        """Run ``beforeEachTest`` hooks from the outermost scope inwards."""
        chain = per_test_hooks(
            self.run_context, spec, suites, HookPhase.BEFORE_EACH_TEST
        )
        await self.run(HookPhase.BEFORE_EACH_TEST, chain, scope)

    async def test_teardown(
        self, spec: SpecFile, suites: Sequence[SuiteNode], scope: str
    ) -> None:
        """Run ``afterEachTest`` hooks from the innermost scope outwards."""
        chain = per_test_hooks(
            self.run_context, spec, suites, HookPhase.AFTER_EACH_TEST
        )
        await self.run(HookPhase.AFTER_EACH_TEST, chain, scope)


def per_test_hooks(
    run_context: RunContext,
    spec: SpecFile,
    suites: Sequence[SuiteNode],
    phase: HookPhase,
) -> Sequence[HookNode]:
    """Collect per-test hooks: support, spec root, then suites outer to inner.

    ``afterEachTest`` chains are returned in reverse scope order, with each
    scope's own hooks kept in declaration order.
    """
    scopes: list[Sequence[HookNode]] = [
        run_context.support_hooks_for(phase),
        spec.hooks_for(phase),
        *(suite.hooks_for(phase) for suite in suites),
    ]
    if phase is HookPhase.AFTER_EACH_TEST:
        scopes.reverse()
    return [hook for hooks in scopes for hook in hooks]


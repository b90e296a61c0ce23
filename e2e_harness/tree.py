"""Executable tree of spec files, suites, tests and hooks.

The tree is built completely before execution starts and is then walked by
the runner; nothing registers itself at run time.
"""

from collections.abc import Awaitable, Callable, Iterator, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from e2e_harness.models.result import SuitePath, TestKey

if TYPE_CHECKING:
    from e2e_harness.context import TestContext

type Body = Callable[["TestContext"], Awaitable[None]]


class HookPhase(StrEnum):
    """Lifecycle phases a hook can be bound to."""

    BEFORE_ALL_SPECS = "beforeAllSpecs"
    AFTER_ALL_SPECS = "afterAllSpecs"
    BEFORE_EACH_SPEC = "beforeEachSpec"
    AFTER_EACH_SPEC = "afterEachSpec"
    BEFORE_SUITE = "beforeSuite"
    AFTER_SUITE = "afterSuite"
    BEFORE_EACH_TEST = "beforeEachTest"
    AFTER_EACH_TEST = "afterEachTest"


SUITE_PHASES = frozenset({HookPhase.BEFORE_SUITE, HookPhase.AFTER_SUITE})
RUN_PHASES = frozenset({HookPhase.BEFORE_ALL_SPECS, HookPhase.AFTER_ALL_SPECS})


@dataclass(frozen=True, kw_only=True)
class HookNode:
    """A callback bound to a lifecycle phase."""

    phase: HookPhase
    body: Body
    title: str | None = None


@dataclass(frozen=True, kw_only=True)
class TestNode:
    """A leaf executable unit."""

    __test__ = False

    title: str
    body: Body


@dataclass(frozen=True, kw_only=True)
class SuiteNode:
    """A named group of tests and nested suites with its own hooks."""

    title: str
    children: Sequence["SuiteNode | TestNode"] = ()
    hooks: Sequence[HookNode] = ()

    def hooks_for(self, phase: HookPhase) -> Sequence[HookNode]:
        return [hook for hook in self.hooks if hook.phase is phase]


def _check_unique_titles(
    children: Sequence[SuiteNode | TestNode], scope: str
) -> None:
    seen: set[tuple[str, str]] = set()
    for child in children:
        kind = "test" if isinstance(child, TestNode) else "suite"
        if (kind, child.title) in seen:
            raise ValueError(f"Duplicate {kind} title '{child.title}' in {scope}")
        seen.add((kind, child.title))
        if isinstance(child, SuiteNode):
            _check_unique_titles(child.children, f"suite '{child.title}'")


@dataclass(frozen=True, kw_only=True)
class SpecFile:
    """One discovered spec file and its suite tree.

    Sibling tests and sibling suites must have distinct titles, since a
    test's report entry is keyed by its spec, suite path and title.
    """

    path: Path
    name: str
    children: Sequence[SuiteNode | TestNode] = ()
    hooks: Sequence[HookNode] = ()

    def __post_init__(self) -> None:
        _check_unique_titles(self.children, self.name)

    def hooks_for(self, phase: HookPhase) -> Sequence[HookNode]:
        return [hook for hook in self.hooks if hook.phase is phase]

    def iter_tests(self) -> Iterator[tuple[SuitePath, TestNode]]:
        """Yield every test with its suite path, depth-first in declaration order."""
        yield from _walk(self.children, ())

    def declared_keys(self) -> Sequence[TestKey]:
        return [
            TestKey(spec=self.name, suite_path=path, title=test.title)
            for path, test in self.iter_tests()
        ]


def _walk(
    children: Sequence[SuiteNode | TestNode], path: SuitePath
) -> Iterator[tuple[SuitePath, TestNode]]:
    for child in children:
        if isinstance(child, TestNode):
            yield path, child
        else:
            yield from _walk(child.children, (*path, child.title))


def iter_suite_tests(
    suite: SuiteNode, path: SuitePath
) -> Iterator[tuple[SuitePath, TestNode]]:
    """Yield every test below ``suite``; ``path`` must include the suite title."""
    yield from _walk(suite.children, path)

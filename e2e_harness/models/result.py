"""Models for test attempts, outcomes and run reports."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

type AttemptStatus = Literal["passed", "failed", "errored"]
type SpecStatus = Literal["passed", "failed", "errored"]
type SuitePath = tuple[str, ...]


@dataclass(frozen=True, kw_only=True)
class TestKey:
    """Identity of a declared test: spec name, suite path and title."""

    __test__ = False

    spec: str
    suite_path: SuitePath
    title: str

    @property
    def full_title(self) -> str:
        return " ".join((*self.suite_path, self.title))


@dataclass(frozen=True, kw_only=True)
class Attempt:
    """One execution of a test body."""

    number: int
    status: AttemptStatus
    duration: float
    error: str | None = None
    error_type: str | None = None
    expected: Any = None
    actual: Any = None
    screenshot: Path | None = None


@dataclass(kw_only=True)
class TestOutcome:
    """Final verdict for a test; the last attempt is authoritative."""

    __test__ = False

    key: TestKey
    attempts: list[Attempt] = field(default_factory=list)

    @property
    def status(self) -> AttemptStatus:
        return self.attempts[-1].status

    @property
    def duration(self) -> float:
        return sum(attempt.duration for attempt in self.attempts)

    @property
    def terminal(self) -> Attempt:
        return self.attempts[-1]


@dataclass(kw_only=True)
class SpecResult:
    """Results collected for one spec file."""

    spec: str
    path: Path
    outcomes: list[TestOutcome] = field(default_factory=list)
    error: str | None = None
    suite_errors: dict[SuitePath, str] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def status(self) -> SpecStatus:
        if self.error is not None or self.suite_errors:
            return "errored"
        if any(outcome.status == "errored" for outcome in self.outcomes):
            return "errored"
        if any(outcome.status == "failed" for outcome in self.outcomes):
            return "failed"
        return "passed"


@dataclass(frozen=True, kw_only=True)
class CommandStats:
    """Aggregated durations for one command name."""

    count: int
    total: float

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0


@dataclass(frozen=True, kw_only=True)
class RunMetadata:
    """Run-level settings recorded alongside the results."""

    base_url: str
    mode: Literal["batch", "interactive"]
    engine: str
    command_timeout_ms: int
    retries: int
    command_durations: Mapping[str, CommandStats] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class RunReport:
    """Aggregated results of a run, grouped by spec file."""

    metadata: RunMetadata
    specs: Sequence[SpecResult]
    started_at: datetime
    finished_at: datetime
    anomalies: Sequence[TestKey] = ()
    aborted: str | None = None

    @property
    def outcomes(self) -> Sequence[TestOutcome]:
        return [outcome for spec in self.specs for outcome in spec.outcomes]

    @property
    def duration(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def has_failures(self) -> bool:
        return (
            self.aborted is not None
            or bool(self.anomalies)
            or any(spec.status != "passed" for spec in self.specs)
        )

"""Incremental collection of attempts into a run report."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from e2e_harness.models.result import (
    Attempt,
    RunMetadata,
    RunReport,
    SpecResult,
    SuitePath,
    TestKey,
    TestOutcome,
)
from e2e_harness.reporting.serialize import format_attempt
from e2e_harness.tree import SpecFile

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class ReportCollector:
    """Accumulates results as they happen.

    Every recorded event is also appended to ``stream_path`` as a JSON line
    right away, so a crashed run still leaves its results behind.
    """

    stream_path: Path | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _specs: dict[str, SpecResult] = field(default_factory=dict)
    _outcomes: dict[TestKey, TestOutcome] = field(default_factory=dict)
    _declared: list[TestKey] = field(default_factory=list)

    def start_spec(self, name: str, path: Path) -> SpecResult:
        if name not in self._specs:
            self._specs[name] = SpecResult(spec=name, path=path)
            self._stream({"event": "spec", "spec": name, "path": str(path)})
        return self._specs[name]

    def declare(self, spec: SpecFile) -> None:
        """Register a spec file and the tests it declares."""
        self.start_spec(spec.name, spec.path)
        self._declared.extend(spec.declared_keys())

    def record_attempt(self, key: TestKey, attempt: Attempt) -> TestOutcome:
        outcome = self._outcomes.get(key)
        if outcome is None:
            outcome = TestOutcome(key=key)
            self._outcomes[key] = outcome
            self._specs[key.spec].outcomes.append(outcome)
        outcome.attempts.append(attempt)
        self._stream(
            {
                "event": "attempt",
                "spec": key.spec,
                "suite_path": list(key.suite_path),
                "title": key.title,
                **format_attempt(attempt),
            }
        )
        return outcome

    def record_spec_error(self, spec: str, message: str) -> None:
        result = self._specs[spec]
        if result.error is None:
            result.error = message
            self._stream({"event": "spec_error", "spec": spec, "error": message})

    def record_suite_error(
        self, spec: str, suite_path: SuitePath, message: str
    ) -> None:
        result = self._specs[spec]
        if suite_path not in result.suite_errors:
            result.suite_errors[suite_path] = message
            self._stream(
                {
                    "event": "suite_error",
                    "spec": spec,
                    "suite_path": list(suite_path),
                    "error": message,
                }
            )

    def finish_spec(self, spec: str, duration: float) -> None:
        self._specs[spec].duration = duration

    def missing_outcomes(self) -> Sequence[TestKey]:
        return [key for key in self._declared if key not in self._outcomes]

    def finish(self, metadata: RunMetadata, aborted: str | None = None) -> RunReport:
        """Build the report from everything recorded so far."""
        anomalies = self.missing_outcomes()
        for key in anomalies:
            log.error("No outcome recorded for declared test: %s", key.full_title)
        return RunReport(
            metadata=metadata,
            specs=list(self._specs.values()),
            started_at=self.started_at,
            finished_at=datetime.now(timezone.utc),
            anomalies=anomalies,
            aborted=aborted,
        )

    def _stream(self, event: dict[str, Any]) -> None:
        if self.stream_path is None:
            return
        self.stream_path.parent.mkdir(parents=True, exist_ok=True)
        with self.stream_path.open("a", encoding="utf-8") as stream:
            stream.write(json.dumps(event, default=str) + "\n")

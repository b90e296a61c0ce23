"""Machine-readable form of a run report."""

from collections.abc import Sequence
from typing import Any

from e2e_harness.models.result import (
    Attempt,
    RunReport,
    SpecResult,
    SuitePath,
    TestOutcome,
)


def format_attempt(attempt: Attempt) -> dict[str, Any]:
    return {
        "number": attempt.number,
        "status": attempt.status,
        "duration": attempt.duration,
        "error": attempt.error,
        "error_type": attempt.error_type,
        "expected": attempt.expected,
        "actual": attempt.actual,
        "screenshot": str(attempt.screenshot) if attempt.screenshot else None,
    }


def format_test(outcome: TestOutcome) -> dict[str, Any]:
    return {
        "title": outcome.key.title,
        "full_title": outcome.key.full_title,
        "status": outcome.status,
        "duration": outcome.duration,
        "attempts": [format_attempt(attempt) for attempt in outcome.attempts],
    }


def _suite_node(title: str) -> dict[str, Any]:
    return {"title": title, "error": None, "tests": [], "suites": []}


def _find_suite(root: dict[str, Any], path: SuitePath) -> dict[str, Any]:
    node = root
    for title in path:
        for child in node["suites"]:
            if child["title"] == title:
                node = child
                break
        else:
            child = _suite_node(title)
            node["suites"].append(child)
            node = child
    return node


def format_spec(result: SpecResult) -> dict[str, Any]:
    """Group a spec's outcomes by suite, keeping declaration order."""
    root = _suite_node(result.spec)
    for outcome in result.outcomes:
        _find_suite(root, outcome.key.suite_path)["tests"].append(format_test(outcome))
    for suite_path, error in result.suite_errors.items():
        _find_suite(root, suite_path)["error"] = error

    return {
        "spec": result.spec,
        "path": str(result.path),
        "status": result.status,
        "error": result.error,
        "duration": result.duration,
        "tests": root["tests"],
        "suites": root["suites"],
    }


def count_statuses(outcomes: Sequence[TestOutcome]) -> dict[str, int]:
    return {
        "passed": sum(1 for o in outcomes if o.status == "passed"),
        "failed": sum(1 for o in outcomes if o.status == "failed"),
        "errored": sum(1 for o in outcomes if o.status == "errored"),
    }


def format_report(report: RunReport) -> dict[str, Any]:
    """Format a run report for JSON output."""
    outcomes = report.outcomes
    metadata = report.metadata
    return {
        "stats": {
            "specs": len(report.specs),
            "tests": len(outcomes),
            **count_statuses(outcomes),
            "retried": sum(1 for o in outcomes if len(o.attempts) > 1),
            "anomalies": len(report.anomalies),
            "start": report.started_at.isoformat(),
            "end": report.finished_at.isoformat(),
            "duration": report.duration,
        },
        "meta": {
            "base_url": metadata.base_url,
            "mode": metadata.mode,
            "engine": metadata.engine,
            "command_timeout_ms": metadata.command_timeout_ms,
            "retries": metadata.retries,
            "command_durations": {
                name: {"count": stats.count, "total": stats.total}
                for name, stats in metadata.command_durations.items()
            },
        },
        "results": [format_spec(spec) for spec in report.specs],
        "anomalies": [
            {
                "spec": key.spec,
                "suite_path": list(key.suite_path),
                "title": key.title,
            }
            for key in report.anomalies
        ],
        "aborted": report.aborted,
    }

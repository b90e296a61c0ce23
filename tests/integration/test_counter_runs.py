"""Integration tests: full runs over spec files against the in-memory counter."""

import logging

import pytest

from e2e_harness.commands import CommandTimings
from e2e_harness.config import HarnessConfig
from e2e_harness.reporting import ReportCollector
from e2e_harness.runner import run_specs
from e2e_harness.testing.counter import CounterEngineConfig, FakeCounterEngine

from .conftest import RunFn, WriteSpecFn


@pytest.mark.parametrize("times", [0, 1, 4, 12])
async def test_increment_by_reaches_expected_value(
    times: int,
    run_harness: RunFn,
    write_spec: WriteSpecFn,
    project_config: HarnessConfig,
) -> None:
    """inc k from 0 is followed by see k."""
    spec = write_spec(
        "inc.spec.yaml",
        f"""
tests:
  - title: increment by {times}
    steps:
      - visit: /
      - see: 0
      - inc: {times}
      - see: {times}
""",
    )

    report = await run_harness(project_config, [spec], FakeCounterEngine())

    assert [o.status for o in report.outcomes] == ["passed"]


async def test_repeated_assertions_do_not_change_state(
    run_harness: RunFn, write_spec: WriteSpecFn, project_config: HarnessConfig
) -> None:
    """Asserting the same value several times leaves the counter unchanged."""
    engine = FakeCounterEngine()
    spec = write_spec(
        "idempotent.spec.yaml",
        """
tests:
  - title: see is idempotent
    steps:
      - visit: /
      - inc: 3
      - see: 3
      - see: 3
      - see: 3
""",
    )

    report = await run_harness(project_config, [spec], engine)

    assert report.has_failures is False
    assert engine.value == 3


async def test_increment_scenario_zero_one_five(
    run_harness: RunFn, write_spec: WriteSpecFn, project_config: HarnessConfig
) -> None:
    """visit, 0, inc, 1, inc 4, 5 succeeds on a correct counter."""
    spec = write_spec(
        "scenario.spec.yaml",
        """
suites:
  - title: Counter
    tests:
      - title: counts to five
        steps:
          - visit: /
          - see: 0
          - inc: 1
          - see: 1
          - inc: 4
          - see: 5
""",
    )

    report = await run_harness(project_config, [spec], FakeCounterEngine())

    (outcome,) = report.outcomes
    assert outcome.status == "passed"
    assert len(outcome.attempts) == 1


async def test_negative_counter_defect_is_reported(
    run_harness: RunFn, write_spec: WriteSpecFn, project_config: HarnessConfig
) -> None:
    """Decrementing from 0 fails when the application goes negative."""
    spec = write_spec(
        "negative.spec.yaml",
        """
tests:
  - title: stays at zero
    steps:
      - visit: /
      - see: 0
      - dec: 1
      - see: 0
""",
    )
    engine = FakeCounterEngine(config=CounterEngineConfig(allow_negative=True))

    report = await run_harness(project_config, [spec], engine, mode="batch")

    (outcome,) = report.outcomes
    assert outcome.status == "failed"
    assert len(outcome.attempts) == 2
    assert outcome.terminal.expected == "0"
    assert outcome.terminal.actual == "-1"
    assert outcome.terminal.error_type == "AssertionTimeout"
    assert report.has_failures is True


async def test_flaky_render_passes_on_retry(
    run_harness: RunFn, write_spec: WriteSpecFn, project_config: HarnessConfig
) -> None:
    """A failed first attempt followed by a pass yields passed with 2 attempts."""
    spec = write_spec(
        "flaky.spec.yaml",
        """
tests:
  - title: loads eventually
    steps:
      - visit: /
      - see: 0
""",
    )
    engine = FakeCounterEngine(config=CounterEngineConfig(failing_visits=1))

    report = await run_harness(project_config, [spec], engine, mode="batch")

    (outcome,) = report.outcomes
    assert [a.status for a in outcome.attempts] == ["failed", "passed"]
    assert outcome.attempts[0].error_type == "NavigationError"
    assert outcome.status == "passed"


async def test_interactive_mode_does_not_retry(
    run_harness: RunFn, write_spec: WriteSpecFn, project_config: HarnessConfig
) -> None:
    """Interactive mode uses a zero retry budget by default."""
    spec = write_spec(
        "flaky.spec.yaml",
        "tests:\n  - title: loads\n    steps:\n      - visit: /\n",
    )
    engine = FakeCounterEngine(config=CounterEngineConfig(failing_visits=1))

    report = await run_harness(project_config, [spec], engine, mode="interactive")

    (outcome,) = report.outcomes
    assert len(outcome.attempts) == 1
    assert outcome.status == "failed"


async def test_run_level_hooks_fire_once_per_spec_file(
    run_harness: RunFn,
    write_spec: WriteSpecFn,
    project_config: HarnessConfig,
    task_log: list[object],
) -> None:
    """beforeAllSpecs and afterAllSpecs run around each spec file."""
    support = project_config.project_root / "support.yaml"
    support.write_text(
        """
hooks:
  beforeAllSpecs:
    - task: {name: log, arg: start}
  afterAllSpecs:
    - task: {name: log, arg: end}
"""
    )
    specs = [
        write_spec(f"{name}.spec.yaml", "tests:\n  - title: t\n    steps: []\n")
        for name in ("a", "b")
    ]
    config = project_config.model_copy(update={"support_file": support})

    await run_harness(config, specs, FakeCounterEngine())

    assert task_log == ["start", "end", "start", "end"]


async def test_report_has_one_entry_per_declared_test(
    run_harness: RunFn, write_spec: WriteSpecFn, project_config: HarnessConfig
) -> None:
    """Every declared test gets exactly one entry with at least one attempt."""
    spec = write_spec(
        "mixed.spec.yaml",
        """
hooks:
  beforeEachTest:
    - visit: /
suites:
  - title: Passing
    tests:
      - {title: one, steps: [{inc: 1}, {see: 1}]}
      - {title: two, steps: [{inc: 2}, {see: 2}]}
  - title: Broken setup
    hooks:
      beforeSuite:
        - click: "#missing-btn"
    tests:
      - {title: three, steps: [{see: 0}]}
    suites:
      - title: Nested
        tests:
          - {title: four, steps: [{see: 0}]}
  - title: Failing
    tests:
      - {title: five, steps: [{see: 9}]}
""",
    )

    report = await run_harness(project_config, [spec], FakeCounterEngine())

    assert [o.key.full_title for o in report.outcomes] == [
        "Passing one",
        "Passing two",
        "Broken setup three",
        "Broken setup Nested four",
        "Failing five",
    ]
    assert all(o.attempts for o in report.outcomes)
    assert [o.status for o in report.outcomes] == [
        "passed",
        "passed",
        "errored",
        "errored",
        "failed",
    ]
    assert report.anomalies == []


async def test_task_output_interleaves_with_lifecycle_logs(
    write_spec: WriteSpecFn,
    project_config: HarnessConfig,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Support task lines land inside each spec's lifecycle log lines."""
    support = project_config.project_root / "support.yaml"
    support.write_text(
        """
hooks:
  beforeAllSpecs:
    - task: {name: log, arg: start}
  afterAllSpecs:
    - task: {name: log, arg: end}
"""
    )
    specs = [
        write_spec(f"{name}.spec.yaml", "tests:\n  - title: t\n    steps: []\n")
        for name in ("a", "b")
    ]
    config = project_config.model_copy(update={"support_file": support})

    with caplog.at_level(logging.INFO):
        await run_specs(
            config=config,
            mode="batch",
            engine=FakeCounterEngine(),
            spec_paths=specs,
            collector=ReportCollector(),
            timings=CommandTimings(),
        )

    lines = [
        "passed" if record.getMessage().startswith("✓ t ") else record.getMessage()
        for record in caplog.records
        if record.name == "e2e_harness.tasks"
        or record.getMessage().startswith(("Running:", "✓", "Finished:"))
    ]
    assert lines == [
        "Running: e2e/a.spec.yaml (1 test(s))",
        "start",
        "passed",
        "end",
        "Finished: e2e/a.spec.yaml",
        "Running: e2e/b.spec.yaml (1 test(s))",
        "start",
        "passed",
        "end",
        "Finished: e2e/b.spec.yaml",
    ]


async def test_duplicate_titles_error_the_file_only(
    run_harness: RunFn, write_spec: WriteSpecFn, project_config: HarnessConfig
) -> None:
    """A file with same-titled sibling tests is errored; other files still run."""
    duplicate = write_spec(
        "a.spec.yaml",
        """
tests:
  - {title: same, steps: [{visit: /}, {see: 0}]}
  - {title: same, steps: [{visit: /}, {see: 9}]}
""",
    )
    good = write_spec("b.spec.yaml", "tests:\n  - {title: ok, steps: [{visit: /}]}\n")

    report = await run_harness(project_config, [duplicate, good], FakeCounterEngine())

    assert report.specs[0].status == "errored"
    assert "Duplicate test titles ['same']" in (report.specs[0].error or "")
    assert [o.key.title for o in report.outcomes] == ["ok"]
    assert report.has_failures is True

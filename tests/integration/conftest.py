"""Fixtures for integration tests."""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import pytest

from e2e_harness.commands import CommandTimings
from e2e_harness.config import HarnessConfig, Mode, load_config
from e2e_harness.models.result import RunReport
from e2e_harness.reporting import ReportCollector
from e2e_harness.runner import run_specs
from e2e_harness.testing.counter import FakeCounterEngine
from e2e_harness.testing.factories import RunMetadataFactory

EXAMPLE_PROJECT = Path(__file__).parents[2]


class RunFn(Protocol):
    """Protocol for the full-run helper."""

    async def __call__(
        self,
        config: HarnessConfig,
        spec_paths: Sequence[Path],
        engine: FakeCounterEngine,
        *,
        mode: Mode = "batch",
    ) -> RunReport:
        """Run the specs against the engine and return the report."""


class WriteSpecFn(Protocol):
    """Protocol for spec file creation function."""

    def __call__(self, name: str, content: str) -> Path:
        """Write a spec file into the project and return its path."""


@pytest.fixture
def task_log() -> list[object]:
    """Collect payloads of the log task."""
    return []


@pytest.fixture
def run_harness(task_log: list[object]) -> RunFn:
    """Return a function that runs specs end to end in memory."""

    async def _run(
        config: HarnessConfig,
        spec_paths: Sequence[Path],
        engine: FakeCounterEngine,
        *,
        mode: Mode = "batch",
    ) -> RunReport:
        collector = ReportCollector()
        await run_specs(
            config=config,
            mode=mode,
            engine=engine,
            spec_paths=spec_paths,
            collector=collector,
            timings=CommandTimings(),
            task_handlers={"log": task_log.append},
        )
        return collector.finish(RunMetadataFactory.build())

    return _run


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    (tmp_path / "e2e").mkdir()
    return tmp_path


@pytest.fixture
def write_spec(project: Path) -> WriteSpecFn:
    """Return a function to create spec files."""

    def _write(name: str, content: str) -> Path:
        path = project / "e2e" / name
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def project_config(project: Path) -> HarnessConfig:
    """Create a fast configuration rooted at the project."""
    return HarnessConfig(
        project_root=project,
        support_file=None,
        command_timeout_ms=100,
        click_timeout_ms=100,
        verify_server=False,
    )


@pytest.fixture
def example_config(tmp_path: Path) -> HarnessConfig:
    """Load the bundled example configuration with fast timeouts."""
    return load_config(
        EXAMPLE_PROJECT / "e2e.yaml",
        overrides={
            "command_timeout_ms": 100,
            "screenshots_folder": tmp_path / "screenshots",
            "verify_server": False,
        },
        environ={},
    )

"""Fixtures for unit tests."""

from collections.abc import AsyncGenerator, Iterator

import pytest
from aioresponses import aioresponses

from e2e_harness.bridge import TaskBridge
from e2e_harness.commands import Commands, CommandTimings
from e2e_harness.config import HarnessConfig
from e2e_harness.context import RunContext
from e2e_harness.retry import RetryPolicy
from e2e_harness.testing.counter import CounterEngineConfig, FakeCounterEngine

BASE_URL = "http://app.test"


@pytest.fixture
def engine() -> FakeCounterEngine:
    """Create an in-memory counter that does not go below zero."""
    return FakeCounterEngine()


@pytest.fixture
def buggy_engine() -> FakeCounterEngine:
    """Create an in-memory counter that goes below zero."""
    return FakeCounterEngine(config=CounterEngineConfig(allow_negative=True))


@pytest.fixture
def commands(engine: FakeCounterEngine) -> Commands:
    """Create commands with short timeouts against the fake engine."""
    return Commands(
        engine=engine,
        base_url=BASE_URL,
        command_timeout=0.1,
        click_timeout=0.1,
        poll_interval=0.01,
        timings=CommandTimings(),
    )


@pytest.fixture
def config() -> HarnessConfig:
    """Create a configuration with short timeouts."""
    return HarnessConfig(
        base_url=BASE_URL,
        command_timeout_ms=100,
        click_timeout_ms=100,
        support_file=None,
        screenshot_on_failure=False,
        verify_server=False,
    )


@pytest.fixture
async def bridge() -> AsyncGenerator[TaskBridge, None]:
    """Create a running task bridge."""
    async with TaskBridge() as running:
        yield running


@pytest.fixture
def run_context(
    config: HarnessConfig, commands: Commands, bridge: TaskBridge
) -> RunContext:
    """Create a run context without support hooks or retries."""
    return RunContext(
        config=config,
        mode="batch",
        commands=commands,
        bridge=bridge,
        retry_policy=RetryPolicy(retries=0),
    )


@pytest.fixture
def mock_http() -> Iterator[aioresponses]:
    """Intercept aiohttp requests."""
    with aioresponses() as mocked:
        yield mocked

"""Tests for polling and retry policies."""

import pytest

from e2e_harness.config import HarnessConfig, RetriesConfig
from e2e_harness.errors import AssertionTimeout
from e2e_harness.retry import RetryPolicy, poll_until


class TestPollUntil:
    """Tests for poll_until function."""

    async def test_returns_first_accepted_value(self) -> None:
        """Returns as soon as the read yields an accepted value."""
        values = iter(["0", "0", "1"])

        async def read() -> str:
            return next(values)

        result = await poll_until(
            read,
            lambda value: value == "1",
            description="text",
            expected="1",
            timeout=1.0,
            interval=0.001,
        )

        assert result == "1"

    async def test_raises_with_last_observed_value(self) -> None:
        """Raises AssertionTimeout carrying the last observed value."""
        calls: list[int] = []

        async def read() -> str:
            calls.append(1)
            return "-1"

        with pytest.raises(AssertionTimeout) as exc_info:
            await poll_until(
                read,
                lambda value: value == "0",
                description="text of #counter",
                expected="0",
                timeout=0.05,
                interval=0.01,
            )

        assert exc_info.value.expected == "0"
        assert exc_info.value.actual == "-1"
        assert len(calls) > 1

    async def test_reads_once_with_zero_timeout(self) -> None:
        """The value is read once even when no time is left."""
        calls: list[int] = []

        async def read() -> bool:
            calls.append(1)
            return True

        assert await poll_until(
            read, bool, description="flag", expected=True, timeout=0
        )
        assert calls == [1]


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_for_mode_uses_mode_budget(self) -> None:
        """Batch and interactive mode use their own budgets."""
        config = HarnessConfig(
            retries=RetriesConfig(batch_mode=2, interactive_mode=0)
        )

        assert RetryPolicy.for_mode(config, "batch").max_attempts == 3
        assert RetryPolicy.for_mode(config, "interactive").max_attempts == 1

    def test_retries_failures_until_budget_is_spent(self) -> None:
        """Failed attempts are retried while attempts remain."""
        policy = RetryPolicy(retries=1)

        assert policy.should_retry(1, passed=False) is True
        assert policy.should_retry(2, passed=False) is False

    def test_never_retries_passing_attempt(self) -> None:
        """A passing attempt ends the loop."""
        assert RetryPolicy(retries=3).should_retry(1, passed=True) is False

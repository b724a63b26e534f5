"""Unit tests for cookbook_extractor.retry module.

Tests the retry decorator and RetryConfig class. A recording sleep keeps the
tests instant.
"""

import pytest

from cookbook_extractor.retry import RetryConfig, with_retry


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_default_values(self) -> None:
        """RetryConfig has sensible defaults."""
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.initial_delay == 1.0
        assert config.max_delay == 60.0
        assert config.exponential_base == 2.0

    def test_to_kwargs(self) -> None:
        """to_kwargs returns dict suitable for with_retry decorator."""
        kwargs = RetryConfig(max_attempts=5, initial_delay=2.0).to_kwargs()
        assert kwargs == {
            "max_attempts": 5,
            "initial_delay": 2.0,
            "max_delay": 60.0,
            "exponential_base": 2.0,
        }


class TestWithRetry:
    """Tests for the with_retry decorator."""

    def test_success_first_try(self) -> None:
        sleep = RecordingSleep()

        @with_retry(max_attempts=3, sleep=sleep)
        def succeed() -> str:
            return "ok"

        assert succeed() == "ok"
        assert sleep.delays == []

    def test_retries_until_success(self) -> None:
        """Function is retried after retryable failures."""
        sleep = RecordingSleep()
        calls = []

        @with_retry(max_attempts=3, initial_delay=0.5, retryable=(ConnectionError,), sleep=sleep)
        def flaky() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("down")
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3
        assert sleep.delays == [0.5, 1.0]

    def test_raises_last_exception_when_exhausted(self) -> None:
        sleep = RecordingSleep()

        @with_retry(max_attempts=2, retryable=(ConnectionError,), sleep=sleep)
        def always_fail() -> None:
            raise ConnectionError("still down")

        with pytest.raises(ConnectionError, match="still down"):
            always_fail()
        assert len(sleep.delays) == 1

    def test_non_retryable_propagates_immediately(self) -> None:
        sleep = RecordingSleep()
        calls = []

        @with_retry(max_attempts=5, retryable=(ConnectionError,), sleep=sleep)
        def bad_input() -> None:
            calls.append(1)
            raise ValueError("bad")

        with pytest.raises(ValueError):
            bad_input()
        assert len(calls) == 1
        assert sleep.delays == []

    def test_delay_is_capped(self) -> None:
        sleep = RecordingSleep()

        @with_retry(
            max_attempts=5, initial_delay=1.0, max_delay=3.0, exponential_base=4.0, sleep=sleep
        )
        def always_fail() -> None:
            raise RuntimeError("x")

        with pytest.raises(RuntimeError):
            always_fail()
        assert sleep.delays == [1.0, 3.0, 3.0, 3.0]

    def test_preserves_function_metadata(self) -> None:
        @with_retry()
        def documented() -> None:
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."

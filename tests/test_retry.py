"""
Tests for retry logic.
"""

import pytest
from rectorwatch.retry import RetryError, RetryableStatus, exponential_backoff, should_retry_http_status


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.1, sleep=lambda s: None)
        def succeeds():
            call_count[0] += 1
            return "success"

        assert succeeds() == "success"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, sleep=lambda s: None)
        def fails_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise ConnectionError("Temporary failure")
            return "success"

        assert fails_twice() == "success"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01, sleep=lambda s: None)
        def always_fails():
            call_count[0] += 1
            raise ValueError("Always fails")

        with pytest.raises(RetryError) as exc_info:
            always_fails()

        assert call_count[0] == 3
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_only_catches_specified_exceptions(self):
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, exceptions=(ConnectionError,), sleep=lambda s: None)
        def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            raises_value_error()

        assert call_count[0] == 1

    def test_exponential_delay_capped(self):
        delays = []
        slept = []

        @exponential_backoff(
            max_retries=4,
            base_delay=1.0,
            max_delay=5.0,
            exponential_base=2.0,
            on_retry=lambda attempt, exc, delay: delays.append(delay),
            sleep=slept.append,
        )
        def always_fails():
            raise RetryableStatus(503, "https://api.github.com")

        with pytest.raises(RetryError):
            always_fails()

        assert delays == [1.0, 2.0, 4.0, 5.0]
        assert slept == delays


class TestRetryableStatus:

    def test_retryable_codes(self):
        for code in (408, 429, 500, 502, 503, 504):
            assert should_retry_http_status(code)

    def test_non_retryable_codes(self):
        for code in (200, 301, 401, 403, 404):
            assert not should_retry_http_status(code)

    def test_exception_message(self):
        err = RetryableStatus(429, "https://api.github.com/x")
        assert err.status_code == 429
        assert "429" in str(err)

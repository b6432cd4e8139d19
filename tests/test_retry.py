"""Tests for the retry state machine and the shared quota handle."""

import pytest

from starsentry.api.rate_limit import RateLimitQuota
from starsentry.api.retry import RetryState, RetryStateMachine
from starsentry.core.errors import ApiErrorKind


class TestRetryStateMachine:
    def test_success(self):
        machine = RetryStateMachine()
        assert machine.start_attempt() == 1
        assert machine.on_success() is RetryState.SUCCEEDED
        assert machine.is_terminal

    def test_rate_limited_waits_on_quota(self):
        machine = RetryStateMachine()
        machine.start_attempt()
        assert machine.on_failure(ApiErrorKind.RATE_LIMITED) is RetryState.WAITING_ON_QUOTA
        assert machine.resume() is RetryState.ATTEMPTING
        assert machine.server_errors == 0

    def test_server_error_budget(self):
        machine = RetryStateMachine()
        waits = []
        for _ in range(3):
            machine.start_attempt()
            assert machine.on_failure(ApiErrorKind.TRANSIENT_SERVER_ERROR) is RetryState.WAITING_ON_SERVER_ERROR
            waits.append(machine.server_error_wait())
            machine.resume()

        machine.start_attempt()
        assert machine.on_failure(ApiErrorKind.TRANSIENT_SERVER_ERROR) is RetryState.FAILED
        assert waits == [1.0, 2.0, 4.0]

    def test_backoff_is_capped(self):
        machine = RetryStateMachine(max_attempts=20, max_server_retries=10)
        machine.server_errors = 6
        assert machine.server_error_wait() == 30.0

    @pytest.mark.parametrize(
        "kind", [ApiErrorKind.NOT_FOUND, ApiErrorKind.HTTP_ERROR, ApiErrorKind.NETWORK_ERROR]
    )
    def test_non_retryable_fails(self, kind):
        machine = RetryStateMachine()
        machine.start_attempt()
        assert machine.on_failure(kind) is RetryState.FAILED
        assert machine.last_error_kind is kind

    def test_retryable_on_last_attempt_exhausts(self):
        machine = RetryStateMachine(max_attempts=2)
        machine.start_attempt()
        machine.on_failure(ApiErrorKind.RATE_LIMITED)
        machine.resume()
        machine.start_attempt()
        assert machine.on_failure(ApiErrorKind.RATE_LIMITED) is RetryState.EXHAUSTED

    def test_cannot_attempt_while_waiting(self):
        machine = RetryStateMachine()
        machine.start_attempt()
        machine.on_failure(ApiErrorKind.RATE_LIMITED)
        with pytest.raises(RuntimeError):
            machine.start_attempt()

    def test_cannot_resume_from_terminal_state(self):
        machine = RetryStateMachine()
        machine.start_attempt()
        machine.on_success()
        with pytest.raises(RuntimeError):
            machine.resume()


class TestRateLimitQuota:
    def test_update_from_headers(self):
        quota = RateLimitQuota()
        quota.update_from_headers(
            {"X-RateLimit-Remaining": "42", "X-RateLimit-Limit": "5000", "X-RateLimit-Reset": "1700000100"}
        )
        assert quota.remaining == 42
        assert quota.limit == 5000
        assert quota.reset_at == 1700000100
        assert not quota.is_exhausted

    def test_missing_headers_leave_state_alone(self):
        quota = RateLimitQuota()
        quota.update_from_headers({"X-RateLimit-Remaining": "3"})
        quota.update_from_headers({})
        assert quota.remaining == 3

    def test_seconds_until_reset_never_negative(self):
        quota = RateLimitQuota()
        quota.reset_at = 100
        assert quota.seconds_until_reset(50.0) == 51.0
        assert quota.seconds_until_reset(500.0) == 0.0

    def test_wait_for_reset_clears_remaining(self, fake_clock):
        quota = RateLimitQuota()
        quota.remaining = 0
        quota.reset_at = int(fake_clock.now()) + 9

        assert quota.wait_for_reset(fake_clock) == 10.0
        assert fake_clock.sleeps == [10.0]
        assert quota.remaining is None

    def test_second_waiter_returns_immediately(self, fake_clock):
        quota = RateLimitQuota()
        quota.remaining = 0
        quota.reset_at = int(fake_clock.now()) + 9

        quota.wait_for_reset(fake_clock)
        assert quota.wait_for_reset(fake_clock) == 0.0
        assert fake_clock.sleeps == [10.0]

    def test_wait_if_exhausted_skips_past_reset(self, fake_clock):
        quota = RateLimitQuota()
        quota.remaining = 0
        quota.reset_at = int(fake_clock.now()) - 5

        assert quota.wait_if_exhausted(fake_clock) == 0.0
        assert fake_clock.sleeps == []

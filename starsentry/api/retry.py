"""Retry/backoff state machine for GitHub API requests."""

import logging
from enum import Enum
from typing import Optional

from starsentry.core.constants import (
    MAX_RETRY_ITERATIONS,
    MAX_SERVER_ERROR_RETRIES,
    SERVER_ERROR_BASE_WAIT,
    SERVER_ERROR_MAX_WAIT,
)
from starsentry.core.errors import ApiErrorKind

logger = logging.getLogger(__name__)


class RetryState(Enum):
    ATTEMPTING = "attempting"
    WAITING_ON_QUOTA = "waiting_on_quota"
    WAITING_ON_SERVER_ERROR = "waiting_on_server_error"
    EXHAUSTED = "exhausted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATES = (RetryState.EXHAUSTED, RetryState.SUCCEEDED, RetryState.FAILED)


class RetryStateMachine:
    """
    Tracks one request's retry state.

    Transitions:
        ATTEMPTING --success--> SUCCEEDED
        ATTEMPTING --RATE_LIMITED--> WAITING_ON_QUOTA
        ATTEMPTING --TRANSIENT_SERVER_ERROR (budget left)--> WAITING_ON_SERVER_ERROR
        ATTEMPTING --anything else--> FAILED
        ATTEMPTING --retryable on the last allowed attempt--> EXHAUSTED
        WAITING_* --resume()--> ATTEMPTING

    Quota waits don't spend the server-error budget, but every attempt counts
    towards the hard ceiling on attempts.
    """

    def __init__(
        self,
        max_attempts: int = MAX_RETRY_ITERATIONS,
        max_server_retries: int = MAX_SERVER_ERROR_RETRIES,
        base_wait: float = SERVER_ERROR_BASE_WAIT,
        max_wait: float = SERVER_ERROR_MAX_WAIT,
    ):
        self.max_attempts = max_attempts
        self.max_server_retries = max_server_retries
        self.base_wait = base_wait
        self.max_wait = max_wait
        self.state = RetryState.ATTEMPTING
        self.attempts = 0
        self.server_errors = 0
        self.last_error_kind: Optional[ApiErrorKind] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def start_attempt(self) -> int:
        """Count a new request attempt and return its 1-based number."""
        if self.state is not RetryState.ATTEMPTING:
            raise RuntimeError(f"Cannot start an attempt in state {self.state.name}")
        self.attempts += 1
        return self.attempts

    def on_success(self) -> RetryState:
        self.state = RetryState.SUCCEEDED
        return self.state

    def on_failure(self, kind: ApiErrorKind) -> RetryState:
        """Move to the next state for a failed attempt of the given kind."""
        self.last_error_kind = kind
        if kind is ApiErrorKind.RATE_LIMITED:
            next_state = RetryState.WAITING_ON_QUOTA
        elif (
            kind is ApiErrorKind.TRANSIENT_SERVER_ERROR
            and self.server_errors < self.max_server_retries
        ):
            next_state = RetryState.WAITING_ON_SERVER_ERROR
        else:
            self.state = RetryState.FAILED
            return self.state

        if self.attempts >= self.max_attempts:
            logger.debug(f"Retry ceiling of {self.max_attempts} attempts reached ({kind.value})")
            next_state = RetryState.EXHAUSTED
        self.state = next_state
        return self.state

    def server_error_wait(self) -> float:
        """Exponential backoff for the pending server-error retry: 1s, 2s, 4s ... capped."""
        return min(self.base_wait * (2 ** self.server_errors), self.max_wait)

    def resume(self) -> RetryState:
        """Leave a waiting state once the wait has been served."""
        if self.state is RetryState.WAITING_ON_SERVER_ERROR:
            self.server_errors += 1
        elif self.state is not RetryState.WAITING_ON_QUOTA:
            raise RuntimeError(f"Cannot resume from state {self.state.name}")
        self.state = RetryState.ATTEMPTING
        return self.state

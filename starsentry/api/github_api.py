"""
GitHub API client for StarSentry.

This module provides the rate-limited request layer every other component
builds on: authenticated GET requests with quota-aware waiting and
exponential backoff on transient server errors.
"""

import logging
from typing import Any, Dict, Optional

import requests

from starsentry.api.github_api_rest import GitHubRestMethods
from starsentry.api.rate_limit import RateLimitQuota
from starsentry.api.retry import RetryState, RetryStateMachine
from starsentry.core.constants import (
    DEFAULT_ACCEPT,
    GITHUB_API_BASE,
    GITHUB_API_VERSION,
    REQUEST_TIMEOUT,
    RETRYABLE_SERVER_STATUSES,
)
from starsentry.core.errors import ApiError, ApiErrorKind
from starsentry.utils.clock import SystemClock

# Configure module logger
logger = logging.getLogger(__name__)


def classify_response(response: requests.Response) -> ApiErrorKind:
    """Map a non-success response to an error kind."""
    status = response.status_code
    if status == 403 and str(response.headers.get("X-RateLimit-Remaining")) == "0":
        return ApiErrorKind.RATE_LIMITED
    if status == 404:
        return ApiErrorKind.NOT_FOUND
    if status in RETRYABLE_SERVER_STATUSES:
        return ApiErrorKind.TRANSIENT_SERVER_ERROR
    return ApiErrorKind.HTTP_ERROR


class GitHubAPI(GitHubRestMethods):
    """
    GitHub REST API client for StarSentry.

    Attributes:
        token: GitHub personal access token, optional
        quota: Shared rate limit handle; pass the same instance to clients that
               spend the same quota
        clock: Source of time and sleeps (SystemClock unless injected)
        session: Persistent session for making HTTP requests
    """

    def __init__(
        self,
        token: Optional[str] = None,
        quota: Optional[RateLimitQuota] = None,
        clock=None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            quota: Rate limit handle shared with other clients, a fresh one if omitted
            clock: Object with now() and sleep(seconds)
            session: requests session to use, a new one if omitted
        """
        self.token = token.strip() if token and token.strip() else None
        self.quota = quota if quota is not None else RateLimitQuota()
        self.clock = clock if clock is not None else SystemClock()

        self.headers = {
            "Accept": DEFAULT_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": "starsentry",
        }
        if self.token:
            self.headers["Authorization"] = f"token {self.token}"

        # Create persistent session for better performance
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(self.headers)

        logger.debug(
            f"GitHub API client initialized ({'authenticated' if self.token else 'unauthenticated'})"
        )

    def fetch(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, accept: Optional[str] = None
    ) -> Any:
        """
        GET an API endpoint and return the decoded JSON body.

        Handles:
        - Quota exhaustion (403 with X-RateLimit-Remaining: 0): waits for the
          reset and retries without spending the server-error budget
        - 502/503: exponential backoff, up to 3 retries
        - At most 5 attempts in total

        Args:
            endpoint: API path (appended to the API base) or absolute URL
            params: URL query parameters
            accept: Accept header override for this request

        Returns:
            Decoded JSON body (dict or list)

        Raises:
            ApiError: On 404, non-retryable failures, exhausted server-error
                      retries, or when the attempt ceiling is hit
        """
        url = endpoint if endpoint.startswith("http") else f"{GITHUB_API_BASE}{endpoint}"
        request_headers = {"Accept": accept} if accept else None

        machine = RetryStateMachine()
        last_error: Optional[ApiError] = None

        while not machine.is_terminal:
            if machine.state is RetryState.ATTEMPTING:
                self.quota.wait_if_exhausted(self.clock)
                attempt = machine.start_attempt()
                try:
                    response = self.session.get(
                        url, params=params, headers=request_headers, timeout=REQUEST_TIMEOUT
                    )
                except requests.exceptions.RequestException as e:
                    machine.on_failure(ApiErrorKind.NETWORK_ERROR)
                    raise ApiError(
                        f"Network error for {url}: {e}", ApiErrorKind.NETWORK_ERROR
                    ) from e

                self.quota.update_from_headers(response.headers)

                if response.status_code == 200:
                    try:
                        body = response.json()
                    except ValueError as e:
                        raise ApiError(
                            f"Invalid JSON from {url}", ApiErrorKind.HTTP_ERROR, 200
                        ) from e
                    machine.on_success()
                    return body

                if response.status_code == 204:  # No content
                    machine.on_success()
                    return {}

                kind = classify_response(response)
                last_error = ApiError(
                    f"GitHub API returned {response.status_code} for {url}",
                    kind,
                    response.status_code,
                )
                logger.debug(f"Attempt {attempt} for {url} failed: {kind.value}")
                machine.on_failure(kind)

            elif machine.state is RetryState.WAITING_ON_QUOTA:
                self.quota.wait_for_reset(self.clock)
                machine.resume()

            elif machine.state is RetryState.WAITING_ON_SERVER_ERROR:
                wait_time = machine.server_error_wait()
                logger.warning(
                    f"Server error ({last_error.status_code}) from {url}. "
                    f"Retrying in {wait_time:.0f}s..."
                )
                self.clock.sleep(wait_time)
                machine.resume()

        if machine.state is RetryState.EXHAUSTED:
            logger.error(f"Failed to make request to {url} after {machine.attempts} attempts")
            raise ApiError(
                f"Max retries exceeded for {url}",
                ApiErrorKind.EXHAUSTED_RETRIES,
                last_error.status_code if last_error else None,
            )

        if last_error.kind is not ApiErrorKind.NOT_FOUND:
            logger.error(f"GitHub API error: {last_error.message}")
        raise last_error

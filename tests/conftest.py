"""Pytest configuration and fixtures for StarSentry tests."""

import datetime
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest

from starsentry.api.github_api import GitHubAPI
from starsentry.core.models import RepositoryInfo, StarRecord, UserProfile

NOW = datetime.datetime(2024, 6, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


class FakeClock:
    """Clock whose sleeps advance time instantly and are recorded."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.current = start
        self.sleeps = []

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if seconds > 0:
            self.current += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def now() -> datetime.datetime:
    """Fixed analysis time."""
    return NOW


@pytest.fixture
def make_response():
    """Factory for mock requests responses with plain-dict headers."""

    def _make(status: int = 200, body: Any = None, headers: Optional[Dict[str, str]] = None):
        response = MagicMock()
        response.status_code = status
        response.headers = headers or {}
        if isinstance(body, Exception):
            response.json.side_effect = body
        else:
            response.json.return_value = body if body is not None else {}
        return response

    return _make


@pytest.fixture
def mock_session() -> MagicMock:
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def github_api(mock_session, fake_clock) -> GitHubAPI:
    """API client with a mocked session and a fake clock."""
    return GitHubAPI(token="test_token_123", clock=fake_clock, session=mock_session)


@pytest.fixture
def make_repo():
    """Factory for repository snapshots."""

    def _make(
        stars: int = 100,
        forks: int = 10,
        created_at: datetime.datetime = NOW - datetime.timedelta(days=365),
        owner: str = "octocat",
        name: str = "Hello-World",
    ) -> RepositoryInfo:
        return RepositoryInfo(
            owner=owner,
            name=name,
            full_name=f"{owner}/{name}",
            star_count=stars,
            fork_count=forks,
            created_at=created_at,
            language="Python",
            description="This your first repo!",
            html_url=f"https://github.com/{owner}/{name}",
        )

    return _make


@pytest.fixture
def make_profile():
    """Factory for user profiles; defaults describe an established organic account."""

    def _make(login: str = "octocat", **fields) -> UserProfile:
        values = dict(
            created_at=datetime.datetime(2015, 3, 1, 9, 0, tzinfo=datetime.timezone.utc),
            updated_at=datetime.datetime(2024, 5, 20, 9, 0, tzinfo=datetime.timezone.utc),
            starred_at=datetime.datetime(2024, 5, 25, 9, 0, tzinfo=datetime.timezone.utc),
            followers=40,
            following=12,
            public_repos=25,
            public_gists=3,
            email="octocat@github.com",
            hireable=None,
        )
        values.update(fields)
        return UserProfile(login=login, **values)

    return _make


@pytest.fixture
def make_star():
    def _make(username: str, starred_at: datetime.datetime = NOW) -> StarRecord:
        return StarRecord(username=username, starred_at=starred_at)

    return _make


@pytest.fixture
def sample_repository_data() -> Dict[str, Any]:
    """Sample GET /repos payload."""
    return {
        "name": "Hello-World",
        "full_name": "octocat/Hello-World",
        "owner": {"login": "octocat"},
        "description": "This your first repo!",
        "stargazers_count": 1420,
        "forks_count": 120,
        "open_issues_count": 3,
        "watchers_count": 1420,
        "language": "Python",
        "created_at": "2011-01-26T19:01:12Z",
        "html_url": "https://github.com/octocat/Hello-World",
    }


@pytest.fixture
def sample_user_data() -> Dict[str, Any]:
    """Sample GET /users payload."""
    return {
        "login": "octocat",
        "created_at": "2011-01-25T18:44:36Z",
        "updated_at": "2017-11-01T21:56:45Z",
        "followers": 3938,
        "following": 9,
        "public_repos": 8,
        "public_gists": 8,
        "email": "octocat@github.com",
        "bio": "A great octopus",
        "blog": "https://github.blog",
        "hireable": None,
    }


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Keep the developer's environment out of the tests."""
    for name in ("GITHUB_TOKEN", "STARSENTRY_CACHE_DIR", "STARSENTRY_MAX_STARS", "STARSENTRY_MAX_USERS"):
        monkeypatch.delenv(name, raising=False)

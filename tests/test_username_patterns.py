"""Tests for username pattern predicates."""

import pytest

from starsentry.analyzers.username_patterns import (
    BOT_LIKE_PATTERNS,
    GENERIC_USERNAME_PATTERNS,
    is_bot_like_name,
    is_generic_username,
    matching_patterns,
)


class TestGenericUsernames:
    @pytest.mark.parametrize(
        "username",
        ["user123", "User42", "developer7", "mybot", "stargazerbot99", "john20241", "abc123456", "demo_acc3"],
    )
    def test_generic(self, username):
        assert is_generic_username(username)

    @pytest.mark.parametrize("username", ["octocat", "torvalds", "jane-doe", "temp1", "user"])
    def test_not_generic(self, username):
        assert not is_generic_username(username)

    def test_whole_name_must_match(self):
        # "user1" appears inside, but the dash breaks the \w run
        assert not is_generic_username("super-user1")


class TestBotLikeNames:
    @pytest.mark.parametrize("username", ["temp1", "fakeacc", "ab12345", "githubfan", "star_hunter", "user123"])
    def test_bot_like(self, username):
        assert is_bot_like_name(username)

    @pytest.mark.parametrize("username", ["octocat", "human-1", "jane-doe", "abcd12"])
    def test_not_bot_like(self, username):
        assert not is_bot_like_name(username)

    def test_generic_implies_bot_like(self):
        for username in ["user1", "devops2024", "testing", "zz999999"]:
            if is_generic_username(username):
                assert is_bot_like_name(username)


class TestPatternTable:
    def test_bot_like_extends_generic(self):
        assert BOT_LIKE_PATTERNS[: len(GENERIC_USERNAME_PATTERNS)] == GENERIC_USERNAME_PATTERNS

    def test_pattern_names_unique(self):
        names = [p.name for p in BOT_LIKE_PATTERNS]
        assert len(names) == len(set(names))

    def test_matching_patterns_reports_names(self):
        assert matching_patterns("User123", GENERIC_USERNAME_PATTERNS) == ["user_number"]
        assert matching_patterns("temp7", BOT_LIKE_PATTERNS) == ["throwaway_word"]

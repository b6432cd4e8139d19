"""Username patterns typical of mass-created accounts."""

import re
from dataclasses import dataclass
from typing import List, Pattern, Sequence


@dataclass(frozen=True)
class NamedPattern:
    name: str
    regex: Pattern

    def matches(self, username: str) -> bool:
        return self.regex.fullmatch(username) is not None


def _pattern(name: str, expr: str) -> NamedPattern:
    return NamedPattern(name, re.compile(expr, re.IGNORECASE))


GENERIC_USERNAME_PATTERNS = (
    _pattern("user_number", r"user\d+"),
    _pattern("dev_number", r"dev\w*\d+"),
    _pattern("bot_suffix", r"\w*bot\d*"),
    _pattern("long_number_suffix", r"\w+\d{4,}"),
    _pattern("letters_then_six_digits", r"[a-z]+\d{6,}"),
    _pattern("placeholder_word", r"(test|demo|sample)\w*\d*"),
)

# Every generic pattern plus the extra bot-like shapes
BOT_LIKE_PATTERNS = GENERIC_USERNAME_PATTERNS + (
    _pattern("throwaway_word", r"(test|demo|sample|fake|temp)\w*\d*"),
    _pattern("short_letters_long_number", r"[a-z]{1,3}\d{4,}"),
    _pattern("github_word", r"\w*github\w*\d*"),
    _pattern("star_word", r"\w*star\w*\d*"),
)


def matching_patterns(username: str, patterns: Sequence[NamedPattern]) -> List[str]:
    """Names of the patterns a username matches, in pattern order."""
    name = username.lower()
    return [p.name for p in patterns if p.matches(name)]


def is_generic_username(username: str) -> bool:
    name = username.lower()
    return any(p.matches(name) for p in GENERIC_USERNAME_PATTERNS)


def is_bot_like_name(username: str) -> bool:
    name = username.lower()
    return any(p.matches(name) for p in BOT_LIKE_PATTERNS)

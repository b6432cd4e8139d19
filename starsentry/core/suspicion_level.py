"""Maps a suspicion score to a risk label and a shields.io badge."""

from urllib.parse import quote_plus


def suspicion_level(score: int) -> str:
    """Risk label for a 0-100 suspicion score (higher is worse)."""
    if score <= 20:
        return "low"
    if score <= 40:
        return "medium"
    return "high"


def generate_badge_url(score: int) -> str:
    """Generate a badge URL showing the suspicion score."""
    color_str = {"low": "success", "medium": "yellow", "high": "red"}[suspicion_level(score)]

    # URL encode label and message
    label_enc = quote_plus("Star Suspicion")
    message_enc = quote_plus(f"{score}/100")

    return f"https://img.shields.io/badge/{label_enc}-{message_enc}-{color_str}.svg?style=flat-square&logo=github"

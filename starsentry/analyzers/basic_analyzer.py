"""Username and velocity analysis that needs no profile lookups."""

import datetime
import logging
from typing import Optional, Sequence

from starsentry.analyzers.pattern_analyzer import (
    clamp_score,
    count_username_patterns,
    star_velocity,
    tiered_points,
)
from starsentry.core.constants import (
    BASIC_BOT_WEIGHT,
    BASIC_GENERIC_WEIGHT,
    BASIC_INDICATOR_BOT_RATIO,
    BASIC_INDICATOR_GENERIC_RATIO,
    BASIC_INDICATOR_VELOCITY,
    BASIC_VELOCITY_TIERS,
)
from starsentry.core.models import AnalysisResult, PatternCounters, RepositoryInfo, StarRecord
from starsentry.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class BasicAnalyzer:
    """Fallback analysis for runs without a detailed sample."""

    def __init__(self, now: Optional[datetime.datetime] = None):
        self.now = now

    def analyze(self, stargazers: Sequence[StarRecord], repo_info: RepositoryInfo) -> AnalysisResult:
        now = self.now or utc_now()
        counters = PatternCounters()
        count_username_patterns(stargazers, counters)

        analyzed_sample = len(stargazers)
        stars_per_day = star_velocity(repo_info, now)

        generic_ratio = counters.generic_usernames / analyzed_sample if analyzed_sample else 0.0
        bot_ratio = counters.bot_like_names / analyzed_sample if analyzed_sample else 0.0

        score = tiered_points(stars_per_day, BASIC_VELOCITY_TIERS)
        score += generic_ratio * BASIC_GENERIC_WEIGHT
        score += bot_ratio * BASIC_BOT_WEIGHT

        indicators = []
        if stars_per_day > BASIC_INDICATOR_VELOCITY:
            indicators.append(f"High star velocity: {stars_per_day:.1f} stars/day")
        if generic_ratio > BASIC_INDICATOR_GENERIC_RATIO:
            indicators.append(f"Generic usernames: {generic_ratio * 100:.1f}%")
        if bot_ratio > BASIC_INDICATOR_BOT_RATIO:
            indicators.append(f"Bot-like usernames: {bot_ratio * 100:.1f}%")

        suspicion_score = clamp_score(score)
        logger.debug(f"Basic analysis of {repo_info.full_name}: score {suspicion_score}")
        return AnalysisResult(
            total_stars=repo_info.star_count,
            analyzed_sample=analyzed_sample,
            detailed_sample=0,
            patterns=counters.snapshot(),
            timeline=(),
            suspicion_indicators=tuple(indicators),
            suspicion_score=suspicion_score,
            analysis_type="basic",
        )

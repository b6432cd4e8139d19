"""Detects fake-star patterns from stargazers and their profiles."""

import datetime
import logging
from typing import List, Optional, Sequence, Tuple

from starsentry.analyzers.username_patterns import is_bot_like_name, is_generic_username
from starsentry.core.constants import (
    ADVANCED_BOT_WEIGHT,
    ADVANCED_GENERIC_WEIGHT,
    ADVANCED_RATIO_WEIGHTS,
    ADVANCED_VELOCITY_TIERS,
    COORDINATED_BUCKET_MIN,
    COORDINATED_TIERS,
    CREATION_CLUSTER_TIERS,
    FAKE_STAR_CREATED_AFTER,
    FAKE_STAR_MAX_REPOS,
    FORK_RATIO_LIMIT,
    FORK_RATIO_MIN_STARS,
    FORK_RATIO_POINTS,
    INDICATOR_BOT_PCT,
    INDICATOR_COORDINATED,
    INDICATOR_CREATION_CLUSTER,
    INDICATOR_FAKE_PCT,
    INDICATOR_FORK_PCT,
    INDICATOR_GENERIC_PCT,
    INDICATOR_LOW_ENGAGEMENT_PCT,
    INDICATOR_NEW_ACCOUNT_PCT,
    INDICATOR_SAME_DAY_PCT,
    INDICATOR_VELOCITY_EXTREME,
    INDICATOR_VELOCITY_HIGH,
    LOW_ENGAGEMENT_LIMIT,
    NEW_ACCOUNT_DAYS,
    SCORE_MAX,
    SCORE_MIN,
)
from starsentry.core.models import (
    AnalysisResult,
    PatternCounters,
    RepositoryInfo,
    StarRecord,
    SuspiciousTimeWindow,
    TimelineEntry,
    UserProfile,
)
from starsentry.utils.date_utils import (
    age_in_days,
    minute_bucket,
    parse_timestamp,
    round_half_up,
    utc_date_str,
    utc_now,
)

logger = logging.getLogger(__name__)

FAKE_STAR_CUTOFF = parse_timestamp(FAKE_STAR_CREATED_AFTER)


def tiered_points(value: float, tiers: Sequence[Tuple[float, int]]) -> int:
    """Points of the highest tier whose threshold value exceeds; tiers are highest first."""
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0


def clamp_score(score: float) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, round_half_up(score)))


def star_velocity(repo_info: RepositoryInfo, now: datetime.datetime) -> float:
    """Lifetime stars per day, with the repository age floored at one day."""
    repo_age = age_in_days(repo_info.created_at, now)
    return repo_info.star_count / max(repo_age, 1)


def count_username_patterns(stargazers: Sequence[StarRecord], counters: PatternCounters) -> None:
    """Coarse pass: flag generic and bot-like usernames across the whole sample."""
    for stargazer in stargazers:
        username = stargazer.username.lower()
        if is_generic_username(username):
            counters.generic_usernames += 1
            counters.generic_usernames_list.append(username)
        if is_bot_like_name(username):
            counters.bot_like_names += 1
            counters.bot_like_names_list.append(username)


def is_same_day(profile: UserProfile) -> bool:
    """Account created, last updated and starred this repo on one UTC calendar date."""
    created = utc_date_str(profile.created_at)
    return created == utc_date_str(profile.updated_at) == utc_date_str(profile.starred_at)


def validate_star(profile: UserProfile) -> bool:
    """
    Classify a star as fake.

    All must hold: fewer than 2 followers and 2 following, no gists, fewer than 5
    repos, account created after 2022-01-01, no public email, the same-day
    pattern, and hireable never set either way.
    """
    return (
        profile.followers < LOW_ENGAGEMENT_LIMIT
        and profile.following < LOW_ENGAGEMENT_LIMIT
        and profile.public_gists == 0
        and profile.public_repos < FAKE_STAR_MAX_REPOS
        and profile.created_at > FAKE_STAR_CUTOFF
        and not profile.email
        and is_same_day(profile)
        and profile.hireable is None
    )


def flag_coordinated_windows(counters: PatternCounters) -> None:
    """Minute buckets with more than three stars count in full as coordinated."""
    for minute, count in counters.stars_by_minute.items():
        if count >= COORDINATED_BUCKET_MIN:
            counters.coordinated += count
            counters.suspicious_time_windows.append(SuspiciousTimeWindow(time=minute, count=count))


def calculate_suspicion_score(
    counters: PatternCounters,
    repo_info: RepositoryInfo,
    analyzed_sample: int,
    detailed_sample: int,
    now: datetime.datetime,
) -> int:
    """
    Additive score over every signal, rounded and clamped to 0-100.

    The per-profile ratios only apply when a detailed sample exists.
    """
    score = float(tiered_points(star_velocity(repo_info, now), ADVANCED_VELOCITY_TIERS))

    if detailed_sample > 0:
        score += counters.same_day_pattern / detailed_sample * ADVANCED_RATIO_WEIGHTS["same_day_pattern"]
        score += counters.fake_stars / detailed_sample * ADVANCED_RATIO_WEIGHTS["fake_stars"]
        score += counters.low_engagement / detailed_sample * ADVANCED_RATIO_WEIGHTS["low_engagement"]
        score += counters.new_accounts / detailed_sample * ADVANCED_RATIO_WEIGHTS["new_accounts"]

    if analyzed_sample > 0:
        score += counters.generic_usernames / analyzed_sample * ADVANCED_GENERIC_WEIGHT
        score += counters.bot_like_names / analyzed_sample * ADVANCED_BOT_WEIGHT

    score += tiered_points(counters.coordinated, COORDINATED_TIERS)

    fork_ratio = repo_info.fork_count / max(repo_info.star_count, 1)
    if fork_ratio < FORK_RATIO_LIMIT and repo_info.star_count > FORK_RATIO_MIN_STARS:
        score += FORK_RATIO_POINTS

    score += tiered_points(counters.max_same_day_creations, CREATION_CLUSTER_TIERS)

    return clamp_score(score)


def generate_suspicion_indicators(
    counters: PatternCounters,
    repo_info: RepositoryInfo,
    analyzed_sample: int,
    detailed_sample: int,
    now: datetime.datetime,
) -> List[str]:
    """One sentence per triggered threshold; within a family only the top tier speaks."""
    indicators = []

    stars_per_day = star_velocity(repo_info, now)
    if stars_per_day > INDICATOR_VELOCITY_EXTREME:
        indicators.append(f"Extremely high star velocity: {stars_per_day:.1f} stars/day")
    elif stars_per_day > INDICATOR_VELOCITY_HIGH:
        indicators.append(f"Very high star velocity: {stars_per_day:.1f} stars/day")

    if detailed_sample > 0:
        same_day_pct = counters.same_day_pattern / detailed_sample * 100
        if same_day_pct > INDICATOR_SAME_DAY_PCT:
            indicators.append(
                f"High same-day pattern: {same_day_pct:.1f}% of users created account, "
                f"starred, and last updated on same day"
            )

        fake_pct = counters.fake_stars / detailed_sample * 100
        if fake_pct > INDICATOR_FAKE_PCT:
            indicators.append(
                f"High fake star ratio: {fake_pct:.1f}% of analyzed users match fake profile criteria"
            )

        low_engagement_pct = counters.low_engagement / detailed_sample * 100
        if low_engagement_pct > INDICATOR_LOW_ENGAGEMENT_PCT:
            indicators.append(
                f"Low engagement accounts: {low_engagement_pct:.1f}% have <2 followers and <2 following"
            )

        new_account_pct = counters.new_accounts / detailed_sample * 100
        if new_account_pct > INDICATOR_NEW_ACCOUNT_PCT:
            indicators.append(
                f"Many new accounts: {new_account_pct:.1f}% created within last {NEW_ACCOUNT_DAYS} days"
            )

    if counters.coordinated > INDICATOR_COORDINATED:
        indicators.append(
            f"Coordinated starring detected: {counters.coordinated} stars within same minute windows"
        )

    if analyzed_sample > 0:
        generic_pct = counters.generic_usernames / analyzed_sample * 100
        if generic_pct > INDICATOR_GENERIC_PCT:
            indicators.append(f"High generic username ratio: {generic_pct:.1f}%")

        bot_pct = counters.bot_like_names / analyzed_sample * 100
        if bot_pct > INDICATOR_BOT_PCT:
            indicators.append(f"Bot-like usernames detected: {bot_pct:.1f}%")

    if repo_info.star_count > FORK_RATIO_MIN_STARS:
        fork_pct = repo_info.fork_count / repo_info.star_count * 100
        if fork_pct < INDICATOR_FORK_PCT:
            indicators.append(f"Very low fork engagement: {fork_pct:.2f}% fork-to-star ratio")

    max_creations = counters.max_same_day_creations
    if max_creations > INDICATOR_CREATION_CLUSTER:
        indicators.append(
            f"Account creation clustering: {max_creations} accounts created on same day"
        )

    return indicators


class PatternAnalyzer:
    """
    Full analysis over the coarse stargazer sample and the enriched profiles.

    The only impure input is the current time, used for account and repository
    ages; pass now to pin it.
    """

    def __init__(self, now: Optional[datetime.datetime] = None):
        self.now = now

    def analyze(
        self,
        stargazers: Sequence[StarRecord],
        profiles: Sequence[UserProfile],
        repo_info: RepositoryInfo,
    ) -> AnalysisResult:
        """
        Run the coarse and fine passes, score, and explain.

        Args:
            stargazers: Every collected star record (coarse sample)
            profiles: Resolved profiles (detailed sample), in stargazer order
            repo_info: Repository snapshot

        Returns:
            AnalysisResult: analysis_type "advanced"
        """
        now = self.now or utc_now()
        counters = PatternCounters()

        count_username_patterns(stargazers, counters)

        timeline = []
        for profile in profiles:
            account_age = age_in_days(profile.created_at, now)

            if account_age < NEW_ACCOUNT_DAYS:
                counters.new_accounts += 1
            if profile.public_repos == 0:
                counters.no_repos += 1
            if not profile.email:
                counters.no_email += 1
            if profile.followers < LOW_ENGAGEMENT_LIMIT and profile.following < LOW_ENGAGEMENT_LIMIT:
                counters.low_engagement += 1
            if is_same_day(profile):
                counters.same_day_pattern += 1

            bucket = minute_bucket(profile.starred_at)
            counters.stars_by_minute[bucket] = counters.stars_by_minute.get(bucket, 0) + 1

            creation_date = utc_date_str(profile.created_at)
            counters.creation_dates[creation_date] = counters.creation_dates.get(creation_date, 0) + 1

            is_fake = validate_star(profile)
            if is_fake:
                counters.fake_stars += 1
            else:
                counters.real_stars += 1

            timeline.append(
                TimelineEntry(
                    date=utc_date_str(profile.starred_at),
                    username=profile.login,
                    is_fake=is_fake,
                    account_age=round_half_up(account_age),
                    followers=profile.followers,
                    public_repos=profile.public_repos,
                )
            )

        flag_coordinated_windows(counters)

        analyzed_sample = len(stargazers)
        detailed_sample = len(profiles)
        score = calculate_suspicion_score(counters, repo_info, analyzed_sample, detailed_sample, now)
        indicators = generate_suspicion_indicators(
            counters, repo_info, analyzed_sample, detailed_sample, now
        )

        logger.debug(
            f"Advanced analysis of {repo_info.full_name}: {counters.fake_stars}/{detailed_sample} "
            f"fake, {counters.coordinated} coordinated, score {score}"
        )
        return AnalysisResult(
            total_stars=repo_info.star_count,
            analyzed_sample=analyzed_sample,
            detailed_sample=detailed_sample,
            patterns=counters.snapshot(),
            timeline=tuple(timeline),
            suspicion_indicators=tuple(indicators),
            suspicion_score=score,
            analysis_type="advanced",
        )

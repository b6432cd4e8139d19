"""Tests for the advanced pattern analyzer."""

import datetime

import pytest

from starsentry.analyzers.pattern_analyzer import (
    PatternAnalyzer,
    calculate_suspicion_score,
    clamp_score,
    generate_suspicion_indicators,
    is_same_day,
    tiered_points,
    validate_star,
)
from starsentry.core.models import PatternCounters
from starsentry.utils.date_utils import round_half_up

UTC = datetime.timezone.utc


@pytest.fixture
def fake_profile(make_profile):
    """Factory for profiles that meet every fake-star criterion."""

    def _make(login="temp1", day=datetime.datetime(2024, 5, 25, tzinfo=UTC), **fields):
        values = dict(
            created_at=day.replace(hour=9),
            updated_at=day.replace(hour=10),
            starred_at=day.replace(hour=11),
            followers=0,
            following=0,
            public_repos=0,
            public_gists=0,
            email=None,
            hireable=None,
        )
        values.update(fields)
        return make_profile(login, **values)

    return _make


class TestValidateStar:
    """Test cases for the fake-star classification."""

    def test_all_criteria_met(self, fake_profile):
        assert validate_star(fake_profile())

    @pytest.mark.parametrize("hireable", [True, False])
    def test_hireable_set_either_way_is_real(self, fake_profile, hireable):
        assert not validate_star(fake_profile(hireable=hireable))

    @pytest.mark.parametrize(
        "fields",
        [
            {"followers": 2},
            {"following": 2},
            {"public_gists": 1},
            {"public_repos": 5},
            {"email": "someone@example.com"},
            {"created_at": datetime.datetime(2021, 12, 31, tzinfo=UTC)},
        ],
    )
    def test_single_failed_criterion_is_real(self, fake_profile, fields):
        assert not validate_star(fake_profile(**fields))

    def test_established_account_is_real(self, make_profile):
        assert not validate_star(make_profile())


class TestSameDay:
    def test_same_utc_date(self, fake_profile):
        assert is_same_day(fake_profile())

    def test_midnight_crossing_is_not_same_day(self, fake_profile):
        profile = fake_profile(
            created_at=datetime.datetime(2024, 5, 25, 23, 59, tzinfo=UTC),
            updated_at=datetime.datetime(2024, 5, 26, 0, 1, tzinfo=UTC),
            starred_at=datetime.datetime(2024, 5, 26, 0, 2, tzinfo=UTC),
        )
        assert not is_same_day(profile)

    def test_offsets_are_normalised_to_utc(self, fake_profile):
        plus_two = datetime.timezone(datetime.timedelta(hours=2))
        profile = fake_profile(
            created_at=datetime.datetime(2024, 5, 26, 1, 0, tzinfo=plus_two),  # 23:00 UTC on the 25th
            updated_at=datetime.datetime(2024, 5, 25, 22, 0, tzinfo=UTC),
            starred_at=datetime.datetime(2024, 5, 25, 23, 30, tzinfo=UTC),
        )
        assert is_same_day(profile)


class TestScoring:
    """Test cases for the additive score."""

    def test_tiered_points_takes_highest_tier(self):
        tiers = ((1000, 35), (500, 30), (100, 20), (50, 10))
        assert tiered_points(1500, tiers) == 35
        assert tiered_points(500, tiers) == 20
        assert tiered_points(50, tiers) == 0

    def test_round_half_up(self):
        assert round_half_up(27.5) == 28
        assert round_half_up(2.5) == 3
        assert round_half_up(49.4) == 49

    @pytest.mark.parametrize("raw, expected", [(-12.0, 0), (0.4, 0), (63.5, 64), (180.0, 100)])
    def test_clamp_score(self, raw, expected):
        assert clamp_score(raw) == expected

    def test_same_day_and_fake_ratios(self, make_repo, now):
        counters = PatternCounters(same_day_pattern=80, fake_stars=50, real_stars=50)
        repo_info = make_repo(stars=100, forks=10)

        score = calculate_suspicion_score(counters, repo_info, 100, 100, now)

        # 0.8 * 40 + 0.5 * 35 = 49.5
        assert score == 50

    def test_ratios_skipped_without_detailed_sample(self, make_repo, now):
        counters = PatternCounters(same_day_pattern=80, fake_stars=50)

        assert calculate_suspicion_score(counters, make_repo(), 100, 0, now) == 0

    def test_low_fork_ratio_on_popular_repo(self, make_repo, now):
        repo_info = make_repo(stars=2000, forks=5, created_at=now - datetime.timedelta(days=4000))

        assert calculate_suspicion_score(PatternCounters(), repo_info, 0, 0, now) == 20

    def test_creation_clustering(self, make_repo, now):
        counters = PatternCounters(creation_dates={"2024-05-01": 11, "2024-05-02": 3})

        assert calculate_suspicion_score(counters, make_repo(), 0, 0, now) == 15

    def test_score_saturates_at_100(self, make_repo, now):
        counters = PatternCounters(
            same_day_pattern=100,
            fake_stars=100,
            low_engagement=100,
            new_accounts=100,
            coordinated=20,
        )
        repo_info = make_repo(stars=50000, forks=1, created_at=now - datetime.timedelta(days=10))

        assert calculate_suspicion_score(counters, repo_info, 100, 100, now) == 100


class TestIndicators:
    def test_only_top_velocity_tier_reported(self, make_repo, now):
        repo_info = make_repo(stars=6000, forks=600, created_at=now - datetime.timedelta(days=10))

        indicators = generate_suspicion_indicators(PatternCounters(), repo_info, 0, 0, now)

        assert indicators == ["Extremely high star velocity: 600.0 stars/day"]

    def test_profile_indicators(self, make_repo, now):
        counters = PatternCounters(same_day_pattern=40, fake_stars=35, low_engagement=60, new_accounts=40)

        indicators = generate_suspicion_indicators(counters, make_repo(), 0, 100, now)

        assert len(indicators) == 4
        assert indicators[0].startswith("High same-day pattern: 40.0%")
        assert indicators[1].startswith("High fake star ratio: 35.0%")

    def test_no_indicators_for_quiet_repo(self, make_repo, now):
        assert generate_suspicion_indicators(PatternCounters(), make_repo(), 10, 10, now) == []


class TestPatternAnalyzer:
    """Test cases for PatternAnalyzer.analyze."""

    def test_coordinated_minute_bucket(self, make_repo, make_star, fake_profile, now):
        minute = datetime.datetime(2024, 5, 25, 11, 7, tzinfo=UTC)
        profiles = [
            fake_profile(f"temp{i}", starred_at=minute + datetime.timedelta(seconds=10 * i))
            for i in range(4)
        ]
        stars = [make_star(p.login, p.starred_at) for p in profiles]

        result = PatternAnalyzer(now).analyze(stars, profiles, make_repo())

        assert result.patterns.coordinated == 4
        assert [(w.time, w.count) for w in result.patterns.suspicious_time_windows] == [
            ("2024-05-25T11:07", 4)
        ]

    def test_three_in_a_minute_is_not_coordinated(self, make_repo, make_star, fake_profile, now):
        minute = datetime.datetime(2024, 5, 25, 11, 7, tzinfo=UTC)
        profiles = [fake_profile(f"temp{i}", starred_at=minute) for i in range(3)]
        stars = [make_star(p.login, p.starred_at) for p in profiles]

        result = PatternAnalyzer(now).analyze(stars, profiles, make_repo())

        assert result.patterns.coordinated == 0
        assert result.patterns.suspicious_time_windows == []

    def test_counts_and_timeline(self, make_repo, make_star, make_profile, fake_profile, now):
        profiles = [make_profile("octocat"), fake_profile("temp1")]
        stars = [make_star("octocat"), make_star("temp1"), make_star("human-3")]

        result = PatternAnalyzer(now).analyze(stars, profiles, make_repo())

        assert result.analysis_type == "advanced"
        assert result.analyzed_sample == 3
        assert result.detailed_sample == 2
        assert result.patterns.fake_stars == 1
        assert result.patterns.real_stars == 1
        assert result.patterns.no_email == 1
        assert result.patterns.no_repos == 1
        assert result.patterns.low_engagement == 1
        assert result.patterns.same_day_pattern == 1
        assert result.patterns.new_accounts == 1
        assert result.patterns.bot_like_names == 1
        assert result.patterns.bot_like_names_list == ["temp1"]
        assert [(e.username, e.is_fake) for e in result.timeline] == [("octocat", False), ("temp1", True)]
        assert result.timeline[1].date == "2024-05-25"
        assert result.timeline[1].account_age == 7

    def test_new_account_under_thirty_days(self, make_repo, make_star, make_profile, now):
        profile = make_profile("fresh", created_at=now - datetime.timedelta(days=29, hours=23))

        result = PatternAnalyzer(now).analyze([make_star("fresh")], [profile], make_repo())

        assert result.patterns.new_accounts == 1

    def test_analysis_is_repeatable(self, make_repo, make_star, make_profile, fake_profile, now):
        profiles = [make_profile("octocat"), fake_profile("temp1"), fake_profile("temp2")]
        stars = [make_star(p.login, p.starred_at) for p in profiles]
        repo_info = make_repo(stars=3000, forks=2)

        first = PatternAnalyzer(now).analyze(stars, profiles, repo_info)
        second = PatternAnalyzer(now).analyze(stars, profiles, repo_info)

        assert first == second
        assert first.to_dict() == second.to_dict()

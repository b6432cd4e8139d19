"""Constants used across the StarSentry package."""

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
DEFAULT_ACCEPT = "application/vnd.github+json"
STAR_ACCEPT = "application/vnd.github.v3.star+json"  # Adds starred_at to stargazer pages
GITHUB_API_VERSION = "2022-11-28"
REQUEST_TIMEOUT = 30

# Retry / backoff
MAX_RETRY_ITERATIONS = 5  # Hard ceiling on request attempts per fetch
MAX_SERVER_ERROR_RETRIES = 3
SERVER_ERROR_BASE_WAIT = 1.0  # Seconds, doubled per server error
SERVER_ERROR_MAX_WAIT = 30.0
QUOTA_RESET_BUFFER = 1.0  # Seconds added after the advertised reset time
RETRYABLE_SERVER_STATUSES = (502, 503)

# Collection
STARGAZERS_PER_PAGE = 100
STARGAZER_PAGE_DELAY = 0.1
USER_LOOKUP_DELAY = 0.15
DEFAULT_MAX_STARS = 5000
DEFAULT_MAX_USERS = 200

# Result store
DEFAULT_CACHE_DIR = "cache"
RESULT_TTL_SECONDS = 24 * 60 * 60

# Per-profile thresholds
NEW_ACCOUNT_DAYS = 30
LOW_ENGAGEMENT_LIMIT = 2  # followers and following both below this
COORDINATED_BUCKET_MIN = 4  # Stars in one minute bucket before it counts
FAKE_STAR_CREATED_AFTER = "2022-01-01T00:00:00Z"
FAKE_STAR_MAX_REPOS = 5

# Advanced score weights: (ratio signal, multiplier)
ADVANCED_RATIO_WEIGHTS = {
    "same_day_pattern": 40,
    "fake_stars": 35,
    "low_engagement": 20,
    "new_accounts": 15,
}
ADVANCED_GENERIC_WEIGHT = 15
ADVANCED_BOT_WEIGHT = 20

# Velocity tiers: (stars per day above, points), highest first
ADVANCED_VELOCITY_TIERS = ((1000, 35), (500, 30), (100, 20), (50, 10))
BASIC_VELOCITY_TIERS = ((500, 30), (100, 20), (50, 10))
BASIC_GENERIC_WEIGHT = 20
BASIC_BOT_WEIGHT = 25

COORDINATED_TIERS = ((10, 25), (5, 15))
CREATION_CLUSTER_TIERS = ((10, 15), (5, 10))
FORK_RATIO_LIMIT = 0.005
FORK_RATIO_MIN_STARS = 1000
FORK_RATIO_POINTS = 20

# Indicator thresholds (percent unless noted)
INDICATOR_VELOCITY_EXTREME = 500  # stars/day
INDICATOR_VELOCITY_HIGH = 100  # stars/day
INDICATOR_SAME_DAY_PCT = 20
INDICATOR_FAKE_PCT = 30
INDICATOR_LOW_ENGAGEMENT_PCT = 50
INDICATOR_NEW_ACCOUNT_PCT = 30
INDICATOR_COORDINATED = 5  # stars
INDICATOR_GENERIC_PCT = 15
INDICATOR_BOT_PCT = 10
INDICATOR_FORK_PCT = 0.5
INDICATOR_CREATION_CLUSTER = 5  # accounts

BASIC_INDICATOR_VELOCITY = 100
BASIC_INDICATOR_GENERIC_RATIO = 0.1
BASIC_INDICATOR_BOT_RATIO = 0.05

SCORE_MIN = 0
SCORE_MAX = 100

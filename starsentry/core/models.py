"""Data model for stargazer analysis runs."""

import copy
import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from starsentry.utils.date_utils import format_timestamp, parse_timestamp


T = TypeVar("T")


@dataclass(frozen=True)
class RepositoryInfo:
    """Point-in-time snapshot of a repository, fetched once per run."""

    owner: str
    name: str
    full_name: str
    star_count: int
    fork_count: int
    created_at: datetime.datetime
    language: Optional[str] = None
    description: Optional[str] = None
    open_issues: int = 0
    watchers: int = 0
    html_url: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RepositoryInfo":
        """
        Build from a GET /repos/{owner}/{repo} payload.

        Raises:
            ValueError: If the payload has no parseable creation date
        """
        created_at = parse_timestamp(data.get("created_at"))
        if created_at is None:
            raise ValueError(f"Repository payload has no valid created_at: {data.get('created_at')!r}")

        owner = (data.get("owner") or {}).get("login", "")
        name = data.get("name", "")
        return cls(
            owner=owner,
            name=name,
            full_name=data.get("full_name") or f"{owner}/{name}",
            star_count=data.get("stargazers_count") or 0,
            fork_count=data.get("forks_count") or 0,
            created_at=created_at,
            language=data.get("language"),
            description=data.get("description"),
            open_issues=data.get("open_issues_count") or 0,
            watchers=data.get("watchers_count") or 0,
            html_url=data.get("html_url"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "name": self.name,
            "full_name": self.full_name,
            "stars": self.star_count,
            "forks": self.fork_count,
            "created_at": format_timestamp(self.created_at),
            "language": self.language,
            "description": self.description,
            "open_issues": self.open_issues,
            "watchers": self.watchers,
            "html_url": self.html_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryInfo":
        return cls(
            owner=data["owner"],
            name=data["name"],
            full_name=data["full_name"],
            star_count=data["stars"],
            fork_count=data["forks"],
            created_at=parse_timestamp(data["created_at"]),
            language=data.get("language"),
            description=data.get("description"),
            open_issues=data.get("open_issues", 0),
            watchers=data.get("watchers", 0),
            html_url=data.get("html_url"),
        )


@dataclass(frozen=True)
class StarRecord:
    """One stargazer: who starred and when."""

    username: str
    starred_at: datetime.datetime

    @classmethod
    def from_api(cls, entry: Dict[str, Any]) -> Optional["StarRecord"]:
        """
        Build from a star+json stargazer entry ({"starred_at", "user": {"login"}}).

        Returns None for entries without a login or with an unparseable timestamp.
        """
        if not isinstance(entry, dict):
            return None
        user = entry.get("user") or {}
        username = user.get("login") if isinstance(user, dict) else None
        starred_at = parse_timestamp(entry.get("starred_at"))
        if not username or starred_at is None:
            return None
        return cls(username=username, starred_at=starred_at)


@dataclass(frozen=True)
class UserProfile:
    """A resolved account with the star timestamp of the record it came from."""

    login: str
    created_at: datetime.datetime
    updated_at: datetime.datetime
    starred_at: datetime.datetime
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    public_gists: int = 0
    email: Optional[str] = None
    bio: Optional[str] = None
    blog: Optional[str] = None
    hireable: Optional[bool] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], starred_at: datetime.datetime) -> Optional["UserProfile"]:
        """Build from a GET /users/{login} payload; None if required fields are unusable."""
        login = data.get("login")
        created_at = parse_timestamp(data.get("created_at"))
        updated_at = parse_timestamp(data.get("updated_at"))
        if not login or created_at is None or updated_at is None:
            return None
        return cls(
            login=login,
            created_at=created_at,
            updated_at=updated_at,
            starred_at=starred_at,
            followers=data.get("followers") or 0,
            following=data.get("following") or 0,
            public_repos=data.get("public_repos") or 0,
            public_gists=data.get("public_gists") or 0,
            email=data.get("email") or None,
            bio=data.get("bio") or None,
            blog=data.get("blog") or None,
            hireable=data.get("hireable"),
        )


@dataclass(frozen=True)
class SuspiciousTimeWindow:
    """A one-minute bucket holding more stars than organic traffic would."""

    time: str
    count: int


@dataclass
class PatternCounters:
    """Mutable accumulator for one analysis run."""

    generic_usernames: int = 0
    bot_like_names: int = 0
    new_accounts: int = 0
    no_repos: int = 0
    no_email: int = 0
    low_engagement: int = 0
    same_day_pattern: int = 0
    coordinated: int = 0
    real_stars: int = 0
    fake_stars: int = 0
    creation_dates: Dict[str, int] = field(default_factory=dict)
    stars_by_minute: Dict[str, int] = field(default_factory=dict)
    generic_usernames_list: List[str] = field(default_factory=list)
    bot_like_names_list: List[str] = field(default_factory=list)
    suspicious_time_windows: List[SuspiciousTimeWindow] = field(default_factory=list)

    @property
    def max_same_day_creations(self) -> int:
        return max(self.creation_dates.values(), default=0)

    def snapshot(self) -> "PatternCounters":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generic_usernames": self.generic_usernames,
            "bot_like_names": self.bot_like_names,
            "new_accounts": self.new_accounts,
            "no_repos": self.no_repos,
            "no_email": self.no_email,
            "low_engagement": self.low_engagement,
            "same_day_pattern": self.same_day_pattern,
            "coordinated": self.coordinated,
            "real_stars": self.real_stars,
            "fake_stars": self.fake_stars,
            "creation_dates": dict(self.creation_dates),
            "stars_by_minute": dict(self.stars_by_minute),
            "generic_usernames_list": list(self.generic_usernames_list),
            "bot_like_names_list": list(self.bot_like_names_list),
            "suspicious_time_windows": [
                {"time": w.time, "count": w.count} for w in self.suspicious_time_windows
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternCounters":
        windows = [
            SuspiciousTimeWindow(time=w["time"], count=w["count"])
            for w in data.get("suspicious_time_windows", [])
        ]
        counters = {
            k: v for k, v in data.items() if k in cls.__dataclass_fields__ and k != "suspicious_time_windows"
        }
        return cls(suspicious_time_windows=windows, **counters)


@dataclass(frozen=True)
class TimelineEntry:
    """Per-user classification, in profile-processing order."""

    date: str
    username: str
    is_fake: bool
    account_age: int
    followers: int
    public_repos: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "user": self.username,
            "is_fake": self.is_fake,
            "account_age": self.account_age,
            "followers": self.followers,
            "repos": self.public_repos,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineEntry":
        return cls(
            date=data["date"],
            username=data["user"],
            is_fake=data["is_fake"],
            account_age=data["account_age"],
            followers=data["followers"],
            public_repos=data["repos"],
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Final output of one analysis, advanced or basic."""

    total_stars: int
    analyzed_sample: int
    detailed_sample: int
    patterns: PatternCounters
    timeline: Tuple[TimelineEntry, ...]
    suspicion_indicators: Tuple[str, ...]
    suspicion_score: int
    analysis_type: str

    @property
    def is_advanced(self) -> bool:
        return self.detailed_sample > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_stars": self.total_stars,
            "analyzed_sample": self.analyzed_sample,
            "detailed_sample": self.detailed_sample,
            "analysis_type": self.analysis_type,
            "suspicion_score": self.suspicion_score,
            "suspicion_indicators": list(self.suspicion_indicators),
            "patterns": self.patterns.to_dict(),
            "timeline": [entry.to_dict() for entry in self.timeline],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        return cls(
            total_stars=data["total_stars"],
            analyzed_sample=data["analyzed_sample"],
            detailed_sample=data.get("detailed_sample", 0),
            patterns=PatternCounters.from_dict(data.get("patterns", {})),
            timeline=tuple(TimelineEntry.from_dict(e) for e in data.get("timeline", [])),
            suspicion_indicators=tuple(data.get("suspicion_indicators", [])),
            suspicion_score=data["suspicion_score"],
            analysis_type=data.get("analysis_type", "advanced" if data.get("detailed_sample") else "basic"),
        )


@dataclass(frozen=True)
class CollectionResult(Generic[T]):
    """
    Items gathered by a failure-tolerant loop.

    degraded is True when at least one page or lookup failed, meaning the
    sample is smaller than it would have been.
    """

    items: Tuple[T, ...]
    degraded: bool = False

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class RunMetadata:
    analyzed_at: datetime.datetime
    analysis_type: str
    sample_size: int
    detailed_sample: int
    from_cache: bool = False
    degraded: bool = False
    processing_time_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analyzed_at": format_timestamp(self.analyzed_at),
            "analysis_type": self.analysis_type,
            "sample_size": self.sample_size,
            "detailed_sample": self.detailed_sample,
            "from_cache": self.from_cache,
            "degraded": self.degraded,
            "processing_time_ms": self.processing_time_ms,
        }


@dataclass(frozen=True)
class AnalysisRun:
    """
    What the engine hands back: the result plus the context it was computed in.

    stargazers holds the collected sample for fresh runs; it is empty when the
    result was reused from the store.
    """

    result_id: Optional[str]
    repository: RepositoryInfo
    analysis: AnalysisResult
    metadata: RunMetadata
    stargazers: Tuple[StarRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.result_id,
            "repository": self.repository.to_dict(),
            "analysis": self.analysis.to_dict(),
            "metadata": self.metadata.to_dict(),
        }

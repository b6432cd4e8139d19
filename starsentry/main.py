"""Main StarSentry analysis engine."""

import datetime
import json
import logging
import time
from collections import Counter
from typing import Optional

from starsentry.analyzers.basic_analyzer import BasicAnalyzer
from starsentry.analyzers.pattern_analyzer import PatternAnalyzer
from starsentry.analyzers.star_timeline import StarTimeline
from starsentry.analyzers.username_patterns import (
    BOT_LIKE_PATTERNS,
    GENERIC_USERNAME_PATTERNS,
    matching_patterns,
)
from starsentry.api.github_api import GitHubAPI
from starsentry.collectors.profile_enricher import ProfileEnricher
from starsentry.collectors.stargazer_collector import StargazerCollector
from starsentry.core.config import StarSentryConfig
from starsentry.core.errors import StoreError
from starsentry.core.models import AnalysisRun, RunMetadata
from starsentry.core.suspicion_level import generate_badge_url, suspicion_level
from starsentry.storage.result_store import ResultStore, StoredAnalysis
from starsentry.utils.date_utils import utc_now
from starsentry.utils.repo_utils import parse_owner_repo

logger = logging.getLogger(__name__)


class StarSentry:
    """
    Main StarSentry analysis engine.

    Runs collection, optional profile enrichment and analysis strictly in
    sequence for one repository, reusing a stored result when one satisfies
    the request.
    """

    def __init__(
        self,
        config: Optional[StarSentryConfig] = None,
        github_api: Optional[GitHubAPI] = None,
        result_store: Optional[ResultStore] = None,
    ):
        """
        Initialize the StarSentry engine.

        Args:
            config: Settings, read from the environment if omitted
            github_api: API client; one built from config.token if omitted
            result_store: Store for results; a file store under config.cache_dir if omitted
        """
        self.config = config if config is not None else StarSentryConfig.from_env()
        self.github_api = github_api if github_api is not None else GitHubAPI(self.config.token)
        self.result_store = (
            result_store
            if result_store is not None
            else ResultStore(self.config.cache_dir, self.config.result_ttl)
        )

        if not self.github_api.token:
            logger.warning(
                "No GitHub token provided. Rate limits are much lower (60 vs 5000 requests/hour); "
                "deep analysis of large samples will stall waiting for the quota to reset."
            )

    def run_analysis(
        self,
        owner_repo: str,
        deep: bool = True,
        max_stars: Optional[int] = None,
        max_users: Optional[int] = None,
        use_cache: bool = True,
        now: Optional[datetime.datetime] = None,
    ) -> AnalysisRun:
        """
        Analyze a repository's stargazers.

        Args:
            owner_repo: "owner/repo" or a GitHub URL
            deep: Resolve profiles and run the advanced analysis
            max_stars: Cap on stargazers collected (config default if None)
            max_users: Cap on profiles resolved (config default if None)
            use_cache: Reuse a stored result that satisfies this request
            now: Pin the analysis time (account ages, velocity)

        Returns:
            AnalysisRun: The result with its repository snapshot and metadata

        Raises:
            ValueError: If owner_repo can't be parsed
            ApiError: If the repository lookup fails
        """
        owner, repo = parse_owner_repo(owner_repo)
        max_stars = max_stars if max_stars is not None else self.config.max_stars
        max_users = max_users if max_users is not None else self.config.max_users

        if use_cache:
            stored = self._find_reusable(owner, repo, deep, max_stars, now)
            if stored is not None:
                logger.info(
                    f"Returning existing {stored.analysis_type} analysis for {owner}/{repo}"
                )
                return AnalysisRun(
                    result_id=stored.result_id,
                    repository=stored.repository,
                    analysis=stored.analysis,
                    metadata=RunMetadata(
                        analyzed_at=stored.created_at,
                        analysis_type=stored.analysis_type,
                        sample_size=stored.analysis.analyzed_sample,
                        detailed_sample=stored.analysis.detailed_sample,
                        from_cache=True,
                    ),
                )

        logger.info(f"Starting {'advanced' if deep else 'basic'} analysis for {owner}/{repo}")
        start_time = time.monotonic()

        # Repository lookup failure is fatal to the run
        repo_info = self.github_api.get_repo(owner, repo)

        collection = StargazerCollector(self.github_api).collect(owner, repo, max_stars)
        stargazers = collection.items
        logger.info(f"Fetched {len(stargazers)} stargazers total.")
        degraded = collection.degraded

        if deep and stargazers:
            enrichment = ProfileEnricher(
                self.github_api, show_progress=self.config.show_progress
            ).enrich(stargazers, max_users)
            degraded = degraded or enrichment.degraded
            analysis = PatternAnalyzer(now).analyze(stargazers, enrichment.items, repo_info)
        else:
            analysis = BasicAnalyzer(now).analyze(stargazers, repo_info)

        processing_time_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Analysis complete. Suspicion score: {analysis.suspicion_score} ({processing_time_ms}ms)"
        )

        result_id = None
        try:
            result_id = self.result_store.save(owner, repo, analysis, repo_info, now=now)
            self.result_store.purge_expired(now=now)
        except StoreError as e:
            logger.error(f"Failed to store analysis result for {owner}/{repo}: {e}")

        return AnalysisRun(
            result_id=result_id,
            repository=repo_info,
            analysis=analysis,
            metadata=RunMetadata(
                analyzed_at=now or utc_now(),
                analysis_type=analysis.analysis_type,
                sample_size=len(stargazers),
                detailed_sample=analysis.detailed_sample,
                degraded=degraded,
                processing_time_ms=processing_time_ms,
            ),
            stargazers=stargazers,
        )

    def _find_reusable(
        self, owner: str, repo: str, deep: bool, max_stars: int, now: Optional[datetime.datetime]
    ) -> Optional[StoredAnalysis]:
        """The latest stored result if its mode matches and its sample is large enough."""
        stored = self.result_store.find_latest(owner, repo, now=now)
        if stored is None:
            return None

        existing_is_advanced = stored.analysis.is_advanced
        if existing_is_advanced == deep and stored.analysis.analyzed_sample >= max_stars:
            return stored

        reason = "analysis type differs" if existing_is_advanced != deep else "sample size too small"
        logger.info(f"Found existing analysis but {reason}. Performing new analysis.")
        return None

    def get_result(self, result_id: str) -> Optional[StoredAnalysis]:
        """Fetch a stored, unexpired result by identifier."""
        return self.result_store.get(result_id)

    def generate_report(self, run: AnalysisRun, format_str: str = "text") -> str:
        """Generate a formatted report from an analysis run."""
        if format_str == "json":
            return json.dumps(run.to_dict(), indent=2)

        repo_info = run.repository
        analysis = run.analysis
        patterns = analysis.patterns
        meta = run.metadata
        score = analysis.suspicion_score
        level = suspicion_level(score).upper()

        md_report_lines = []
        text_report_lines = []

        # --- Header ---
        title = f"StarSentry Analysis: {repo_info.full_name}"
        md_report_lines.extend([f"# {title}", ""])
        text_report_lines.extend([title, "=" * len(title), ""])

        # --- Overview ---
        created = repo_info.created_at.date().isoformat()
        md_report_lines.extend(
            [
                "## Overview",
                f"- **Repository**: [{repo_info.full_name}]({repo_info.html_url or ''})",
                f"- **Description**: {repo_info.description or 'N/A'}",
                f"- **Created**: {created}",
                f"- **Stars**: {repo_info.star_count}",
                f"- **Forks**: {repo_info.fork_count}",
                f"- **Primary Language**: {repo_info.language or 'N/A'}",
                "",
            ]
        )
        text_report_lines.extend(
            [
                "Overview:",
                f"  Repository: {repo_info.full_name} ({repo_info.html_url or ''})",
                f"  Description: {repo_info.description or 'N/A'}",
                f"  Created: {created}",
                f"  Stars: {repo_info.star_count}",
                f"  Forks: {repo_info.fork_count}",
                f"  Primary Language: {repo_info.language or 'N/A'}",
                "",
            ]
        )

        # --- Score ---
        md_report_lines.extend([f"## Suspicion Score: {score}/100 ({level} RISK)", ""])
        text_report_lines.extend([f"SUSPICION SCORE: {score}/100 ({level} RISK)", ""])

        sample_line = (
            f"{meta.analysis_type.capitalize()} analysis of {analysis.analyzed_sample} stargazers"
            f" ({analysis.detailed_sample} profiled)"
        )
        notes = []
        if meta.from_cache:
            notes.append("reused stored result")
        if meta.degraded:
            notes.append("sample reduced by API errors")
        if notes:
            sample_line += f" [{'; '.join(notes)}]"
        md_report_lines.extend([f"_{sample_line}_", ""])
        text_report_lines.extend([f"  {sample_line}", ""])

        # --- Indicators ---
        if analysis.suspicion_indicators:
            md_report_lines.append("## Suspicion Indicators")
            text_report_lines.append("Suspicion Indicators:")
            for indicator in analysis.suspicion_indicators:
                md_report_lines.append(f"- {indicator}")
                text_report_lines.append(f"  - {indicator}")
        else:
            md_report_lines.append("No suspicion indicators triggered.")
            text_report_lines.append("No suspicion indicators triggered.")
        md_report_lines.append("")
        text_report_lines.append("")

        # --- Profile patterns ---
        if analysis.is_advanced:
            rows = [
                ("Fake-classified stars", f"{patterns.fake_stars}/{analysis.detailed_sample}"),
                ("Same-day pattern", patterns.same_day_pattern),
                ("Low engagement", patterns.low_engagement),
                ("New accounts (<30 days)", patterns.new_accounts),
                ("No public repos", patterns.no_repos),
                ("No public email", patterns.no_email),
                ("Coordinated stars", patterns.coordinated),
                ("Max accounts created on one day", patterns.max_same_day_creations),
            ]
            md_report_lines.extend(["## Profile Patterns", "| Signal | Count |", "|---|---|"])
            text_report_lines.append("Profile Patterns:")
            for label, value in rows:
                md_report_lines.append(f"| {label} | {value} |")
                text_report_lines.append(f"  {label}: {value}")

            if patterns.suspicious_time_windows:
                windows = sorted(patterns.suspicious_time_windows, key=lambda w: w.count, reverse=True)
                md_report_lines.extend(["", "### Suspicious Time Windows (max 3 shown)"])
                text_report_lines.append("  Suspicious time windows (max 3 shown):")
                for window in windows[:3]:
                    md_report_lines.append(f"- {window.time} UTC: {window.count} stars")
                    text_report_lines.append(f"    {window.time} UTC: {window.count} stars")
            md_report_lines.append("")
            text_report_lines.append("")

        # --- Usernames ---
        md_report_lines.append("## Username Patterns")
        text_report_lines.append("Username Patterns:")
        for label, count, names, named in (
            (
                "Generic usernames",
                patterns.generic_usernames,
                patterns.generic_usernames_list,
                GENERIC_USERNAME_PATTERNS,
            ),
            ("Bot-like usernames", patterns.bot_like_names, patterns.bot_like_names_list, BOT_LIKE_PATTERNS),
        ):
            examples = ", ".join(names[:5])
            suffix = f" (e.g. {examples})" if examples else ""
            md_report_lines.append(f"- **{label}**: {count}{suffix}")
            text_report_lines.append(f"  {label}: {count}{suffix}")

            pattern_counts = Counter(p for name in names for p in matching_patterns(name, named))
            if pattern_counts:
                breakdown = ", ".join(f"{p} ({n})" for p, n in pattern_counts.most_common())
                md_report_lines.append(f"  - Matched patterns: {breakdown}")
                text_report_lines.append(f"    Matched patterns: {breakdown}")
        md_report_lines.append("")
        text_report_lines.append("")

        # --- Star timeline ---
        if run.stargazers:
            peak = StarTimeline(run.stargazers, analysis.timeline).peak_day()
            if peak:
                md_report_lines.extend(
                    [f"**Busiest day in sample**: {peak['date']} (+{peak['stars']} stars)", ""]
                )
                text_report_lines.extend(
                    [f"Busiest day in sample: {peak['date']} (+{peak['stars']} stars)", ""]
                )

        # --- Badge ---
        badge_url = generate_badge_url(score)
        badge_md = f"![Star Suspicion]({badge_url})"
        md_report_lines.extend(["## Badge", "", badge_md, ""])
        text_report_lines.extend(["BADGE", "", badge_md, ""])

        if run.result_id:
            md_report_lines.append(f"_Result id: {run.result_id}_")
            text_report_lines.append(f"Result id: {run.result_id}")

        if format_str == "markdown":
            return "\n".join(md_report_lines)
        return "\n".join(text_report_lines)

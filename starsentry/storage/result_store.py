"""File-backed storage of analysis results with expiry."""

import datetime
import glob
import json
import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional

from starsentry.core.constants import DEFAULT_CACHE_DIR, RESULT_TTL_SECONDS
from starsentry.core.errors import StoreError
from starsentry.core.models import AnalysisResult, RepositoryInfo
from starsentry.utils.date_utils import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredAnalysis:
    result_id: str
    repo_owner: str
    repo_name: str
    created_at: datetime.datetime
    expires_at: datetime.datetime
    repository: RepositoryInfo
    analysis: AnalysisResult

    @property
    def analysis_type(self) -> str:
        return "advanced" if self.analysis.is_advanced else "basic"


class ResultStore:
    """
    Stores analysis results as JSON files, one per result.

    Entries expire default_ttl seconds after they are saved; expired entries
    are ignored by every lookup and never returned.

    Attributes:
        store_dir: Directory where result files are stored
        default_ttl: Lifetime of a stored result in seconds
    """

    def __init__(self, cache_dir: str = DEFAULT_CACHE_DIR, default_ttl: int = RESULT_TTL_SECONDS):
        """
        Initialize the result store.

        Args:
            cache_dir: Base directory; results live in its "results" subdirectory
            default_ttl: Expiration time in seconds (24 hours)
        """
        self.store_dir = os.path.join(cache_dir, "results")
        self.default_ttl = default_ttl

        # Create store directory if it doesn't exist
        os.makedirs(self.store_dir, exist_ok=True)

    @staticmethod
    def _safe(part: str) -> str:
        """Make a path component safe for a filename."""
        return "".join(c if c.isalnum() or c in "-." else "_" for c in part.lower())

    def _repo_prefix(self, owner: str, repo: str) -> str:
        return f"{self._safe(owner)}__{self._safe(repo)}__"

    def _path_for(self, owner: str, repo: str, result_id: str) -> str:
        return os.path.join(self.store_dir, f"{self._repo_prefix(owner, repo)}{result_id}.json")

    def save(
        self,
        owner: str,
        repo: str,
        analysis: AnalysisResult,
        repository: RepositoryInfo,
        now: Optional[datetime.datetime] = None,
    ) -> str:
        """
        Save a result and return its new identifier.

        Raises:
            StoreError: If the file can't be written
        """
        now = now or utc_now()
        result_id = uuid.uuid4().hex
        record = {
            "id": result_id,
            "repo_owner": owner,
            "repo_name": repo,
            "repo_url": f"https://github.com/{owner}/{repo}",
            "suspicion_score": analysis.suspicion_score,
            "analysis_type": "advanced" if analysis.is_advanced else "basic",
            "created_at": format_timestamp(now),
            "expires_at": format_timestamp(now + datetime.timedelta(seconds=self.default_ttl)),
            "repository_data": repository.to_dict(),
            "analysis_data": analysis.to_dict(),
        }

        path = self._path_for(owner, repo, result_id)
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(record, f)
        except OSError as e:
            raise StoreError(f"Error writing result {result_id}: {e}") from e

        logger.debug(f"Stored result {result_id} for {owner}/{repo}")
        return result_id

    def _load(self, path: str) -> Optional[StoredAnalysis]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
            created_at = parse_timestamp(record["created_at"])
            expires_at = parse_timestamp(record["expires_at"])
            if created_at is None or expires_at is None:
                raise ValueError("missing created_at/expires_at")
            return StoredAnalysis(
                result_id=record["id"],
                repo_owner=record["repo_owner"],
                repo_name=record["repo_name"],
                created_at=created_at,
                expires_at=expires_at,
                repository=RepositoryInfo.from_dict(record["repository_data"]),
                analysis=AnalysisResult.from_dict(record["analysis_data"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug(f"Error reading stored result {path}: {e}")
            return None

    def get(self, result_id: str, now: Optional[datetime.datetime] = None) -> Optional[StoredAnalysis]:
        """Look up an unexpired result by identifier."""
        now = now or utc_now()
        matches = glob.glob(os.path.join(self.store_dir, f"*__{self._safe(result_id)}.json"))
        for path in matches:
            stored = self._load(path)
            if stored and stored.result_id == result_id and stored.expires_at > now:
                return stored
        return None

    def find_latest(
        self, owner: str, repo: str, now: Optional[datetime.datetime] = None
    ) -> Optional[StoredAnalysis]:
        """The most recently created unexpired result for a repository."""
        now = now or utc_now()
        pattern = os.path.join(self.store_dir, f"{glob.escape(self._repo_prefix(owner, repo))}*.json")

        latest = None
        for path in glob.glob(pattern):
            stored = self._load(path)
            if stored is None or stored.expires_at <= now:
                continue
            # "acme/tool" shares a filename prefix with "acme/tool__cli"
            if stored.repo_owner.lower() != owner.lower() or stored.repo_name.lower() != repo.lower():
                continue
            if latest is None or stored.created_at > latest.created_at:
                latest = stored
        return latest

    def purge_expired(self, now: Optional[datetime.datetime] = None) -> int:
        """Delete expired and unreadable result files; returns how many were removed."""
        now = now or utc_now()
        removed = 0
        for path in glob.glob(os.path.join(self.store_dir, "*.json")):
            stored = self._load(path)
            if stored is not None and stored.expires_at > now:
                continue
            try:
                os.remove(path)
                removed += 1
            except OSError as e:
                logger.debug(f"Error removing {path}: {e}")
        return removed

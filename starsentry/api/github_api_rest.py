"""GitHub REST API specific methods."""

import logging
from typing import Any, Dict, List

from starsentry.core.constants import STAR_ACCEPT, STARGAZERS_PER_PAGE
from starsentry.core.errors import ApiError, ApiErrorKind
from starsentry.core.models import RepositoryInfo

logger = logging.getLogger(__name__)


class GitHubRestMethods:
    """
    Endpoint methods of the REST API.

    Mixed into GitHubAPI, which supplies fetch().
    """

    def get_repo(self, owner: str, repo: str) -> RepositoryInfo:
        """
        Get a snapshot of repository metadata.

        This is the first call of every analysis; its failure is fatal to the run.

        Args:
            owner: Repository owner (user or organization)
            repo: Repository name

        Returns:
            RepositoryInfo: Stars, forks, creation date and descriptive fields

        Raises:
            ApiError: NOT_FOUND if the repository doesn't exist, otherwise the
                      fetch failure or HTTP_ERROR for an unusable payload
        """
        logger.info(f"Fetching repository data for {owner}/{repo}")
        try:
            data = self.fetch(f"/repos/{owner}/{repo}")
        except ApiError as e:
            if e.kind is ApiErrorKind.NOT_FOUND:
                raise ApiError(
                    f"Repository {owner}/{repo} not found.", ApiErrorKind.NOT_FOUND, e.status_code
                ) from e
            raise

        if not isinstance(data, dict):
            raise ApiError(
                f"Unexpected repository payload for {owner}/{repo}: {type(data).__name__}",
                ApiErrorKind.HTTP_ERROR,
            )
        data.setdefault("name", repo)
        if not data.get("owner"):
            data["owner"] = {"login": owner}

        try:
            repo_info = RepositoryInfo.from_api(data)
        except ValueError as e:
            raise ApiError(
                f"Failed to read repository {owner}/{repo}: {e}", ApiErrorKind.HTTP_ERROR
            ) from e

        logger.debug(
            f"Retrieved repo data for {repo_info.full_name}: "
            f"{repo_info.star_count} stars, {repo_info.fork_count} forks"
        )
        return repo_info

    def get_stargazer_page(
        self, owner: str, repo: str, page: int, per_page: int = STARGAZERS_PER_PAGE
    ) -> List[Dict[str, Any]]:
        """
        Get one page of stargazers with their star timestamps.

        Uses the star+json media type; the default representation omits starred_at.

        Returns:
            List[Dict]: Raw entries of the form {"starred_at": ..., "user": {"login": ...}}
        """
        data = self.fetch(
            f"/repos/{owner}/{repo}/stargazers",
            params={"page": page, "per_page": per_page},
            accept=STAR_ACCEPT,
        )
        if not isinstance(data, list):
            raise ApiError(
                f"Unexpected stargazer page {page} for {owner}/{repo}: {type(data).__name__}",
                ApiErrorKind.HTTP_ERROR,
            )
        return data

    def get_user(self, login: str) -> Dict[str, Any]:
        """Get a user's public profile."""
        data = self.fetch(f"/users/{login}")
        if not isinstance(data, dict):
            raise ApiError(
                f"Unexpected profile payload for {login}: {type(data).__name__}",
                ApiErrorKind.HTTP_ERROR,
            )
        return data

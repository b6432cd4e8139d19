"""Collects a repository's stargazers page by page."""

import logging
from typing import Iterator, List

from starsentry.core.constants import STARGAZER_PAGE_DELAY, STARGAZERS_PER_PAGE
from starsentry.core.errors import ApiError
from starsentry.core.models import CollectionResult, StarRecord

logger = logging.getLogger(__name__)


class StargazerCollector:
    """
    Walks the stargazer listing of one repository from page 1.

    A failed page ends the walk early; whatever was gathered so far is kept and
    the result is flagged as degraded rather than failing the analysis.
    """

    def __init__(self, github_api, page_delay: float = STARGAZER_PAGE_DELAY):
        self.github_api = github_api
        self.page_delay = page_delay
        self.degraded = False

    def iter_stargazers(self, owner: str, repo: str) -> Iterator[StarRecord]:
        """
        Lazily yield StarRecords in API page order until the listing is exhausted
        or a page fails. Sets self.degraded when a page fails.
        """
        self.degraded = False
        page = 1
        while True:
            try:
                raw_page = self.github_api.get_stargazer_page(
                    owner, repo, page, per_page=STARGAZERS_PER_PAGE
                )
            except ApiError as e:
                logger.error(f"Error fetching stargazers page {page} for {owner}/{repo}: {e}")
                self.degraded = True
                return

            if not raw_page:
                return

            for entry in raw_page:
                record = StarRecord.from_api(entry)
                if record is None:
                    logger.debug(f"Skipping malformed star entry on page {page}: {entry}")
                    continue
                yield record

            page += 1
            self.github_api.clock.sleep(self.page_delay)

    def collect(self, owner: str, repo: str, max_stars: int) -> CollectionResult:
        """
        Gather up to max_stars stargazers.

        Args:
            owner: Repository owner
            repo: Repository name
            max_stars: Cap on records collected

        Returns:
            CollectionResult[StarRecord]: Records in page order, degraded if a page failed
        """
        logger.info(f"Fetching stargazers with timestamps for {owner}/{repo}...")
        records: List[StarRecord] = []
        if max_stars <= 0:
            return CollectionResult(items=(), degraded=False)

        stream = self.iter_stargazers(owner, repo)
        for record in stream:
            records.append(record)
            if len(records) % 500 == 0:
                logger.info(f"Fetched {len(records)} stargazers...")
            if len(records) >= max_stars:
                stream.close()
                break

        if self.degraded:
            logger.warning(
                f"Stargazer collection for {owner}/{repo} stopped early; "
                f"continuing with {len(records)} records"
            )
        logger.debug(f"Collected {len(records)} stargazers for {owner}/{repo}")
        return CollectionResult(items=tuple(records), degraded=self.degraded)

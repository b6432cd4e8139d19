"""Resolves stargazers to full user profiles."""

import logging
from typing import List, Sequence

from tqdm import tqdm

from starsentry.core.constants import USER_LOOKUP_DELAY
from starsentry.core.errors import ApiError
from starsentry.core.models import CollectionResult, StarRecord, UserProfile

logger = logging.getLogger(__name__)


class ProfileEnricher:
    """
    Looks up profiles one at a time, in stargazer order.

    Lookups run sequentially so the shared quota is spent at a steady pace. A
    failed lookup is logged and skipped; it never aborts the batch.
    """

    def __init__(self, github_api, lookup_delay: float = USER_LOOKUP_DELAY, show_progress: bool = False):
        self.github_api = github_api
        self.lookup_delay = lookup_delay
        self.show_progress = show_progress

    def enrich(self, stargazers: Sequence[StarRecord], max_users: int) -> CollectionResult:
        """
        Resolve the first max_users stargazers to profiles.

        Args:
            stargazers: Records in collection order
            max_users: Cap on lookups

        Returns:
            CollectionResult[UserProfile]: Profiles carrying their star timestamp,
            degraded if any lookup failed
        """
        to_fetch = list(stargazers[: max(0, max_users)])
        total = len(to_fetch)
        logger.info(f"Fetching detailed info for {total} users...")

        profiles: List[UserProfile] = []
        degraded = False
        progress = tqdm(
            to_fetch, desc="Profiling stargazers", disable=not self.show_progress or total < 10
        )
        for index, record in enumerate(progress, start=1):
            try:
                payload = self.github_api.get_user(record.username)
            except ApiError as e:
                logger.error(f"Error fetching user {record.username}: {e}")
                degraded = True
                continue

            profile = UserProfile.from_api(payload, starred_at=record.starred_at)
            if profile is None:
                logger.warning(f"Skipping user {record.username}: profile is missing timestamps")
                degraded = True
                continue
            profiles.append(profile)

            if index % 50 == 0:
                logger.info(f"Processed {index}/{total} users...")

            self.github_api.clock.sleep(self.lookup_delay)

        if degraded:
            logger.warning(f"Resolved {len(profiles)}/{total} profiles; some lookups failed")
        return CollectionResult(items=tuple(profiles), degraded=degraded)

"""Profile crawler: fetch a show page, follow its episodes, build one record."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from podcast_profiles.config import DEFAULT_LINK_BLOCKLIST
from podcast_profiles.models.records import (
    FinalRecord,
    ValidationError,
    WorkItem,
)
from podcast_profiles.utils.telemetry import ExtractionMetrics

from .episodes import (
    EpisodeDescription,
    extract_episode_description,
    extract_episode_links,
)
from .fetch import FetchClient, FetchError, MalformedResponseError
from .profile_fields import extract_profile_fields
from .selectors import parse_html

__all__ = [
    "FetchClient",
    "FetchError",
    "MalformedResponseError",
    "ProfileExtractor",
    "ValidationError",
]

logger = logging.getLogger(__name__)

FETCH_PROFILE = "fetch_profile"
EXTRACT_PROFILE = "extract_profile"
DISCOVER_EPISODES = "discover_episodes"
EPISODES = "episodes"
MERGE = "merge"
VALIDATE = "validate"


class ProfileExtractor:
    """Build a :class:`FinalRecord` for one work item.

    Profile-level fetch, payload and validation errors propagate to the
    caller. Anything that goes wrong for a single episode is logged and that
    episode is left out of the merged record.
    """

    def __init__(
        self,
        fetch_client: FetchClient,
        headers: Mapping[str, str],
        blocklist: Iterable[str] = DEFAULT_LINK_BLOCKLIST,
        max_episodes: int | None = None,
    ):
        self.fetch_client = fetch_client
        self.headers = dict(headers)
        self.blocklist = tuple(blocklist)
        self.max_episodes = max_episodes

    def new_metrics(self, url: str) -> ExtractionMetrics:
        return ExtractionMetrics(
            url, fetch_strategy=self.fetch_client.proxy_config.provider.value
        )

    def extract(
        self, work_item: WorkItem, metrics: ExtractionMetrics | None = None
    ) -> FinalRecord:
        metrics = metrics or self.new_metrics(work_item.url)
        url = work_item.url

        metrics.start_stage(FETCH_PROFILE)
        html = self.fetch_client.fetch_body(url, self.headers)
        metrics.end_stage(FETCH_PROFILE)

        metrics.start_stage(EXTRACT_PROFILE)
        document = parse_html(html)
        profile = extract_profile_fields(document, url, self.blocklist)
        metrics.end_stage(EXTRACT_PROFILE)

        metrics.start_stage(DISCOVER_EPISODES)
        episode_urls = extract_episode_links(document, url)
        if self.max_episodes is not None:
            episode_urls = episode_urls[: self.max_episodes]
        metrics.episodes_discovered = len(episode_urls)
        metrics.end_stage(DISCOVER_EPISODES)

        metrics.start_stage(EPISODES)
        episodes = []
        for episode_url in episode_urls:
            episode = self._extract_episode(episode_url, metrics)
            if episode is not None:
                episodes.append(episode)
        metrics.episodes_extracted = len(episodes)
        metrics.end_stage(EPISODES)

        metrics.start_stage(MERGE)
        record = FinalRecord.from_profile(
            profile,
            search_id=work_item.search_id,
            episode_descriptions=[episode.text for episode in episodes],
            episode_links=[episode.links for episode in episodes],
        )
        metrics.links_found = len(record.links)
        metrics.end_stage(MERGE)

        metrics.start_stage(VALIDATE)
        record.validate()
        metrics.end_stage(VALIDATE)

        logger.info(
            "Extracted %r from %s (%d/%d episodes, %d links)",
            record.show_name,
            url,
            len(episodes),
            len(episode_urls),
            len(record.links),
        )
        return record

    def _extract_episode(
        self, episode_url: str, metrics: ExtractionMetrics
    ) -> EpisodeDescription | None:
        try:
            html = self.fetch_client.fetch_body(episode_url, self.headers)
            episode = extract_episode_description(parse_html(html), self.blocklist)
        except Exception as exc:
            metrics.record_episode_failure(episode_url, exc)
            logger.warning("Skipping episode %s: %s", episode_url, exc)
            return None

        if not episode.text:
            logger.debug("No description found on episode %s", episode_url)
        return episode

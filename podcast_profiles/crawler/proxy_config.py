"""Fetch strategy configuration with a single run-wide switch."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from podcast_profiles.crawler.utils import mask_secret

logger = logging.getLogger(__name__)

SCRAPE_NINJA_ENDPOINT = "https://scrapeninja.p.rapidapi.com/scrape"
SCRAPE_NINJA_HOST = "scrapeninja.p.rapidapi.com"

# minimum success rate (percent) for each health label
HEALTH_LEVELS = ((90, "healthy"), (70, "degraded"), (50, "unhealthy"))


class ProxyProvider(Enum):
    """Available fetch strategies."""

    # Plain GET against the catalog
    DIRECT = "direct"

    # ScrapeNinja rendering proxy on RapidAPI
    SCRAPE_NINJA = "scrape_ninja"


@dataclass
class ProxyConfig:
    """Configuration for the active fetch strategy."""

    provider: ProxyProvider
    url: Optional[str] = None
    host: Optional[str] = None
    api_key: Optional[str] = None

    # Performance tracking
    success_count: int = 0
    failure_count: int = 0

    @property
    def is_proxied(self) -> bool:
        return self.provider is not ProxyProvider.DIRECT

    @property
    def success_rate(self) -> float:
        """Percentage of fetches that returned a usable body."""
        attempts = self.success_count + self.failure_count
        return 100.0 * self.success_count / attempts if attempts else 0.0

    @property
    def health_status(self) -> str:
        for floor, label in HEALTH_LEVELS:
            if self.success_rate >= floor:
                return label
        return "critical"

    def record(self, success: bool) -> None:
        if success:
            self.success_count += 1
        else:
            self.failure_count += 1

    def describe(self) -> str:
        if not self.is_proxied:
            return self.provider.value
        return f"{self.provider.value} ({self.host}, key {mask_secret(self.api_key)})"


def select_proxy_config(settings) -> ProxyConfig:
    """Pick the fetch strategy from run settings."""
    if settings.scrape_ninja_enabled:
        config = ProxyConfig(
            provider=ProxyProvider.SCRAPE_NINJA,
            url=SCRAPE_NINJA_ENDPOINT,
            host=SCRAPE_NINJA_HOST,
            api_key=settings.scrape_ninja_api_key,
        )
    else:
        config = ProxyConfig(provider=ProxyProvider.DIRECT)

    logger.info("Fetch strategy: %s", config.describe())
    return config

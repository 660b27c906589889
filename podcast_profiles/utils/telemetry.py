"""
Extraction telemetry for profile scraping runs.

Tracks timing, fetch outcomes and episode counts per profile, and rolls them
up into a run summary that the batch command logs when it finishes.
"""

import logging
import time
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class ExtractionMetrics:
    """Tracks detailed metrics for a single profile extraction."""

    def __init__(self, url: str, fetch_strategy: str = "direct"):
        self.url = url
        self.host = urlparse(url).netloc
        self.fetch_strategy = fetch_strategy

        # Overall timing
        self.start_time = datetime.utcnow()
        self.end_time: datetime | None = None
        self.total_duration_ms: float = 0.0
        self._started = time.monotonic()

        # Stage tracking
        self.stage_timings: dict[str, float] = {}
        self._stage_started: dict[str, float] = {}
        self.last_stage: str | None = None

        # Episode tracking
        self.episodes_discovered = 0
        self.episodes_extracted = 0
        self.episode_errors: dict[str, str] = {}

        # Results
        self.links_found = 0
        self.is_success = False
        self.error_message: str | None = None
        self.error_type: str | None = None

    def start_stage(self, stage: str):
        """Start timing a pipeline stage."""
        self.last_stage = stage
        self._stage_started[stage] = time.monotonic()

    def end_stage(self, stage: str):
        started = self._stage_started.pop(stage, None)
        if started is not None:
            self.stage_timings[stage] = (time.monotonic() - started) * 1000

    def record_episode_failure(self, episode_url: str, error: Exception):
        self.episode_errors[episode_url] = f"{type(error).__name__}: {error}"

    def finalize(self, success: bool, error: Exception | None = None):
        """Close out the metrics once the profile is done."""
        self.end_time = datetime.utcnow()
        self.total_duration_ms = (time.monotonic() - self._started) * 1000
        self.is_success = success
        if error is not None:
            self.error_type = type(error).__name__
            self.error_message = str(error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "host": self.host,
            "fetch_strategy": self.fetch_strategy,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "total_duration_ms": round(self.total_duration_ms, 1),
            "stage_timings": {
                stage: round(ms, 1) for stage, ms in self.stage_timings.items()
            },
            "last_stage": self.last_stage,
            "episodes_discovered": self.episodes_discovered,
            "episodes_extracted": self.episodes_extracted,
            "episode_failures": len(self.episode_errors),
            "links_found": self.links_found,
            "is_success": self.is_success,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class RunSummary:
    """Aggregate outcome of one batch run."""

    def __init__(self):
        self.processed = 0
        self.saved = 0
        self.failed = 0
        self.episode_failures = 0
        self.failures: list[tuple[str, str]] = []
        self.metrics: list[ExtractionMetrics] = []

    def record_success(self, metrics: ExtractionMetrics | None = None):
        self.processed += 1
        self.saved += 1
        self._absorb(metrics)

    def record_failure(
        self, url: str, error: Exception, metrics: ExtractionMetrics | None = None
    ):
        self.processed += 1
        self.failed += 1
        self.failures.append((url, f"{type(error).__name__}: {error}"))
        self._absorb(metrics)

    def _absorb(self, metrics: ExtractionMetrics | None):
        if metrics is None:
            return
        self.metrics.append(metrics)
        self.episode_failures += len(metrics.episode_errors)

    def log(self, proxy_config=None):
        logger.info(
            "Run complete: %d processed, %d saved, %d failed, %d episode failures",
            self.processed,
            self.saved,
            self.failed,
            self.episode_failures,
        )
        if proxy_config is not None and (
            proxy_config.success_count or proxy_config.failure_count
        ):
            logger.info(
                "Fetch strategy %s: %.1f%% success (%s)",
                proxy_config.provider.value,
                proxy_config.success_rate,
                proxy_config.health_status,
            )

"""Page fetching over a direct GET or the ScrapeNinja rendering proxy."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import requests

from .proxy_config import ProxyConfig, ProxyProvider
from .utils import host_of

logger = logging.getLogger(__name__)

BODY_EXCERPT_CHARS = 200


class FetchError(Exception):
    """Raised on a non-2xx response or a transport failure."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body_excerpt = (body or "")[:BODY_EXCERPT_CHARS]


class MalformedResponseError(Exception):
    """Raised when the proxy answered 2xx but the payload has the wrong shape."""


class FetchClient:
    """Return page bodies for URLs using the configured strategy.

    Failures propagate immediately; nothing is retried.
    """

    def __init__(
        self,
        proxy_config: ProxyConfig,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        self.proxy_config = proxy_config
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_body(self, url: str, headers: Mapping[str, str]) -> str:
        if self.proxy_config.provider is ProxyProvider.SCRAPE_NINJA:
            fetch = self._fetch_via_scrape_ninja
        else:
            fetch = self._fetch_direct

        try:
            body = fetch(url, headers)
        except (FetchError, MalformedResponseError):
            self.proxy_config.record(False)
            raise
        self.proxy_config.record(True)
        return body

    def _fetch_direct(self, url: str, headers: Mapping[str, str]) -> str:
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, headers=dict(headers), timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Request to {host_of(url)} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            text = response.text or ""
            raise FetchError(
                f"Request failed with status {response.status_code}: "
                f"{text[:BODY_EXCERPT_CHARS]}",
                status_code=response.status_code,
                body=text,
            )

        return response.text

    def _fetch_via_scrape_ninja(self, url: str, headers: Mapping[str, str]) -> str:
        config = self.proxy_config
        payload = {
            "url": url,
            "method": "GET",
            "headers": dict(headers),
            "autoparse": False,
        }
        api_headers = {
            "content-type": "application/json",
            "x-rapidapi-key": config.api_key or "",
            "x-rapidapi-host": config.host or "",
        }

        logger.debug("Proxying GET %s via %s", url, config.describe())
        try:
            response = self.session.post(
                config.url, json=payload, headers=api_headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise FetchError(f"ScrapeNinja request for {url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            text = response.text or ""
            raise FetchError(
                f"ScrapeNinja request failed with status {response.status_code}: "
                f"{text[:BODY_EXCERPT_CHARS]}",
                status_code=response.status_code,
                body=text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"ScrapeNinja response for {url} was not JSON"
            ) from exc

        body = data.get("body") if isinstance(data, dict) else None
        if not isinstance(body, str) or not body:
            raise MalformedResponseError(
                "ScrapeNinja response did not include a string body."
            )

        return body

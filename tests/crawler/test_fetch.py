"""
Tests for the direct and ScrapeNinja fetch strategies.

HTTP is mocked at the ``requests.Session`` level; no network access.
"""

from unittest.mock import Mock

import pytest
import requests

from podcast_profiles.crawler.fetch import FetchClient, FetchError, MalformedResponseError
from podcast_profiles.crawler.proxy_config import (
    SCRAPE_NINJA_ENDPOINT,
    SCRAPE_NINJA_HOST,
    ProxyConfig,
    ProxyProvider,
)

URL = "https://podcasts.apple.com/us/podcast/show/id1"
HEADERS = {"user-agent": "TestAgent/1.0", "accept": "text/html"}


@pytest.fixture
def mock_response():
    """Create a mock HTTP response object."""

    def _create_response(status_code, text="", json_data=None, json_error=None):
        response = Mock()
        response.status_code = status_code
        # requests treats anything below 400 as ok
        response.ok = status_code < 400
        response.text = text
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = json_data
        return response

    return _create_response


def real_response(status_code, text=""):
    response = requests.Response()
    response.status_code = status_code
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


@pytest.fixture
def direct_client():
    session = Mock()
    return FetchClient(ProxyConfig(provider=ProxyProvider.DIRECT), session=session)


@pytest.fixture
def ninja_client():
    session = Mock()
    config = ProxyConfig(
        provider=ProxyProvider.SCRAPE_NINJA,
        url=SCRAPE_NINJA_ENDPOINT,
        host=SCRAPE_NINJA_HOST,
        api_key="test-key-123456789",
    )
    return FetchClient(config, session=session)


class TestDirectFetch:
    def test_returns_body_on_success(self, direct_client, mock_response):
        direct_client.session.get.return_value = mock_response(200, "<html>ok</html>")

        assert direct_client.fetch_body(URL, HEADERS) == "<html>ok</html>"
        direct_client.session.get.assert_called_once_with(
            URL, headers=HEADERS, timeout=None
        )
        assert direct_client.proxy_config.success_count == 1

    def test_non_2xx_raises_fetch_error_with_excerpt(self, direct_client, mock_response):
        direct_client.session.get.return_value = mock_response(403, "x" * 500)

        with pytest.raises(FetchError, match="status 403") as excinfo:
            direct_client.fetch_body(URL, HEADERS)

        assert excinfo.value.status_code == 403
        assert excinfo.value.body_excerpt == "x" * 200
        assert direct_client.proxy_config.failure_count == 1

    @pytest.mark.parametrize("status_code", [301, 304])
    def test_unfollowed_3xx_raises_fetch_error(self, direct_client, status_code):
        direct_client.session.get.return_value = real_response(status_code)

        with pytest.raises(FetchError, match=f"status {status_code}") as excinfo:
            direct_client.fetch_body(URL, HEADERS)
        assert excinfo.value.status_code == status_code
        assert direct_client.proxy_config.failure_count == 1

    def test_transport_error_raises_fetch_error(self, direct_client):
        direct_client.session.get.side_effect = requests.ConnectionError("boom")

        with pytest.raises(FetchError) as excinfo:
            direct_client.fetch_body(URL, HEADERS)

        assert excinfo.value.status_code is None
        assert isinstance(excinfo.value.__cause__, requests.ConnectionError)

    def test_timeout_is_passed_through(self, mock_response):
        session = Mock()
        session.get.return_value = mock_response(200, "ok")
        client = FetchClient(
            ProxyConfig(provider=ProxyProvider.DIRECT), session=session, timeout=12.5
        )

        client.fetch_body(URL, HEADERS)

        assert session.get.call_args.kwargs["timeout"] == 12.5


class TestScrapeNinjaFetch:
    def test_posts_job_descriptor(self, ninja_client, mock_response):
        ninja_client.session.post.return_value = mock_response(
            200, json_data={"body": "<html>proxied</html>", "info": {}}
        )

        assert ninja_client.fetch_body(URL, HEADERS) == "<html>proxied</html>"

        args, kwargs = ninja_client.session.post.call_args
        assert args == (SCRAPE_NINJA_ENDPOINT,)
        assert kwargs["json"] == {
            "url": URL,
            "method": "GET",
            "headers": HEADERS,
            "autoparse": False,
        }
        assert kwargs["headers"]["x-rapidapi-key"] == "test-key-123456789"
        assert kwargs["headers"]["x-rapidapi-host"] == SCRAPE_NINJA_HOST
        ninja_client.session.get.assert_not_called()

    def test_non_2xx_raises_fetch_error(self, ninja_client, mock_response):
        ninja_client.session.post.return_value = mock_response(429, "slow down")

        with pytest.raises(FetchError, match="ScrapeNinja request failed with status 429"):
            ninja_client.fetch_body(URL, HEADERS)

    def test_not_modified_raises_fetch_error(self, ninja_client):
        ninja_client.session.post.return_value = real_response(304)

        with pytest.raises(FetchError, match="ScrapeNinja request failed with status 304"):
            ninja_client.fetch_body(URL, HEADERS)

    @pytest.mark.parametrize(
        "payload",
        [{}, {"body": None}, {"body": 123}, {"body": ""}, ["body"], None],
    )
    def test_missing_string_body_is_malformed(self, ninja_client, mock_response, payload):
        ninja_client.session.post.return_value = mock_response(200, json_data=payload)

        with pytest.raises(MalformedResponseError):
            ninja_client.fetch_body(URL, HEADERS)
        assert ninja_client.proxy_config.failure_count == 1

    def test_non_json_is_malformed(self, ninja_client, mock_response):
        ninja_client.session.post.return_value = mock_response(
            200, text="<html>", json_error=ValueError("no json")
        )

        with pytest.raises(MalformedResponseError, match="not JSON"):
            ninja_client.fetch_body(URL, HEADERS)

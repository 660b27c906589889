import logging
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import insert, select

from podcast_profiles.cli.commands.scrape import handle_scrape_command, run_batch
from podcast_profiles.crawler import FetchError, ProfileExtractor
from podcast_profiles.models import create_database_engine, create_tables
from podcast_profiles.models.database import DatabaseManager
from podcast_profiles.models.records import FinalRecord, ValidationError, WorkItem
from podcast_profiles.utils.telemetry import ExtractionMetrics
from tests.helpers.pages import EMPTY_PROFILE_HTML, PROFILE_URL, FakeFetchClient

ITEMS = [
    WorkItem("https://podcasts.apple.com/us/podcast/a/id1", "s1"),
    WorkItem("https://podcasts.apple.com/us/podcast/b/id2", "s2"),
    WorkItem("https://podcasts.apple.com/us/podcast/c/id3", "s3"),
]


def make_extractor(side_effect):
    extractor = MagicMock()
    extractor.new_metrics.side_effect = lambda url: ExtractionMetrics(url)
    extractor.extract.side_effect = side_effect
    return extractor


def record_for(item, metrics=None):
    return FinalRecord(url=item.url, search_id=item.search_id, show_name="Show")


@pytest.mark.unit
class TestRunBatch:
    def test_failed_profile_does_not_stop_the_batch(self, caplog):
        def extract(item, metrics=None):
            if item is ITEMS[1]:
                raise FetchError("Request failed with status 500", 500)
            return record_for(item)

        db = MagicMock()

        with caplog.at_level(logging.INFO):
            summary = run_batch(ITEMS, make_extractor(extract), db)

        saved_urls = [call.args[0].url for call in db.save_record.call_args_list]
        assert saved_urls == [ITEMS[0].url, ITEMS[2].url]
        assert summary.processed == 3
        assert summary.saved == 2
        assert summary.failed == 1
        assert summary.failures[0][0] == ITEMS[1].url
        assert f"Failed to process profile {ITEMS[1].url}" in caplog.text
        assert f"Saved profile from {ITEMS[2].url}" in caplog.text
        assert "Processing 3 profiles." in caplog.text

    def test_persistence_failure_is_isolated(self):
        db = MagicMock()
        db.save_record.side_effect = [None, RuntimeError("disk full"), None]

        summary = run_batch(ITEMS, make_extractor(record_for), db)

        assert db.save_record.call_count == 3
        assert summary.saved == 2
        assert summary.failed == 1

    def test_invalid_profile_is_never_saved(self):
        client = FakeFetchClient({PROFILE_URL: EMPTY_PROFILE_HTML})
        extractor = ProfileExtractor(client, {})
        db = MagicMock()

        summary = run_batch([WorkItem(PROFILE_URL)], extractor, db)

        db.save_record.assert_not_called()
        assert summary.failed == 1
        assert summary.failures[0][1].startswith(ValidationError.__name__)

    def test_empty_worklist_logs_warning(self, caplog):
        extractor = MagicMock()
        db = MagicMock()

        with caplog.at_level(logging.WARNING):
            summary = run_batch([], extractor, db)

        assert "No profiles found to process." in caplog.text
        assert summary.processed == 0
        extractor.extract.assert_not_called()
        db.save_record.assert_not_called()

    def test_dry_run_skips_saving(self):
        db = MagicMock()

        summary = run_batch(ITEMS[:1], make_extractor(record_for), db, dry_run=True)

        db.save_record.assert_not_called()
        assert summary.saved == 1


def seed_database(db_url):
    engine = create_database_engine(db_url)
    create_tables(engine, "profiles", "worklist")
    with engine.begin() as conn:
        conn.execute(
            insert(DatabaseManager(db_url, "profiles", "worklist", engine=engine).worklist),
            [{"url": item.url, "search_id": item.search_id} for item in ITEMS],
        )
    engine.dispose()


@pytest.fixture
def scrape_env(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'profiles.db'}"
    seed_database(db_url)
    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PROFILES_TABLE", "profiles")
    monkeypatch.setenv("WORKLIST_VIEW", "worklist")
    return db_url


@pytest.mark.integration
@patch("podcast_profiles.config.load_dotenv")
@patch("podcast_profiles.cli.commands.scrape.build_extractor")
def test_handle_scrape_command_saves_worklist(
    mock_build_extractor, mock_load_dotenv, scrape_env
):
    def extract(item, metrics=None):
        if item.url == ITEMS[0].url:
            raise FetchError("Request failed with status 403", 403)
        return record_for(item)

    mock_build_extractor.return_value = (make_extractor(extract), MagicMock())

    result = handle_scrape_command(
        SimpleNamespace(limit=None, max_episodes=None, dry_run=False)
    )

    assert result == 0
    engine = create_database_engine(scrape_env)
    profiles = DatabaseManager(scrape_env, "profiles", "worklist", engine=engine).profiles
    with engine.connect() as conn:
        urls = [row.url for row in conn.execute(select(profiles.c.url))]
    engine.dispose()
    assert urls == [ITEMS[1].url, ITEMS[2].url]


@pytest.mark.integration
@patch("podcast_profiles.config.load_dotenv")
@patch("podcast_profiles.cli.commands.scrape.build_extractor")
def test_handle_scrape_command_respects_limit(
    mock_build_extractor, mock_load_dotenv, scrape_env
):
    extractor = make_extractor(record_for)
    mock_build_extractor.return_value = (extractor, MagicMock())

    result = handle_scrape_command(
        SimpleNamespace(limit=1, max_episodes=2, dry_run=True)
    )

    assert result == 0
    assert extractor.extract.call_count == 1
    assert mock_build_extractor.call_args.args[1] == 2


@pytest.mark.unit
@patch("podcast_profiles.config.load_dotenv")
def test_handle_scrape_command_without_database_config(mock_load_dotenv, caplog):
    with caplog.at_level(logging.ERROR):
        result = handle_scrape_command(SimpleNamespace())

    assert result == 1
    assert "Invalid configuration" in caplog.text


@pytest.mark.unit
@patch("podcast_profiles.config.load_dotenv")
def test_handle_scrape_command_missing_worklist(
    mock_load_dotenv, tmp_path, monkeypatch, caplog
):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'empty.db'}")
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("WORKLIST_VIEW", "worklist")

    with caplog.at_level(logging.ERROR):
        result = handle_scrape_command(SimpleNamespace())

    assert result == 1
    assert "Could not load worklist" in caplog.text

"""CLI command module for extracting a single profile URL.

Runs the same extraction as the batch command for one URL and prints the
record as JSON; ``--save`` also writes it to the profiles table.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from podcast_profiles.config import ConfigurationError, Settings
from podcast_profiles.crawler import FetchError, MalformedResponseError
from podcast_profiles.models.database import DatabaseManager, PersistenceError
from podcast_profiles.models.records import ValidationError, WorkItem

from ..context import build_extractor

logger = logging.getLogger(__name__)


def add_extract_url_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "extract-url", help="Extract one profile URL and print the record"
    )
    parser.add_argument("url", type=str, help="Profile URL to extract")
    parser.add_argument(
        "--search-id",
        dest="search_id",
        type=str,
        default=None,
        help="Optional search identifier to attach to the record",
    )
    parser.add_argument(
        "--max-episodes",
        dest="max_episodes",
        type=int,
        default=None,
        help="Follow at most N episode links",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        default=False,
        help="Also insert the record into the profiles table",
    )
    parser.set_defaults(func=handle_extract_url_command)
    return parser


def handle_extract_url_command(args) -> int:
    save = getattr(args, "save", False)
    try:
        settings = Settings.from_env(require_database=save)
        extractor, _ = build_extractor(settings, getattr(args, "max_episodes", None))
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    item = WorkItem(url=args.url.strip(), search_id=getattr(args, "search_id", None))
    try:
        record = extractor.extract(item)
    except (FetchError, MalformedResponseError, ValidationError) as e:
        logger.error("Failed to extract %s: %s", item.url, e)
        return 1

    json.dump(record.to_row(), sys.stdout, indent=2, ensure_ascii=False, default=str)
    sys.stdout.write("\n")

    if not save:
        return 0

    db = DatabaseManager(
        settings.database_url,
        profiles_name=settings.profiles_table,
        worklist_name=settings.worklist_view,
    )
    try:
        db.save_record(record)
    except PersistenceError as e:
        logger.error("%s", e)
        return 1
    finally:
        db.close()

    logger.info("Saved profile from %s", item.url)
    return 0

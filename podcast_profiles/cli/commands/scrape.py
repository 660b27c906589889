"""
Batch scrape command: work through the pending-profile worklist.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from podcast_profiles.config import ConfigurationError, Settings
from podcast_profiles.models.database import DatabaseManager
from podcast_profiles.utils.telemetry import RunSummary

from ..context import build_extractor

logger = logging.getLogger(__name__)


def add_scrape_parser(subparsers):
    parser = subparsers.add_parser(
        "scrape", help="Scrape every pending profile in the worklist and save it"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Only process the first N worklist entries",
    )
    parser.add_argument(
        "--max-episodes",
        dest="max_episodes",
        type=int,
        default=None,
        help="Follow at most N episode links per profile (default: all)",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=False,
        help="Extract records but do not write them to the database",
    )
    parser.set_defaults(func=handle_scrape_command)
    return parser


def run_batch(work_items, extractor, db, dry_run=False) -> RunSummary:
    """Process work items one at a time; a failed item never stops the batch."""
    summary = RunSummary()

    if not work_items:
        logger.warning("No profiles found to process.")
        return summary

    logger.info(
        "Processing %d profile%s.", len(work_items), "" if len(work_items) == 1 else "s"
    )

    for item in work_items:
        metrics = extractor.new_metrics(item.url)
        try:
            record = extractor.extract(item, metrics)
            if dry_run:
                logger.info("Dry run, not saving %s: %s", item.url, record.to_row())
            else:
                db.save_record(record)
        except Exception as e:
            metrics.finalize(False, e)
            summary.record_failure(item.url, e, metrics)
            logger.error("Failed to process profile %s: %s", item.url, e)
            continue

        metrics.finalize(True)
        summary.record_success(metrics)
        if not dry_run:
            logger.info("Saved profile from %s", item.url)

    return summary


def handle_scrape_command(args) -> int:
    """Run the batch. Non-zero only when the run itself cannot start."""
    try:
        settings = Settings.from_env()
        settings.ensure_data_dir()
        extractor, proxy_config = build_extractor(
            settings, getattr(args, "max_episodes", None)
        )
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    try:
        db = DatabaseManager(
            settings.database_url,
            profiles_name=settings.profiles_table,
            worklist_name=settings.worklist_view,
        )
    except (SQLAlchemyError, ValueError) as e:
        logger.error("Could not open database pool: %s", e)
        return 1

    try:
        try:
            work_items = db.load_worklist()
        except SQLAlchemyError as e:
            logger.error("Could not load worklist: %s", e)
            return 1

        limit = getattr(args, "limit", None)
        if limit:
            work_items = work_items[:limit]

        summary = run_batch(
            work_items, extractor, db, dry_run=getattr(args, "dry_run", False)
        )
        summary.log(proxy_config)
        return 0
    finally:
        db.close()

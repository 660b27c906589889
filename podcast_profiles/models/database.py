"""Worklist loading and transactional record persistence."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError

from podcast_profiles.config import DEFAULT_PROFILES_TABLE, DEFAULT_WORKLIST_VIEW
from podcast_profiles.crawler.utils import clean_text

from . import PROFILE_COLUMNS, create_database_engine, profiles_table, worklist_table
from .records import FinalRecord, WorkItem

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a record could not be written; the transaction was rolled back."""


def normalize_field(value: Any) -> Any:
    """Whitespace-normalize text; empty text becomes ``None``."""
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    cleaned = clean_text(value)
    return cleaned or None


class DatabaseManager:
    """Owns the connection pool for one run."""

    def __init__(
        self,
        database_url: str,
        profiles_name: str = DEFAULT_PROFILES_TABLE,
        worklist_name: str = DEFAULT_WORKLIST_VIEW,
        engine=None,
    ):
        self.engine = engine or create_database_engine(database_url)
        self.profiles = profiles_table(profiles_name)
        self.worklist = worklist_table(worklist_name)
        self._closed = False

    def load_worklist(self) -> list[WorkItem]:
        """Read every pending ``(url, search_id)`` pair.

        Rows whose URL is blank or not a string are dropped.
        """
        query = select(self.worklist.c.url, self.worklist.c.search_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()

        items = []
        for url, search_id in rows:
            if not isinstance(url, str) or not url.strip():
                continue
            items.append(WorkItem(url=url.strip(), search_id=search_id))

        dropped = len(rows) - len(items)
        if dropped:
            logger.debug("Dropped %d worklist rows without a usable URL", dropped)
        return items

    def save_record(self, record: FinalRecord) -> None:
        """Insert one record in its own transaction.

        Validation happens before a connection is taken.
        """
        record.validate()

        row = record.to_row()
        values = {column: normalize_field(row[column]) for column in PROFILE_COLUMNS}
        if values["search_id"] is not None:
            values["search_id"] = str(values["search_id"])

        # begin() commits on success and rolls back on any exception;
        # the connection goes back to the pool on every path.
        try:
            with self.engine.connect() as conn:
                with conn.begin():
                    conn.execute(insert(self.profiles).values(**values))
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Failed to save profile {record.url}: {exc}"
            ) from exc

    def close(self) -> None:
        """Dispose the pool; safe to call more than once."""
        if self._closed:
            return
        self.engine.dispose()
        self._closed = True

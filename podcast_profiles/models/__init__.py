"""SQLAlchemy table definitions and engine helpers for the profile scraper."""

import re

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine

# Dotted, unquoted SQL identifiers only; table names are interpolated.
_QUALIFIED_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

PROFILE_COLUMNS = (
    "search_id",
    "url",
    "show_name",
    "host_name",
    "show_description",
    "links",
    "reviews",
    "rate",
    "category",
    "episode_description",
)


def split_qualified_name(qualified_name: str) -> tuple[str | None, str]:
    """Split ``schema.table`` into its parts, rejecting anything else."""
    if not isinstance(qualified_name, str) or not _QUALIFIED_NAME_RE.match(
        qualified_name
    ):
        raise ValueError(f"Invalid table name: {qualified_name!r}")
    if "." in qualified_name:
        schema, name = qualified_name.split(".", 1)
        return schema, name
    return None, qualified_name


def profiles_table(qualified_name: str, metadata: MetaData | None = None) -> Table:
    """Destination table for finished profile records."""
    schema, name = split_qualified_name(qualified_name)
    return Table(
        name,
        metadata or MetaData(),
        Column("search_id", String),
        Column("url", Text, nullable=False),
        Column("show_name", Text, nullable=False),
        Column("host_name", Text),
        Column("show_description", Text),
        Column("links", Text),
        Column("reviews", String),
        Column("rate", String),
        Column("category", String),
        Column("episode_description", Text),
        schema=schema,
    )


def worklist_table(qualified_name: str, metadata: MetaData | None = None) -> Table:
    """Read-only view of profile URLs still waiting to be scraped."""
    schema, name = split_qualified_name(qualified_name)
    return Table(
        name,
        metadata or MetaData(),
        Column("url", Text),
        Column("search_id", String),
        schema=schema,
    )


# Database utilities


def create_database_engine(database_url: str = "sqlite:///data/profiles.db"):
    """Create SQLAlchemy engine with proper configuration."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
        )
    else:
        # One connection per save; the run is sequential
        engine = create_engine(
            database_url,
            pool_size=2,
            max_overflow=0,
            pool_pre_ping=True,
            echo=False,
        )

    return engine


def create_tables(engine, profiles_name: str, worklist_name: str | None = None):
    """Create the profile table (and a worklist table) for local databases."""
    metadata = MetaData()
    profiles_table(profiles_name, metadata)
    if worklist_name:
        worklist_table(worklist_name, metadata)
    metadata.create_all(engine)

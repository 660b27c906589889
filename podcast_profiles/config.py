"""Runtime configuration for the podcast profile scraper.

All settings come from the process environment (optionally seeded from a
``.env`` file). Nothing secret has a literal default: database credentials
and the ScrapeNinja API key must be supplied by the deployment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote_plus

from dotenv import load_dotenv

DEFAULT_PROFILES_TABLE = "apple_podcasts.profiles"
DEFAULT_WORKLIST_VIEW = "apple_podcasts.not_scraped_profiles_vw"
DEFAULT_LINK_BLOCKLIST = ("patreon.com", "speaker.com")

_TRUTHY = ("1", "true", "yes", "on")


class ConfigurationError(Exception):
    """Raised when the environment cannot produce a usable configuration."""


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_optional_float(name: str) -> float | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _env_optional_int(name: str) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative")
    return value


def _env_list(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(
        entry.strip().lower() for entry in raw.split(",") if entry.strip()
    )


def build_database_url() -> str:
    """Resolve the SQLAlchemy URL from DATABASE_URL or DATABASE_* parts."""
    explicit = (os.getenv("DATABASE_URL") or "").strip()
    if explicit:
        return explicit

    host = (os.getenv("DATABASE_HOST") or "").strip()
    name = (os.getenv("DATABASE_NAME") or "").strip()
    if not host or not name:
        raise ConfigurationError(
            "Set DATABASE_URL or DATABASE_HOST and DATABASE_NAME"
        )

    port = (os.getenv("DATABASE_PORT") or "5432").strip()
    user = os.getenv("DATABASE_USER") or ""
    password = os.getenv("DATABASE_PASSWORD") or ""

    credentials = ""
    if user:
        credentials = quote_plus(user)
        if password:
            credentials += ":" + quote_plus(password)
        credentials += "@"

    return f"postgresql+psycopg2://{credentials}{host}:{port}/{name}"


@dataclass
class Settings:
    """Explicit run-wide configuration."""

    database_url: str | None = None
    data_dir: Path = Path("data")
    headers_file: Path | None = None
    scrape_ninja_enabled: bool = False
    scrape_ninja_api_key: str | None = None
    user_agent: str | None = None
    request_timeout: float | None = None
    max_episodes: int | None = None
    link_blocklist: tuple[str, ...] = DEFAULT_LINK_BLOCKLIST
    profiles_table: str = DEFAULT_PROFILES_TABLE
    worklist_view: str = DEFAULT_WORKLIST_VIEW
    header_env: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.headers_file is None:
            self.headers_file = self.data_dir / "headers.json"
        if self.scrape_ninja_enabled and not self.scrape_ninja_api_key:
            raise ConfigurationError(
                "SCRAPE_NINJA_API_KEY is required when SCRAPE_NINJA_ENABLED is true"
            )

    @classmethod
    def from_env(
        cls, load_env_file: bool = True, require_database: bool = True
    ) -> "Settings":
        """Build settings from the environment.

        ``HEADER_<NAME>`` variables (e.g. ``HEADER_ACCEPT_LANGUAGE``) are
        collected as default-header overrides. With ``require_database``
        false a missing database configuration leaves ``database_url`` unset.
        """
        if load_env_file:
            load_dotenv()

        try:
            database_url = build_database_url()
        except ConfigurationError:
            if require_database:
                raise
            database_url = None

        data_dir = Path(os.getenv("DATA_DIR") or "data")
        headers_file = os.getenv("HEADERS_FILE")

        header_env = {
            key[len("HEADER_"):].lower().replace("_", "-"): value
            for key, value in os.environ.items()
            if key.startswith("HEADER_") and len(key) > len("HEADER_")
        }

        return cls(
            database_url=database_url,
            data_dir=data_dir,
            headers_file=Path(headers_file) if headers_file else None,
            scrape_ninja_enabled=_env_flag("SCRAPE_NINJA_ENABLED"),
            scrape_ninja_api_key=(os.getenv("SCRAPE_NINJA_API_KEY") or "").strip()
            or None,
            user_agent=(os.getenv("USER_AGENT") or "").strip() or None,
            request_timeout=_env_optional_float("REQUEST_TIMEOUT"),
            max_episodes=_env_optional_int("MAX_EPISODES"),
            link_blocklist=DEFAULT_LINK_BLOCKLIST + _env_list("LINK_BLOCKLIST"),
            profiles_table=os.getenv("PROFILES_TABLE") or DEFAULT_PROFILES_TABLE,
            worklist_view=os.getenv("WORKLIST_VIEW") or DEFAULT_WORKLIST_VIEW,
            header_env=header_env,
        )

    def ensure_data_dir(self) -> Path:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir

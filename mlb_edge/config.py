"""
Configuration management for MLB Edge.
Loads settings from .env file and provides defaults.
"""

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from mlb_edge.errors import ConfigurationError

if TYPE_CHECKING:
    from mlb_edge.sources import SourceCatalog

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def credential_env_var(source_name: str) -> str:
    """
    Conventional environment variable for a source's API key.

    "Odds API" → "ODDS_API_API_KEY"
    "The Athletic" → "THE_ATHLETIC_API_KEY"
    """
    return "_".join(source_name.upper().split()) + "_API_KEY"


# Sources that need a credential, keyed by catalog name.
CREDENTIAL_ENV_VARS: dict[str, str] = {
    name: credential_env_var(name)
    for name in ("The Athletic", "Baseball Prospectus", "Odds API")
}


class Settings:
    """Application settings loaded from environment variables."""

    # SQLite database path
    DB_PATH: str = os.getenv("DB_PATH", str(Path(__file__).resolve().parent.parent / "data" / "mlb_edge.db"))

    # Daily workflow interval in seconds (0 = manual only, 21600 = 6 hours)
    REFRESH_INTERVAL: int = int(os.getenv("REFRESH_INTERVAL", "21600"))

    # Provider HTTP timeout in seconds
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "20.0"))

    # Retry policy for provider fetches
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
    RETRY_BASE_DELAY: float = float(os.getenv("RETRY_BASE_DELAY", "30"))

    # Games scored concurrently in one pipeline run
    MAX_CONCURRENT_GAMES: int = int(os.getenv("MAX_CONCURRENT_GAMES", "4"))

    # Seed for the scoring jitter and no-signal picks (unset = nondeterministic)
    RANDOM_SEED: int | None = int(os.environ["RANDOM_SEED"]) if os.getenv("RANDOM_SEED") else None

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __init__(self):
        # source name → credential ("" when unset)
        self.SOURCE_API_KEYS: dict[str, str] = {
            name: os.getenv(var, "") for name, var in CREDENTIAL_ENV_VARS.items()
        }

    def api_key_for(self, source_name: str) -> str:
        return self.SOURCE_API_KEYS.get(source_name, "")

    def has_api_key(self, source_name: str) -> bool:
        return bool(self.api_key_for(source_name))


def validate_credentials(catalog: "SourceCatalog", config: Settings | None = None) -> list[str]:
    """
    Check credentials for high-priority sources at startup.

    Returns the names of key-requiring high-priority sources with no
    credential configured. Raises ConfigurationError only when the catalog
    has no sources at all.
    """
    config = config or settings
    if len(catalog) == 0:
        raise ConfigurationError("No data sources defined in catalog")

    missing: list[str] = []
    for source in catalog.high_priority_sources():
        if source.api_key_required and not config.has_api_key(source.name):
            missing.append(source.name)

    if missing:
        logging.getLogger(__name__).warning(
            "Missing API keys for high-priority sources: %s", ", ".join(missing)
        )
    return missing


def configure_logging(level: str | None = None):
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )


settings = Settings()

"""Application configuration loaded from the environment."""
import os
import logging
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MONGODB_URI = "mongodb://localhost:27017"


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}. Using default {default}.")
        return default
    if value < 1:
        logger.warning(f"{name} must be positive, got {value}. Using default {default}.")
        return default
    return value


@dataclass
class Settings:
    """Runtime settings for the API. Build with `Settings.from_env()` or directly in tests."""
    mongodb_uri: str = DEFAULT_MONGODB_URI
    db_name: str = "expenses_db"
    expenses_collection: str = "expenses"
    default_page_limit: int = 10
    max_page_limit: int = 100
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        # load_dotenv searches current dir and parents
        load_dotenv()

        mongodb_uri = os.getenv("MONGODB_URI") or os.getenv("DATABASE")
        if not mongodb_uri:
            logger.warning(f"MONGODB_URI environment variable not set! Falling back to {DEFAULT_MONGODB_URI}.")
            mongodb_uri = DEFAULT_MONGODB_URI

        default_limit = _int_from_env("DEFAULT_PAGE_LIMIT", 10)
        max_limit = _int_from_env("MAX_PAGE_LIMIT", 100)
        if default_limit > max_limit:
            logger.warning(f"DEFAULT_PAGE_LIMIT ({default_limit}) exceeds MAX_PAGE_LIMIT ({max_limit}); clamping.")
            default_limit = max_limit

        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            mongodb_uri=mongodb_uri,
            db_name=os.getenv("DB_NAME", "expenses_db"),
            expenses_collection=os.getenv("EXPENSES_COLLECTION", "expenses"),
            default_page_limit=default_limit,
            max_page_limit=max_limit,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or ["*"],
        )

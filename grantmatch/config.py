"""
Runtime configuration.

Values come from the environment (optionally seeded from a .env file in the
working directory). Limits here are deployment policy; the engine only
enforces whatever it is handed.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env() -> None:
    """Load .env from the working directory if present; real env vars win."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("data/grants.db")
    catalog_file: Optional[Path] = None
    catalog_url: Optional[str] = None
    default_limit: int = 20
    max_limit: int = 20
    default_min_score: int = 20
    load_retries: int = 2
    retry_base_delay: float = 1.0
    http_timeout: float = 15.0

    @classmethod
    def from_env(cls) -> "Settings":
        catalog_file = os.getenv("GRANTMATCH_CATALOG_FILE")
        settings = cls(
            db_path=Path(os.getenv("GRANTMATCH_DB", "data/grants.db")),
            catalog_file=Path(catalog_file) if catalog_file else None,
            catalog_url=os.getenv("GRANTMATCH_CATALOG_URL") or None,
            default_limit=_int_env("GRANTMATCH_DEFAULT_LIMIT", 20),
            max_limit=_int_env("GRANTMATCH_MAX_LIMIT", 20),
            default_min_score=_int_env("GRANTMATCH_DEFAULT_MIN_SCORE", 20),
            load_retries=_int_env("GRANTMATCH_LOAD_RETRIES", 2),
            retry_base_delay=_float_env("GRANTMATCH_RETRY_DELAY", 1.0),
            http_timeout=_float_env("GRANTMATCH_HTTP_TIMEOUT", 15.0),
        )
        settings.check()
        return settings

    def check(self) -> None:
        if self.max_limit < 1:
            raise ValueError("max_limit must be at least 1")
        if not 1 <= self.default_limit <= self.max_limit:
            raise ValueError("default_limit must be between 1 and max_limit")
        if not 0 <= self.default_min_score <= 100:
            raise ValueError("default_min_score must be between 0 and 100")
        if self.load_retries < 0:
            raise ValueError("load_retries must not be negative")

"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "leadbot.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Quiet period before a burst of inbound messages is processed
BUFFER_DELAY_SECONDS = 90


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass
class Settings:
    """Runtime settings read from the environment."""

    buffer_delay_seconds: float = BUFFER_DELAY_SECONDS
    buffer_callback_url: str | None = None
    notification_address: str | None = None
    agent_name: str = "Lead Assistant"
    profile_url: str = ""
    cache_ttl_seconds: float = 900.0
    cache_max_entries: int = 1000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        defaults = cls()
        return cls(
            buffer_delay_seconds=float(
                os.getenv("BUFFER_DELAY_SECONDS", defaults.buffer_delay_seconds)
            ),
            buffer_callback_url=os.getenv("BUFFER_CALLBACK_URL") or None,
            notification_address=os.getenv("NOTIFICATION_NUMBER") or None,
            agent_name=os.getenv("AGENT_NAME", defaults.agent_name),
            profile_url=os.getenv("PROFILE_URL", defaults.profile_url),
            cache_ttl_seconds=float(
                os.getenv("CACHE_TTL_SECONDS", defaults.cache_ttl_seconds)
            ),
            cache_max_entries=int(
                os.getenv("CACHE_MAX_ENTRIES", defaults.cache_max_entries)
            ),
        )

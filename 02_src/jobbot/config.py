"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "jobbot.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


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
    """Runtime settings gathered from the environment."""

    bot_id: str = "bot"
    bot_name: str = "Bot"
    resume_timeout_seconds: float = 10.0
    registry_max_retries: int = 5

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            bot_id=os.getenv("BOT_ID", cls.bot_id),
            bot_name=os.getenv("BOT_NAME", cls.bot_name),
            resume_timeout_seconds=float(
                os.getenv("RESUME_TIMEOUT_SECONDS", str(cls.resume_timeout_seconds))
            ),
            registry_max_retries=int(
                os.getenv("JOB_REGISTRY_MAX_RETRIES", str(cls.registry_max_retries))
            ),
        )

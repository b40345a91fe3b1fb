import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .logger import LOG_LEVELS


def load_env(env_path: Optional[Path] = None) -> None:
    """Load .env from the working directory if present.

    Values already set in the environment win.
    """
    env_path = env_path or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def github_token() -> Optional[str]:
    return os.getenv("GITHUB_TOKEN") or None


def log_level(default: str = "INFO") -> str:
    """RECTORWATCH_LOG_LEVEL if it names a known level, else `default`."""
    level = os.getenv("RECTORWATCH_LOG_LEVEL", "").strip().upper()
    return level if level in LOG_LEVELS else default

"""
FILE: daylist/config.py
PURPOSE: Runtime settings read from the environment
EXPORTS:
  - Settings (dataclass)
DEPENDENCIES:
  - os, pathlib (stdlib)
NOTES:
  - DAYLIST_HOME: data directory (default ~/.daylist)
  - DAYLIST_USER: row owner in the database (default "local")
  - DAYLIST_LOG_LEVEL: logging level (default WARNING)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .core import repository


@dataclass
class Settings:
    """Application settings."""

    home: Path = repository.DB_DIR
    user_id: str = "local"
    log_level: str = "WARNING"

    @property
    def db_path(self) -> Path:
        return self.home / "daylist.db"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        home = env.get("DAYLIST_HOME")
        return cls(
            home=Path(home).expanduser() if home else repository.DB_DIR,
            user_id=env.get("DAYLIST_USER") or "local",
            log_level=(env.get("DAYLIST_LOG_LEVEL") or "WARNING").upper(),
        )

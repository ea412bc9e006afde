"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024
_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not an integer") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be a positive integer, got {value}")
    return value


@dataclass
class AppConfig:
    """Settings resolved once at startup and stored on `app.state.config`.

    Attributes:
        database_dir: Directory holding the SQLite file (`DATABASE_DIR`).
        upload_dir: Directory where uploaded artifacts are written.
        max_upload_bytes: Size ceiling for a single upload.
        reset_database: Wipe the database file on startup.
        dev_auto_login: Bind requests without a token to the first stored user.
            Development convenience only; never enable it in production.
        openai_model: Model used by the document summarizer.
        log_level: Root logging level name.
    """

    database_dir: Path
    upload_dir: Path
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    reset_database: bool = False
    dev_auto_login: bool = False
    openai_model: str = "gpt-5"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, database_dir: Optional[Path | str] = None) -> "AppConfig":
        """Build the configuration from environment variables.

        Raises:
            RuntimeError: If `DATABASE_DIR` is missing or a value is malformed.
        """
        env_dir = str(database_dir) if database_dir is not None else os.getenv("DATABASE_DIR")
        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )
        db_dir = Path(env_dir).expanduser()

        upload_env = os.getenv("UPLOAD_DIR")
        upload_dir = Path(upload_env).expanduser() if upload_env and upload_env.strip() else db_dir / "uploads"

        return cls(
            database_dir=db_dir,
            upload_dir=upload_dir,
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            reset_database=_env_flag("DATABASE_RESET"),
            dev_auto_login=_env_flag("DEV_AUTO_LOGIN"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-5").strip() or "gpt-5",
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

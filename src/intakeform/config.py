from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import urlsplit

from intakeform.errors import ConfigError

BASE_DIR = Path(__file__).resolve().parent

ALLOWED_TYPES = {"text", "textarea", "number", "checkbox", "date", "file"}
STORAGE_SCHEMES = {"json", "sqlite"}
UPLOAD_URL_PREFIX = "uploads"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings:
    def __init__(self) -> None:
        self.database_url = os.getenv("DATABASE_URL", "").strip()
        self.upload_dir = Path(os.getenv("UPLOAD_DIR", "./data/uploads"))
        max_bytes = os.getenv("UPLOAD_MAX_BYTES", "").strip()
        try:
            self.upload_max_bytes = int(max_bytes) if max_bytes else None
        except ValueError as exc:
            raise ConfigError(f"UPLOAD_MAX_BYTES must be an integer: {max_bytes}") from exc
        self.client_dir = Path(os.getenv("CLIENT_DIR", str(BASE_DIR / "templates")))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.host = os.getenv("HOST", "0.0.0.0")
        port_value = os.getenv("PORT", "8000")
        try:
            self.port = int(port_value)
        except ValueError:
            self.port = 8000

    @property
    def storage_backend(self) -> str:
        return parse_database_url(self.database_url)[0]

    @property
    def database_path(self) -> Path:
        return parse_database_url(self.database_url)[1]


def parse_database_url(url: str) -> tuple[str, Path]:
    """Split ``json:///data/db.json`` or ``sqlite:///data/app.db`` into backend and path.

    Three slashes give a relative path, four an absolute one, as SQLAlchemy does.
    """
    if not url:
        raise ConfigError("DATABASE_URL is not set")
    parsed = urlsplit(url)
    scheme = parsed.scheme.lower()
    if scheme not in STORAGE_SCHEMES:
        raise ConfigError(f"Unsupported DATABASE_URL scheme: {parsed.scheme or url}")
    if parsed.netloc:
        raise ConfigError("DATABASE_URL must point to a local file path")
    raw_path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
    if not raw_path:
        raise ConfigError("DATABASE_URL is missing a file path")
    return scheme, Path(raw_path)


def ensure_dirs(settings: Settings) -> None:
    settings.database_path.parent.mkdir(parents=True, exist_ok=True)
    settings.upload_dir.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

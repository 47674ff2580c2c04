from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from functools import lru_cache
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - JWT_SECRET: signing secret for identity tokens (random per process when unset)
    - JWT_ALGORITHM: HMAC algorithm for identity tokens. Default 'HS256'
    - TOKEN_TTL_SECONDS: lifetime of issued tokens. Default 7 days
    - PASSWORD_HASH_METHOD: werkzeug hash method for stored passwords. Default 'pbkdf2:sha256'
    - UPLOAD_DIR: directory profile images are written to. Default './uploads'
    - MAX_IMAGE_BYTES: upload size limit. Default 5 MiB
    - HOST / PORT: bind address for the bundled server. Default 0.0.0.0:3000
    - LOG_LEVEL: root log level. Default 'INFO'
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    jwt_secret: str
    jwt_algorithm: str
    token_ttl_seconds: int
    password_hash_method: str
    upload_dir: str
    max_image_bytes: int
    host: str
    port: int
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _resolve_secret() -> str:
    secret = os.getenv("JWT_SECRET", "").strip()
    if secret:
        return secret
    logger.warning(
        "JWT_SECRET is not set; using a random per-process secret. "
        "Issued tokens will not survive a restart."
    )
    return secrets.token_urlsafe(32)


# PUBLIC_INTERFACE
def load_settings() -> Settings:
    """Build a fresh Settings object from the current environment."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        logger.warning("Unsupported PERSISTENCE_BACKEND %r; falling back to memory", backend)
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/tasks.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        jwt_secret=_resolve_secret(),
        jwt_algorithm=_get_env("JWT_ALGORITHM", "HS256").strip(),
        token_ttl_seconds=_parse_int(
            _get_env("TOKEN_TTL_SECONDS", str(DEFAULT_TOKEN_TTL_SECONDS)),
            DEFAULT_TOKEN_TTL_SECONDS,
        ),
        password_hash_method=_get_env("PASSWORD_HASH_METHOD", "pbkdf2:sha256").strip(),
        upload_dir=_get_env("UPLOAD_DIR", "./uploads").strip(),
        max_image_bytes=_parse_int(
            _get_env("MAX_IMAGE_BYTES", str(DEFAULT_MAX_IMAGE_BYTES)),
            DEFAULT_MAX_IMAGE_BYTES,
        ),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loaded from the environment on first use."""
    return load_settings()

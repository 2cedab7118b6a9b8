"""Configuration parsing and validation for the release dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .errors import AuthenticationError, ConfigurationError, DataValidationError
from .records import parse_repository_id

RELEASES_FILE_NAME = "releases.csv"
SUPPORTED_LOCALES = ("en", "ko")
SUPPORTED_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Config:
    """Validated runtime settings, immutable for the process lifetime."""

    repositories: Tuple[str, ...]
    github_token: str
    data_path: Path
    update_interval_minutes: int = 60
    host: str = "localhost"
    port: int = 8000
    cors_origin: str = "http://localhost:3000"
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    locale: str = "en"

    @property
    def releases_file(self) -> Path:
        return self.data_path / RELEASES_FILE_NAME


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for '{name}': expected an integer, got '{raw}'.") from exc
    if value <= 0:
        raise ConfigurationError(f"Invalid value for '{name}': expected an integer greater than 0.")
    return value


def _parse_repositories(raw: str) -> Tuple[str, ...]:
    repositories = []
    for item in raw.split(","):
        candidate = item.strip()
        if not candidate:
            continue
        try:
            repositories.append(parse_repository_id(candidate).full_name)
        except DataValidationError as exc:
            raise ConfigurationError(f"Invalid value for 'REPOSITORIES': {exc}") from exc
    return tuple(repositories)


def load_config(require_token: bool = True) -> Config:
    """Build and validate application configuration from the environment.

    Args:
        require_token: Whether a GitHub token is mandatory. Commands that only
            read the persisted table (``query``) do not need one.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If a numeric setting, repository identifier or
            locale is invalid.
        AuthenticationError: If ``GITHUB_TOKEN`` is required but not set.
    """
    token = os.getenv("GITHUB_TOKEN", "").strip()
    if require_token and not token:
        raise AuthenticationError(
            "Missing required GitHub token. "
            "Set the 'GITHUB_TOKEN' environment variable before running the dashboard."
        )

    locale = os.getenv("DASHBOARD_LOCALE", "en").strip().lower() or "en"
    if locale not in SUPPORTED_LOCALES:
        raise ConfigurationError(
            f"Invalid value for 'DASHBOARD_LOCALE': expected one of {', '.join(SUPPORTED_LOCALES)}."
        )

    log_level = (os.getenv("LOG_LEVEL", "").strip() or "INFO").upper()
    if log_level not in SUPPORTED_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid value for 'LOG_LEVEL': expected one of {', '.join(SUPPORTED_LOG_LEVELS)}."
        )

    log_file = os.getenv("LOG_FILE", "").strip()

    return Config(
        repositories=_parse_repositories(os.getenv("REPOSITORIES", "")),
        github_token=token,
        data_path=Path(os.getenv("DATA_PATH", "").strip() or "./data"),
        update_interval_minutes=_int_setting("UPDATE_INTERVAL", 60),
        host=os.getenv("HOST", "").strip() or "localhost",
        port=_int_setting("PORT", 8000),
        cors_origin=os.getenv("CORS_ORIGIN", "").strip() or "http://localhost:3000",
        log_level=log_level,
        log_file=Path(log_file) if log_file else None,
        locale=locale,
    )

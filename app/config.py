"""Configuration loading for the TODO service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DATA_PATH_KEY = "TODO_DATA_PATH"
REQUIRE_USER_HEADER_KEY = "TODO_REQUIRE_USER_HEADER"
SERVICE_TOKEN_KEY = "TODO_SERVICE_TOKEN"
LOG_LEVEL_KEY = "TODO_LOG_LEVEL"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    data_path: Path
    require_user_header: bool
    service_token: str | None
    log_level: str = "INFO"


def _read_dotenv_value(dotenv_path: Path, key: str) -> str | None:
    """Read a single key from a .env file without mutating the environment."""
    if not dotenv_path.is_file():
        return None
    try:
        content = dotenv_path.read_text(encoding="utf-8")
    except OSError:
        return None

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].strip()
        name, separator, value = stripped.partition("=")
        if not separator or name.strip() != key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        return value or None
    return None


def _read_setting(dotenv_path: Path, key: str) -> str | None:
    value = os.environ.get(key)
    if value is None:
        value = _read_dotenv_value(dotenv_path, key)
    return value


def _read_bool(raw_value: str | None, *, default: bool, key: str) -> bool:
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{key} must be a boolean value.")


def _read_log_level(raw_value: str | None) -> str:
    if raw_value is None or not raw_value.strip():
        return "INFO"
    level = raw_value.strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            f"{LOG_LEVEL_KEY} must be one of {', '.join(sorted(_LOG_LEVELS))}."
        )
    return level


def load_config() -> AppConfig:
    """Load configuration from the environment, falling back to ``./.env``."""
    dotenv_path = Path.cwd() / ".env"

    raw_path = (_read_setting(dotenv_path, DATA_PATH_KEY) or "").strip()
    if not raw_path:
        raise ConfigError(f"{DATA_PATH_KEY} is required; set it to the data root path.")

    require_user_header = _read_bool(
        _read_setting(dotenv_path, REQUIRE_USER_HEADER_KEY),
        default=True,
        key=REQUIRE_USER_HEADER_KEY,
    )

    service_token = _read_setting(dotenv_path, SERVICE_TOKEN_KEY)
    service_token = service_token.strip() if isinstance(service_token, str) else None

    return AppConfig(
        data_path=Path(raw_path).expanduser().resolve(),
        require_user_header=require_user_header,
        service_token=service_token or None,
        log_level=_read_log_level(_read_setting(dotenv_path, LOG_LEVEL_KEY)),
    )


def configure_logging(config: AppConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

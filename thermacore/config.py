"""
Configuration for ThermaCore
============================
Runtime settings loaded from ``THERMACORE_*`` environment variables.
Sets up the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


def _env_int_set(name: str, default: frozenset[int]) -> frozenset[int]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return frozenset(int(part) for part in value.split(",") if part.strip())
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a comma separated list of integers.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    _DEFAULT_SECRET_KEY = "ThermaCoreDevSecretKey"

    environment: str = field(default_factory=lambda: os.getenv("THERMACORE_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("THERMACORE_SECRET_KEY", "ThermaCoreDevSecretKey"))
    DEBUG: bool = field(default_factory=lambda: _env_bool("THERMACORE_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("THERMACORE_LOG_LEVEL", "INFO"))
    log_dir: str = field(default_factory=lambda: os.getenv("THERMACORE_LOG_DIR", "logs"))
    audit_log_path: str = field(default_factory=lambda: os.getenv("THERMACORE_AUDIT_LOG_PATH", "logs/audit.log"))

    # Durable key-value storage (one JSON file per key). Empty means in-memory only.
    storage_dir: str = field(default_factory=lambda: os.getenv("THERMACORE_STORAGE_DIR", "var"))
    settings_storage_key: str = field(
        default_factory=lambda: os.getenv("THERMACORE_SETTINGS_KEY", "thermacore-settings")
    )
    notifications_storage_key: str = field(
        default_factory=lambda: os.getenv("THERMACORE_NOTIFICATIONS_KEY", "unresolvedNotifications")
    )

    # Unit data service (external collaborator)
    unit_service_url: str = field(
        default_factory=lambda: os.getenv("THERMACORE_UNIT_SERVICE_URL", "http://localhost:5001/api")
    )
    unit_service_timeout: float = field(default_factory=lambda: _env_float("THERMACORE_UNIT_SERVICE_TIMEOUT", 10.0))

    # Audio
    fallback_volume: int = field(default_factory=lambda: _env_int("THERMACORE_FALLBACK_VOLUME", 35))

    # Automatic water production switches on below this tank level (percent)
    auto_switch_trigger_percent: int = field(
        default_factory=lambda: _env_int("THERMACORE_AUTO_SWITCH_TRIGGER_PERCENT", 75)
    )

    # Notifications force-completed in the history snapshot
    resolved_notification_ids: frozenset[int] = field(
        default_factory=lambda: _env_int_set("THERMACORE_RESOLVED_NOTIFICATION_IDS", frozenset({3, 4, 5}))
    )

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set THERMACORE_SECRET_KEY environment variable to a secure random value."
            )
        if not 0 < self.fallback_volume <= 100:
            raise ValueError("THERMACORE_FALLBACK_VOLUME must be between 1 and 100.")
        if not 0 <= self.auto_switch_trigger_percent <= 100:
            raise ValueError("THERMACORE_AUTO_SWITCH_TRIGGER_PERCENT must be between 0 and 100.")

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DEBUG": self.DEBUG,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "STORAGE_DIR": self.storage_dir,
        }


def setup_logging(debug: bool = False, *, log_dir: str = "logs", level: str | None = None) -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName((level or "INFO").upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "thermacore_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "thermacore_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "thermacore_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if not has_file and log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "thermacore.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "thermacore_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"thermacore_console", "thermacore_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    if _env_bool("THERMACORE_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()

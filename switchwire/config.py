"""Configuration management for switchwire.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a typed Config object. Property getters provide safe access with
sensible defaults for every subsystem: interaction registry,
pagination, HTTP server, command log and logging.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("switchwire.bot")

DEFAULT_SWEEP_INTERVAL = 60.0
DEFAULT_PAGINATION_TIMEOUT = 300.0
DEFAULT_PAGINATION_IDLE_TIMEOUT = 120.0
DEFAULT_HELP_PAGE_SIZE = 10
DEFAULT_OUTBOX_LIMIT = 1000
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8787


class Config:
    """Central configuration manager for switchwire.

    Loads settings.yaml and .env from the config directory. Provides
    typed property accessors for every configurable subsystem. No
    mutation after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
        settings: Pre-parsed settings dict. Skips reading
            settings.yaml when given (used by tests and embedders).
    """

    def __init__(self, config_dir: Optional[Path] = None, settings: Optional[dict] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        # Load environment variables
        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        if settings is not None:
            self.settings = settings
        else:
            self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def _section(self, name: str) -> dict:
        section = self.settings.get(name, {})
        if not isinstance(section, dict):
            logger.error("config_section_invalid_type", section=name, type=type(section).__name__)
            return {}
        return section

    def _positive(self, section: str, key: str, default, cast=float):
        """Read ``section.key`` as a positive number.

        Missing keys give ``default``. Unparsable or non-positive values
        are logged and also give ``default``.
        """
        val = self._section(section).get(key)
        if val is None:
            return default
        try:
            number = cast(val)
        except (ValueError, TypeError):
            logger.warning("config_invalid_value", key=f"{section}.{key}", value=val)
            return default
        if number <= 0:
            logger.warning("config_invalid_value", key=f"{section}.{key}", value=val)
            return default
        return number

    def validate(self):
        """Validate critical settings at startup.

        Invalid numbers are logged and replaced by their defaults when
        read. This adds a warning when the idle window exceeds the hard
        timeout. Never raises.
        """
        timeout = self.pagination_timeout
        idle = self.pagination_idle_timeout
        if idle > timeout:
            logger.warning(
                "config_idle_exceeds_timeout",
                idle_timeout=idle,
                timeout=timeout,
                msg="Sessions will expire on the first timer fire after the idle window",
            )

    # Interaction registry configuration
    @property
    def sweep_interval(self) -> float:
        """Seconds between expired-registration sweeps (default 60)."""
        return self._positive("interactions", "sweep_interval", DEFAULT_SWEEP_INTERVAL)

    @property
    def default_expiry(self) -> Optional[float]:
        """Default lifetime in seconds for registrations without one (None = forever)."""
        return self._positive("interactions", "default_expiry", None)

    # Pagination configuration
    @property
    def pagination_timeout(self) -> float:
        """Hard timer period for pagination sessions in seconds (default 5 minutes)."""
        return self._positive("pagination", "timeout", DEFAULT_PAGINATION_TIMEOUT)

    @property
    def pagination_idle_timeout(self) -> float:
        """Idle window in seconds before a session expires (default 2 minutes)."""
        return self._positive("pagination", "idle_timeout", DEFAULT_PAGINATION_IDLE_TIMEOUT)

    @property
    def help_page_size(self) -> int:
        """Commands listed per /help page."""
        return self._positive("pagination", "help_page_size", DEFAULT_HELP_PAGE_SIZE, int)

    # HTTP server configuration
    @property
    def server_host(self) -> str:
        """Bind address. Env var SWITCHWIRE_HOST takes precedence."""
        return os.environ.get("SWITCHWIRE_HOST") or self._section("server").get(
            "host", DEFAULT_SERVER_HOST
        )

    @property
    def server_port(self) -> int:
        """Bind port. Env var SWITCHWIRE_PORT takes precedence."""
        raw = os.environ.get("SWITCHWIRE_PORT") or self._section("server").get(
            "port", DEFAULT_SERVER_PORT
        )
        try:
            return int(raw)
        except (ValueError, TypeError):
            raise ConfigurationError(
                f"Invalid server port: {raw!r}", setting_name="server.port"
            ) from None

    @property
    def outbox_limit(self) -> int:
        """Max interaction outboxes retained by the HTTP server."""
        return self._positive("server", "outbox_limit", DEFAULT_OUTBOX_LIMIT, int)

    # Storage and logging
    @property
    def command_log_path(self) -> Path:
        """Path of the NDJSON command audit log."""
        configured = self.settings.get("command_log_path")
        if configured:
            return Path(configured).expanduser()
        return self.log_dir / "command-log.ndjson"

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        return self._section("logging").get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"pagination": "DEBUG"}."""
        return self._section("logging").get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        return self._section("logging").get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        return self._section("logging").get("backup_count", 5)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config

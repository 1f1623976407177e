"""Configuration management for modbot.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a Config object. Property getters provide safe access with
sensible defaults for the platform connection, logging and plugins.

Environment variables override the YAML file:
    MODBOT_DISCORD_TOKEN, MODBOT_DISCORD_GUILD_ID, MODBOT_LOGGING_LEVEL

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("modbot.bot")

ENV_PREFIX = "MODBOT_"

_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})
_LOG_FORMATS = frozenset({"console", "json"})


class Config:
    """Central configuration manager for modbot.

    Loads settings.yaml and .env from the config directory. Read-only
    after __init__, so safe to share between dispatch threads.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``./config`` relative to the working directory.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path.cwd() / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigurationError(
                        f"failed to parse {filename}: {e}", setting_name=filename
                    ) from e
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"{filename} must contain a mapping", setting_name=filename
                )
            return data
        return {}

    def _section(self, name: str) -> dict:
        section = self.settings.get(name, {})
        if not isinstance(section, dict):
            logger.error("config_section_invalid_type", section=name, type=type(section).__name__)
            return {}
        return section

    def _env(self, key: str) -> Optional[str]:
        return os.environ.get(ENV_PREFIX + key)

    # ------------------------------------------------------------------
    # Discord connection
    # ------------------------------------------------------------------

    @property
    def discord_token(self) -> str:
        """Bot token used to authenticate the platform session."""
        return self._env("DISCORD_TOKEN") or self._section("discord").get("token", "") or ""

    @property
    def guild_id(self) -> str:
        """Guild to register commands in; empty means global commands."""
        value = self._env("DISCORD_GUILD_ID") or self._section("discord").get("guild_id", "")
        return str(value or "")

    @property
    def cleanup_on_shutdown(self) -> bool:
        """Whether to remove registered commands from the catalog on stop."""
        return bool(self._section("discord").get("cleanup_on_shutdown", False))

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    @property
    def logging_level(self) -> str:
        return (self._env("LOGGING_LEVEL") or self._section("logging").get("level", "info")).lower()

    @property
    def logging_format(self) -> str:
        return str(self._section("logging").get("format", "console")).lower()

    @property
    def logging_subsystem_levels(self) -> Dict[str, str]:
        levels = self._section("logging").get("subsystems", {})
        if not isinstance(levels, dict):
            return {}
        return {str(k): str(v) for k, v in levels.items()}

    @property
    def logging_max_file_size_mb(self) -> int:
        return int(self._section("logging").get("max_file_size_mb", 10))

    @property
    def logging_backup_count(self) -> int:
        return int(self._section("logging").get("backup_count", 5))

    @property
    def log_dir(self) -> Path:
        value = self._section("logging").get("dir")
        if value:
            return Path(value)
        return self.config_dir.parent / "logs"

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------

    def plugin_config(self, name: str) -> Dict[str, Any]:
        """Return the ``plugins.<name>`` section (empty dict if missing)."""
        section = self._section("plugins").get(name, {})
        if not isinstance(section, dict):
            logger.error("plugin_config_invalid_type", plugin=name, type=type(section).__name__)
            return {}
        return dict(section)

    def plugin_enabled(self, name: str) -> bool:
        """Whether a plugin is enabled in config (default True)."""
        return self.plugin_config(name).get("enabled", True) is not False

    @property
    def plugin_names(self):
        """Names of plugins that have a config section."""
        return list(self._section("plugins").keys())

    def validate(self):
        """Validate critical settings at startup.

        Raises:
            ConfigurationError: If the token is missing or logging
                settings are unknown.
        """
        if not self.discord_token:
            raise ConfigurationError(
                "token is required but not provided",
                setting_name="discord.token",
            )
        if self.logging_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"unknown log level {self.logging_level!r}",
                setting_name="logging.level",
            )
        if self.logging_format not in _LOG_FORMATS:
            raise ConfigurationError(
                f"unknown log format {self.logging_format!r}",
                setting_name="logging.format",
            )
        logger.info(
            "config_validated",
            guild_id=self.guild_id or None,
            plugins=self.plugin_names,
        )


_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config

"""Configuration management for leaguebot.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a typed Config object. Property getters provide safe access with
sensible defaults for every subsystem: command dispatch, backend
access, embed palette, keep-alive server, and logging.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

import structlog
import yaml
from dotenv import load_dotenv

logger = structlog.get_logger("leaguebot.bot")

DEFAULT_PREFIX = "!"
DEFAULT_COOLDOWN_SECONDS = 3
DEFAULT_CREDENTIAL_VALIDITY_HOURS = 12

# Keys accepted under ``commands.<name>`` in settings.yaml
COMMAND_OVERRIDE_KEYS = frozenset({"cooldown", "context", "privilege"})

DEFAULT_PALETTE = [
    0x2F3136, 0x1ABC9C, 0x3498DB, 0x9B59B6,
    0xE67E22, 0xE74C3C, 0x95A5A6, 0xF1C40F,
]


class Config:
    """Central configuration manager for leaguebot.

    Loads settings.yaml and .env from the config directory. Provides
    typed property accessors; nothing is mutated after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = config_dir

        # Load environment variables
        env_file = config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def _section(self, name: str) -> dict:
        """A nested settings block; an empty or malformed key reads as {}."""
        section = self.settings.get(name)
        return section if isinstance(section, dict) else {}

    def validate(self):
        """Validate critical settings at startup.

        Checks the prefix, backend credentials and per-command
        overrides. Logs warnings/errors but does not raise -- the
        bot starts in degraded mode.
        """
        prefix = self.settings.get("prefix", DEFAULT_PREFIX)
        if not isinstance(prefix, str) or len(prefix) != 1:
            logger.error("config_invalid_value", key="prefix", value=prefix, valid="one character")

        if not self.bot_token:
            logger.warning("bot_token_missing", msg="Set BOT_TOKEN in .env")
        if not self.api_url:
            logger.warning("api_url_missing", msg="Backend commands will fail")
        if not self.interact_username or not self.interact_password:
            logger.warning("interact_credentials_missing", msg="Authentication will fail")

        overrides = self.settings.get("commands") or {}
        if not isinstance(overrides, dict):
            logger.error("config_invalid_value", key="commands", valid="mapping")
            return
        for name, override in overrides.items():
            if not isinstance(override, dict):
                logger.error("config_invalid_value", key=f"commands.{name}", valid="mapping")
                continue
            unknown = set(override) - COMMAND_OVERRIDE_KEYS
            if unknown:
                logger.error(
                    "config_unknown_keys",
                    key=f"commands.{name}",
                    unknown=sorted(unknown),
                )

    @property
    def prefix(self) -> str:
        """Single-character command prefix (default "!")."""
        prefix = self.settings.get("prefix", DEFAULT_PREFIX)
        if not isinstance(prefix, str) or len(prefix) != 1:
            return DEFAULT_PREFIX
        return prefix

    @property
    def bot_token(self) -> str:
        """Discord bot token. Only read from the environment."""
        return os.environ.get("BOT_TOKEN", "")

    @property
    def api_url(self) -> str:
        """Backend base URL. Env var API_URL takes precedence."""
        url = os.environ.get("API_URL") or self.settings.get("api_url", "")
        return url.rstrip("/")

    @property
    def interact_username(self) -> str:
        """Service identity used to obtain backend credentials."""
        return os.environ.get("INTERACT_USERNAME", "")

    @property
    def interact_password(self) -> str:
        """Secret paired with interact_username."""
        return os.environ.get("INTERACT_PASSWORD", "")

    @property
    def default_cooldown(self) -> float:
        """Cooldown in seconds for commands that don't set one (default 3)."""
        return self.settings.get("default_cooldown", DEFAULT_COOLDOWN_SECONDS)

    @property
    def credential_validity_seconds(self) -> float:
        """How long a fetched credential is reused (default 12 hours)."""
        hours = self.settings.get(
            "credential_validity_hours", DEFAULT_CREDENTIAL_VALIDITY_HOURS
        )
        return hours * 60 * 60

    @property
    def request_timeout(self) -> int:
        """Timeout in seconds for backend HTTP requests (default 30)."""
        return self.settings.get("request_timeout", 30)

    @property
    def command_overrides(self) -> Dict[str, dict]:
        """Per-command overrides keyed by canonical command name.

        E.g. {"update": {"cooldown": 30}, "info": {"context": "any"}}.
        """
        overrides = self.settings.get("commands") or {}
        if not isinstance(overrides, dict):
            return {}
        return {name: o for name, o in overrides.items() if isinstance(o, dict)}

    @property
    def palette(self) -> List[int]:
        """Embed colours, indexed by the commands that render embeds."""
        palette = self.settings.get("palette")
        if not isinstance(palette, list) or len(palette) < len(DEFAULT_PALETTE):
            return list(DEFAULT_PALETTE)
        return [int(c) for c in palette]

    @property
    def keepalive_enabled(self) -> bool:
        """Whether to run the keep-alive HTTP server (default False)."""
        return self._section("keepalive").get("enabled", False)

    @property
    def keepalive_host(self) -> str:
        """Bind address for the keep-alive server (default 0.0.0.0)."""
        return self._section("keepalive").get("host", "0.0.0.0")

    @property
    def keepalive_port(self) -> int:
        """Port for the keep-alive server. Env var PORT takes precedence."""
        port = os.environ.get("PORT")
        if port and port.isdigit():
            return int(port)
        return self._section("keepalive").get("port", 3000)

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
        log_config = self._section("logging")
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"dispatch": "DEBUG"}."""
        log_config = self._section("logging")
        return log_config.get("subsystem_levels") or {}

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self._section("logging")
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self._section("logging")
        return log_config.get("backup_count", 5)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config

"""Logging setup for leaguebot.

structlog builds every event; stdlib logging routes it. Each subsystem
logger writes its own rotating file and propagates to the combined
log and the console:

    root                    console
      leaguebot             leaguebot.log
        leaguebot.bot         bot.log
        leaguebot.dispatch    dispatch.log
        leaguebot.backend     backend.log
        leaguebot.commands    commands.log

Records from other libraries (discord.py, aiohttp) go through the same
formatter, so they are timestamped and scrubbed like our own events.
"""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

SUBSYSTEMS = ("bot", "dispatch", "backend", "commands")

LOGGER_PREFIX = "leaguebot"

DEFAULT_LOG_DIR = Path(__file__).parent.parent / "logs"

_SECRET_PATTERNS = [
    # Discord bot tokens (base64 id . timestamp . hmac)
    re.compile(r"[MNO][a-zA-Z\d_-]{23,25}\.[a-zA-Z\d_-]{6}\.[a-zA-Z\d_-]{27,}"),
    re.compile(r"Bearer\s+[a-zA-Z0-9_./-]{20,}"),
    # Password fields echoed from request bodies or query strings
    re.compile(r"(?i)(password['\"]?\s*[:=]\s*['\"]?)[^\s'\"&,}]+"),
]

_REDACTED = "***REDACTED***"


def _scrub_value(value: str) -> str:
    for pattern in _SECRET_PATTERNS:
        if pattern.groups:
            value = pattern.sub(lambda m: m.group(1) + _REDACTED, value)
        else:
            value = pattern.sub(_REDACTED, value)
    return value


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        return _scrub_value(value)
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_scrub(v) for v in value)
    if isinstance(value, dict):
        return {k: _scrub(v) for k, v in value.items()}
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that redacts tokens and passwords.

    Call sites never log credentials on purpose; this catches whatever
    leaks through error strings and backend comments.
    """
    for key, value in event_dict.items():
        event_dict[key] = _scrub(value)
    return event_dict


# Shared by our events and by records from other libraries
_PRE_CHAIN = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    sanitize_secrets,
]


def _formatter(colors: bool) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
    )


def _level(name: Optional[str], default: int) -> int:
    """Level number for a name like "debug"; default when unset or unknown."""
    if not name:
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _rotating_handler(
    path: Path, level: int, formatter: logging.Formatter, max_bytes: int, backup_count: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config=None) -> None:
    """Configure structlog and the stdlib handler tree.

    main() calls this twice: with defaults before the config is loaded,
    then with the loaded Config. Only the second call caches bound
    loggers, so module-level loggers created in between pick up the
    final setup.

    Args:
        config: Optional Config instance providing log_dir and the
            logging_* settings.
    """
    if config is not None:
        log_dir = config.log_dir
        root_level = _level(config.logging_level, logging.INFO)
        subsystem_levels = config.logging_subsystem_levels
        max_bytes = config.logging_max_file_size_mb * 1024 * 1024
        backup_count = config.logging_backup_count
    else:
        log_dir = DEFAULT_LOG_DIR
        root_level = logging.INFO
        subsystem_levels = {}
        max_bytes = 10 * 1024 * 1024
        backup_count = 5

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        # Console-only; the bot must not crash on logging failure
        print(
            f"WARNING: Cannot create log directory {log_dir}: {exc}. "
            "Logging to console only.",
            file=sys.stderr,
        )
        log_dir = None

    file_formatter = _formatter(colors=False)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter by level
    root_logger.handlers.clear()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(root_level)
    console_handler.setFormatter(_formatter(colors=sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    # discord.py logs every gateway heartbeat and reconnect at INFO
    logging.getLogger("discord").setLevel(max(root_level, logging.WARNING))

    parent = logging.getLogger(LOGGER_PREFIX)
    parent.setLevel(logging.DEBUG)
    parent.handlers.clear()
    if log_dir is not None:
        parent.addHandler(_rotating_handler(
            log_dir / "leaguebot.log", root_level, file_formatter, max_bytes, backup_count
        ))

    for subsystem in SUBSYSTEMS:
        level = _level(subsystem_levels.get(subsystem), root_level)
        sub_logger = logging.getLogger(f"{LOGGER_PREFIX}.{subsystem}")
        sub_logger.setLevel(level)
        sub_logger.handlers.clear()
        if log_dir is not None:
            sub_logger.addHandler(_rotating_handler(
                log_dir / f"{subsystem}.log", level, file_formatter, max_bytes, backup_count
            ))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=config is not None,
    )

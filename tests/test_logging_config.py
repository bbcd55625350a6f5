"""Tests for logging setup and secret sanitization."""

import logging
from unittest.mock import MagicMock

import pytest
import structlog

from leaguebot.logging_config import (
    LOGGER_PREFIX,
    SUBSYSTEMS,
    _level,
    sanitize_secrets,
    setup_logging,
)


class TestSanitizeSecrets:

    def test_discord_token_redacted(self):
        token = "MTA" + "a" * 21 + ".Gxyz12." + "b" * 30
        event = sanitize_secrets(None, "info", {"event": "login", "error": f"bad {token}"})
        assert token not in event["error"]
        assert "***REDACTED***" in event["error"]

    def test_password_value_redacted_key_kept(self):
        event = sanitize_secrets(
            None, "info", {"body": '{"username": "bot", "password": "hunter2"}'}
        )
        assert "hunter2" not in event["body"]
        assert '"password": "***REDACTED***' in event["body"]
        assert '"username": "bot"' in event["body"]

    def test_nested_values_scrubbed(self):
        event = sanitize_secrets(None, "info", {
            "items": ["password=abc", 3],
            "extra": {"q": "password=abc"},
        })
        assert event["items"] == ["password=***REDACTED***", 3]
        assert event["extra"] == {"q": "password=***REDACTED***"}

    def test_plain_values_untouched(self):
        event = {"event": "command_dispatched", "command": "join", "args": 1}
        assert sanitize_secrets(None, "info", dict(event)) == event


def _config(log_dir, level="info", subsystem_levels=None):
    config = MagicMock()
    config.log_dir = log_dir
    config.logging_level = level
    config.logging_subsystem_levels = subsystem_levels or {}
    config.logging_max_file_size_mb = 1
    config.logging_backup_count = 1
    return config


@pytest.fixture
def restore_logging():
    """Undo setup_logging() so other tests keep pytest's handlers."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    yield
    for name in (LOGGER_PREFIX, *(f"{LOGGER_PREFIX}.{s}" for s in SUBSYSTEMS)):
        for handler in logging.getLogger(name).handlers:
            handler.close()
        logging.getLogger(name).handlers.clear()
    root.handlers[:] = saved_handlers
    structlog.reset_defaults()


class TestLevel:

    def test_known_names(self):
        assert _level("debug", logging.INFO) == logging.DEBUG
        assert _level("WARNING", logging.INFO) == logging.WARNING

    def test_unset_or_unknown_falls_back(self):
        assert _level(None, logging.INFO) == logging.INFO
        assert _level("", logging.ERROR) == logging.ERROR
        assert _level("chatty", logging.INFO) == logging.INFO


class TestSetupLogging:

    def test_subsystem_files_created(self, tmp_path, restore_logging):
        setup_logging(_config(tmp_path, subsystem_levels={"dispatch": "debug"}))
        assert logging.getLogger(f"{LOGGER_PREFIX}.dispatch").level == logging.DEBUG
        assert logging.getLogger(f"{LOGGER_PREFIX}.backend").level == logging.INFO
        assert logging.getLogger("discord").level == logging.WARNING
        for subsystem in SUBSYSTEMS:
            handlers = logging.getLogger(f"{LOGGER_PREFIX}.{subsystem}").handlers
            assert len(handlers) == 1
            assert (tmp_path / f"{subsystem}.log").exists()
        assert (tmp_path / "leaguebot.log").exists()

    def test_event_written_to_subsystem_and_combined_files(self, tmp_path, restore_logging):
        setup_logging(_config(tmp_path))
        structlog.get_logger("leaguebot.backend").warning(
            "auth_rejected", comment="bad password=hunter2"
        )
        for handler in logging.getLogger(LOGGER_PREFIX).handlers:
            handler.flush()
        for handler in logging.getLogger(f"{LOGGER_PREFIX}.backend").handlers:
            handler.flush()

        for filename in ("backend.log", "leaguebot.log"):
            text = (tmp_path / filename).read_text(encoding="utf-8")
            assert "auth_rejected" in text
            assert "hunter2" not in text
        assert "auth_rejected" not in (tmp_path / "dispatch.log").read_text(encoding="utf-8")

    def test_debug_events_only_where_enabled(self, tmp_path, restore_logging):
        setup_logging(_config(tmp_path, subsystem_levels={"dispatch": "debug"}))
        structlog.get_logger("leaguebot.dispatch").debug("cooldown_expired", command="join")
        structlog.get_logger("leaguebot.backend").debug("backend_response", path="x")
        for subsystem in ("dispatch", "backend"):
            for handler in logging.getLogger(f"{LOGGER_PREFIX}.{subsystem}").handlers:
                handler.flush()

        assert "cooldown_expired" in (tmp_path / "dispatch.log").read_text(encoding="utf-8")
        assert "backend_response" not in (tmp_path / "backend.log").read_text(encoding="utf-8")

"""Tests for wiring the dispatcher from config."""

from unittest.mock import MagicMock

import pytest

from leaguebot.commands import BUILTIN_COMMANDS
from leaguebot.exceptions import ConfigurationError
from leaguebot.main import build_dispatcher


def _config(**overrides):
    config = MagicMock()
    config.default_cooldown = 3
    config.command_overrides = {}
    config.api_url = "https://league.example.com"
    config.request_timeout = 30
    config.interact_username = "bot"
    config.interact_password = "pw"
    config.credential_validity_seconds = 43200
    config.prefix = "!"
    config.palette = [1, 2, 3, 4, 5, 6, 7, 8]
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def test_build_dispatcher_registers_builtins():
    dispatcher = build_dispatcher(_config())
    assert dispatcher.registry.frozen
    assert len(dispatcher.registry) == len(BUILTIN_COMMANDS)
    assert dispatcher.backend.api_url == "https://league.example.com"
    assert dispatcher.credentials.validity == 43200
    assert dispatcher.prefix == "!"


def test_build_dispatcher_applies_overrides():
    dispatcher = build_dispatcher(_config(command_overrides={"update": {"cooldown": 30}}))
    assert dispatcher.registry.resolve("update").descriptor.cooldown == 30


def test_build_dispatcher_rejects_bad_overrides():
    with pytest.raises(ConfigurationError):
        build_dispatcher(_config(command_overrides={"dance": {"cooldown": 1}}))

"""Tests for the command registry."""

import pytest

from leaguebot.commands import BUILTIN_COMMANDS, builtin_commands
from leaguebot.commands.base import (
    Command,
    ContextRestriction,
    Ok,
    PrivilegeRequirement,
)
from leaguebot.commands.registry import CommandRegistry, apply_overrides
from leaguebot.exceptions import ConfigurationError, DuplicateNameError


def _command(name, aliases=(), **attrs):
    """Build a throwaway command class instance."""

    async def execute(self, ctx):
        return Ok()

    cls = type(
        f"Cmd_{name}",
        (Command,),
        {"name": name, "aliases": tuple(aliases), "execute": execute, **attrs},
    )
    return cls()


class TestRegister:
    """Tests for register() collision rules."""

    def test_duplicate_canonical_name_rejected(self):
        registry = CommandRegistry()
        registry.register(_command("join"))
        with pytest.raises(DuplicateNameError) as exc_info:
            registry.register(_command("join"))
        assert exc_info.value.existing == "join"

    def test_overlapping_aliases_rejected(self):
        registry = CommandRegistry()
        registry.register(_command("self", aliases=("me", "whoami")))
        with pytest.raises(DuplicateNameError) as exc_info:
            registry.register(_command("profile", aliases=("me",)))
        assert exc_info.value.name == "me"
        assert exc_info.value.existing == "self"

    def test_alias_colliding_with_name_rejected(self):
        registry = CommandRegistry()
        registry.register(_command("help"))
        with pytest.raises(DuplicateNameError):
            registry.register(_command("guide", aliases=("help",)))

    def test_name_colliding_with_alias_rejected(self):
        registry = CommandRegistry()
        registry.register(_command("help", aliases=("commands",)))
        with pytest.raises(DuplicateNameError):
            registry.register(_command("commands"))

    def test_alias_repeating_own_name_rejected(self):
        registry = CommandRegistry()
        with pytest.raises(DuplicateNameError):
            registry.register(_command("join", aliases=("join",)))

    def test_failed_register_leaves_registry_unchanged(self):
        registry = CommandRegistry()
        registry.register(_command("self", aliases=("me",)))
        with pytest.raises(DuplicateNameError):
            registry.register(_command("profile", aliases=("pf", "me")))
        assert registry.resolve("profile") is None
        assert registry.resolve("pf") is None

    def test_frozen_registry_rejects_register(self):
        registry = CommandRegistry()
        registry.freeze()
        with pytest.raises(ConfigurationError, match="frozen"):
            registry.register(_command("join"))

    def test_duplicate_is_configuration_error(self):
        assert issubclass(DuplicateNameError, ConfigurationError)


class TestResolve:
    """Tests for resolve()."""

    def test_resolve_by_name_and_alias(self):
        registry = CommandRegistry()
        cmd = _command("autoFill", aliases=("autofill",))
        registry.register(cmd)
        assert registry.resolve("autoFill") is cmd
        assert registry.resolve("autofill") is cmd

    def test_resolve_is_case_sensitive(self):
        registry = CommandRegistry()
        registry.register(_command("linkCF"))
        assert registry.resolve("linkcf") is None

    def test_unknown_token_resolves_to_none(self):
        registry = CommandRegistry()
        assert registry.resolve("nope") is None
        assert "nope" not in registry

    def test_canonical_name_outranks_alias(self):
        """Even if an alias table entry shadowed a name, the name wins."""
        registry = CommandRegistry()
        info = _command("info")
        other = _command("other")
        registry.register(info)
        registry.register(other)
        registry._aliases["info"] = "other"
        assert registry.resolve("info") is info

    def test_iteration_in_registration_order(self):
        registry = CommandRegistry()
        names = ["b", "a", "c"]
        for n in names:
            registry.register(_command(n))
        assert [c.descriptor.name for c in registry] == names
        assert len(registry) == 3


class TestLoad:
    """Tests for CommandRegistry.load() and overrides."""

    def test_builtin_commands_load(self):
        registry = CommandRegistry.load(builtin_commands())
        assert registry.frozen
        assert len(registry) == len(BUILTIN_COMMANDS)
        assert registry.resolve("join").descriptor.min_args == 1
        assert registry.resolve("me").descriptor.name == "self"

    def test_builtin_cooldowns(self):
        registry = CommandRegistry.load(builtin_commands(default_cooldown=3))
        assert registry.resolve("join").descriptor.cooldown == 3
        assert registry.resolve("update").descriptor.cooldown == 10
        assert registry.resolve("endLeague").descriptor.cooldown == 3600

    def test_admin_commands_are_guild_only(self):
        registry = CommandRegistry.load(builtin_commands())
        for command in registry:
            d = command.descriptor
            if d.privilege is PrivilegeRequirement.ADMINISTRATOR:
                assert d.context is ContextRestriction.GUILD_ONLY, d.name

    def test_overrides_applied(self):
        registry = CommandRegistry.load(
            builtin_commands(),
            overrides={
                "info": {"context": "any", "cooldown": 7},
                "join": {"privilege": "administrator"},
            },
        )
        info = registry.resolve("info").descriptor
        assert info.context is ContextRestriction.ANY
        assert info.cooldown == 7
        assert registry.resolve("join").descriptor.privilege is PrivilegeRequirement.ADMINISTRATOR

    def test_override_for_unknown_command_rejected(self):
        with pytest.raises(ConfigurationError, match="unknown commands"):
            CommandRegistry.load(builtin_commands(), overrides={"dance": {"cooldown": 1}})

    def test_duplicate_in_load_rejected(self):
        with pytest.raises(DuplicateNameError):
            CommandRegistry.load([_command("a", aliases=("x",)), _command("b", aliases=("x",))])


class TestApplyOverrides:
    """Tests for apply_overrides()."""

    def test_dashed_context_value_accepted(self):
        d = _command("join").descriptor
        assert apply_overrides(d, {"context": "guild-only"}).context is ContextRestriction.GUILD_ONLY

    def test_unknown_key_rejected(self):
        d = _command("join").descriptor
        with pytest.raises(ConfigurationError) as exc_info:
            apply_overrides(d, {"aliases": ["j"]})
        assert exc_info.value.setting_name == "commands.join.aliases"

    def test_invalid_context_rejected(self):
        d = _command("join").descriptor
        with pytest.raises(ConfigurationError):
            apply_overrides(d, {"context": "everywhere"})

    def test_negative_cooldown_rejected(self):
        d = _command("join").descriptor
        with pytest.raises(ConfigurationError):
            apply_overrides(d, {"cooldown": -1})

    def test_original_descriptor_unchanged(self):
        d = _command("join").descriptor
        apply_overrides(d, {"cooldown": 99})
        assert d.cooldown == 3

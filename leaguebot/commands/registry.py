"""Command registry: canonical names and aliases to commands.

The registry is filled once at startup, then frozen. Every name and
alias is unique across the whole registry; a collision is a load-time
configuration error, so resolution never has to break ties.
"""

from __future__ import annotations

import dataclasses
from typing import Dict, Iterable, Iterator, Mapping, Optional

import structlog

from ..exceptions import ConfigurationError, DuplicateNameError
from .base import Command, CommandDescriptor, ContextRestriction, PrivilegeRequirement

logger = structlog.get_logger("leaguebot.dispatch")


def apply_overrides(descriptor: CommandDescriptor, override: Mapping) -> CommandDescriptor:
    """Return a copy of descriptor with settings.yaml overrides applied.

    Accepted keys: ``cooldown`` (seconds), ``context`` ("any",
    "guild_only", "dm_only") and ``privilege`` ("none",
    "administrator"). Dashes are accepted in place of underscores.

    Raises:
        ConfigurationError: On an unknown key or an invalid value.
    """
    changes = {}
    for key, value in override.items():
        setting = f"commands.{descriptor.name}.{key}"
        try:
            if key == "cooldown":
                cooldown = float(value)
                if cooldown < 0:
                    raise ValueError(value)
                changes["cooldown"] = cooldown
            elif key == "context":
                changes["context"] = ContextRestriction(_normalize(value))
            elif key == "privilege":
                changes["privilege"] = PrivilegeRequirement(_normalize(value))
            else:
                raise ConfigurationError(
                    f"Unknown command override {key!r}", setting_name=setting
                )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid value {value!r}", setting_name=setting
            ) from e
    return dataclasses.replace(descriptor, **changes)


def _normalize(value) -> str:
    return str(value).strip().lower().replace("-", "_")


class CommandRegistry:
    """Maps canonical command names and aliases to commands.

    Resolution is an exact, case-sensitive match. Canonical names are
    checked before aliases.
    """

    def __init__(self):
        self._commands: Dict[str, Command] = {}
        self._aliases: Dict[str, str] = {}
        self._frozen = False

    @classmethod
    def load(
        cls,
        commands: Iterable[Command],
        overrides: Optional[Mapping[str, Mapping]] = None,
    ) -> "CommandRegistry":
        """Build a frozen registry, applying per-command overrides.

        Args:
            commands: Command instances to register.
            overrides: Mapping of canonical name -> override dict, as
                read from ``commands`` in settings.yaml.

        Raises:
            DuplicateNameError: If two commands share a name or alias.
            ConfigurationError: If an override is invalid or names an
                unknown command.
        """
        overrides = dict(overrides or {})
        registry = cls()
        for command in commands:
            override = overrides.pop(command.descriptor.name, None)
            if override:
                command.descriptor = apply_overrides(command.descriptor, override)
            registry.register(command)
        if overrides:
            raise ConfigurationError(
                f"Overrides for unknown commands: {', '.join(sorted(overrides))}",
                setting_name="commands",
            )
        registry.freeze()
        return registry

    def register(self, command: Command) -> None:
        """Register a command under its canonical name and aliases.

        Raises:
            DuplicateNameError: If any of its names is already taken,
                or it lists the same name twice.
            ConfigurationError: If the registry is frozen.
        """
        if self._frozen:
            raise ConfigurationError(
                f"Cannot register {command.descriptor.name!r}: registry is frozen",
                module="commands.registry",
            )

        descriptor = command.descriptor
        names = (descriptor.name,) + tuple(descriptor.aliases)
        seen = set()
        for name in names:
            if name in seen:
                raise DuplicateNameError(name, existing=descriptor.name)
            seen.add(name)
            owner = self._owner_of(name)
            if owner is not None:
                raise DuplicateNameError(name, existing=owner)

        self._commands[descriptor.name] = command
        for alias in descriptor.aliases:
            self._aliases[alias] = descriptor.name
        logger.debug(
            "command_registered",
            command=descriptor.name,
            aliases=list(descriptor.aliases),
        )

    def freeze(self) -> None:
        """End the load phase. Further register() calls fail."""
        self._frozen = True
        logger.info("command_registry_loaded", commands=len(self._commands))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, token: str) -> Optional[Command]:
        """Look up a command by canonical name, then by alias."""
        command = self._commands.get(token)
        if command is not None:
            return command
        name = self._aliases.get(token)
        if name is not None:
            return self._commands[name]
        return None

    def _owner_of(self, name: str) -> Optional[str]:
        if name in self._commands:
            return name
        return self._aliases.get(name)

    def __iter__(self) -> Iterator[Command]:
        return iter(list(self._commands.values()))

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, token: str) -> bool:
        return self.resolve(token) is not None

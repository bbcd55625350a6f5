"""Command framework and built-in commands for leaguebot.

Provides the Command ABC, the CommandRegistry, and the user, league
and general command sets.
"""

from typing import List

from .base import (
    BackendCommand,
    Command,
    CommandContext,
    CommandDescriptor,
    CommandResult,
    ContextKind,
    ContextRestriction,
    Err,
    InboundMessage,
    Invocation,
    Invoker,
    Ok,
    PrivilegeRequirement,
)
from .general import HelpCommand, QuickstartCommand
from .league import (
    AutoFillCommand,
    CheckCommand,
    CreateLeagueCommand,
    EndLeagueCommand,
    InfoCommand,
    JoinCommand,
    StartLeagueCommand,
    UpdateCommand,
)
from .registry import CommandRegistry
from .user import LinkCFCommand, RegisterCommand, SelfCommand

BUILTIN_COMMANDS = (
    HelpCommand,
    QuickstartCommand,
    RegisterCommand,
    LinkCFCommand,
    SelfCommand,
    JoinCommand,
    CheckCommand,
    InfoCommand,
    AutoFillCommand,
    UpdateCommand,
    CreateLeagueCommand,
    StartLeagueCommand,
    EndLeagueCommand,
)


def builtin_commands(default_cooldown: float = 3) -> List[Command]:
    """Instantiate every built-in command."""
    return [cls(default_cooldown=default_cooldown) for cls in BUILTIN_COMMANDS]


__all__ = [
    "BackendCommand",
    "Command",
    "CommandContext",
    "CommandDescriptor",
    "CommandRegistry",
    "CommandResult",
    "ContextKind",
    "ContextRestriction",
    "Err",
    "InboundMessage",
    "Invocation",
    "Invoker",
    "Ok",
    "PrivilegeRequirement",
    "BUILTIN_COMMANDS",
    "builtin_commands",
]

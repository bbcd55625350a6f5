"""Base classes for the command framework.

Defines the data that flows through the dispatch pipeline and the
abstraction every command implements. Commands declare their
constraints as class attributes; at load time these become an
immutable CommandDescriptor owned by the CommandRegistry.

Key classes:
    Invoker: Who sent a message and with which privileges.
    Invocation: One parsed attempt to run a command.
    CommandDescriptor: Static constraints of a registered command.
    CommandContext: Dependency container handed to a running command.
    Command: ABC that every command implements.
    BackendCommand: Command that issues one authenticated backend GET.
    Ok / Err: Explicit command outcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import structlog

from ..exceptions import AuthError, BackendError, HandlerFault
from ..replies import CONNECTION_FAILURE, Reply, response_fail

if TYPE_CHECKING:
    from ..backend import BackendClient
    from ..credentials import Credential
    from .registry import CommandRegistry

logger = structlog.get_logger("leaguebot.commands")

DEFAULT_COOLDOWN_SECONDS = 3.0


class ContextKind(str, Enum):
    """Where a message was sent."""
    DIRECT_MESSAGE = "dm"
    GUILD = "guild"


class ContextRestriction(str, Enum):
    """Where a command may be used."""
    ANY = "any"
    GUILD_ONLY = "guild_only"
    DM_ONLY = "dm_only"


class PrivilegeRequirement(str, Enum):
    """Privilege the invoker must hold in the current context."""
    NONE = "none"
    ADMINISTRATOR = "administrator"


@dataclass(frozen=True)
class Invoker:
    """The author of an inbound message.

    Attributes:
        id: Stable platform identity, used as the cooldown key.
        username: Display username.
        discriminator: Platform discriminator ("0" for migrated names).
        mention: Text that pings the user when posted.
        is_admin: Whether the user is an administrator in the
            context the message was sent from. Always False in DMs.
    """
    id: str
    username: str
    discriminator: str = "0"
    mention: str = ""
    is_admin: bool = False

    @property
    def backend_username(self) -> str:
        """Identity the backend knows this user by."""
        return f"{self.username}*{self.discriminator}"


@dataclass(frozen=True)
class InboundMessage:
    """A chat message as seen by the dispatcher."""
    text: str
    invoker: Invoker
    context: ContextKind


@dataclass(frozen=True)
class Invocation:
    """One parsed attempt to run a command. Never persisted."""
    invoker: Invoker
    context: ContextKind
    token: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CommandDescriptor:
    """Static metadata describing a registered command's constraints."""
    name: str
    aliases: Tuple[str, ...] = ()
    min_args: int = 0
    context: ContextRestriction = ContextRestriction.ANY
    privilege: PrivilegeRequirement = PrivilegeRequirement.NONE
    cooldown: float = DEFAULT_COOLDOWN_SECONDS
    usage: str = ""
    category: str = "Misc"
    description: str = ""


@dataclass(frozen=True)
class Ok:
    """Command finished; post these replies in order."""
    replies: List[Reply] = field(default_factory=list)


@dataclass(frozen=True)
class Err:
    """Command faulted; the dispatcher reports it generically."""
    fault: HandlerFault


CommandResult = Union[Ok, Err]


@dataclass
class CommandContext:
    """Dependency container for a running command.

    Everything a command may touch is passed in explicitly; commands
    never reach for globals.
    """

    invocation: Invocation
    prefix: str
    registry: "CommandRegistry"
    backend: "BackendClient"
    get_credential: Callable[[], Awaitable["Credential"]]
    palette: List[int] = field(default_factory=list)
    bot_name: str = "leaguebot"

    @property
    def args(self) -> Tuple[str, ...]:
        return self.invocation.args

    @property
    def invoker(self) -> Invoker:
        return self.invocation.invoker

    def colour(self, index: int) -> Optional[int]:
        """Palette colour by index, None when the palette is short."""
        if 0 <= index < len(self.palette):
            return self.palette[index]
        return None


class Command(ABC):
    """Abstract base class for all commands.

    Subclasses set the class attributes below and implement execute().
    The attributes are turned into a CommandDescriptor on construction;
    registry-level overrides replace the descriptor, never the class.

    Args:
        default_cooldown: Cooldown applied when the class leaves
            ``cooldown`` unset.
    """

    name: str = ""
    aliases: Tuple[str, ...] = ()
    description: str = ""
    usage: str = ""
    category: str = "Misc"
    min_args: int = 0
    context: ContextRestriction = ContextRestriction.ANY
    privilege: PrivilegeRequirement = PrivilegeRequirement.NONE
    cooldown: Optional[float] = None

    def __init__(self, default_cooldown: float = DEFAULT_COOLDOWN_SECONDS):
        if not self.name:
            raise ValueError(f"{type(self).__name__} has no command name")
        self.descriptor = CommandDescriptor(
            name=self.name,
            aliases=tuple(self.aliases),
            min_args=self.min_args,
            context=self.context,
            privilege=self.privilege,
            cooldown=default_cooldown if self.cooldown is None else self.cooldown,
            usage=self.usage,
            category=self.category,
            description=self.description,
        )

    @abstractmethod
    async def execute(self, ctx: CommandContext) -> CommandResult:
        """Run the command with guard-checked arguments."""
        ...

    async def invoke(self, ctx: CommandContext) -> CommandResult:
        """Run execute() and turn an escaped exception into Err.

        This is the only place a command fault is caught; the fault
        is logged and not retried.
        """
        try:
            return await self.execute(ctx)
        except Exception as e:
            logger.exception(
                "handler_fault",
                command=self.descriptor.name,
                error=str(e),
            )
            return Err(HandlerFault(
                f"{self.descriptor.name} failed: {e}",
                command=self.descriptor.name,
                cause=e,
            ))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.descriptor.name!r}>"


class BackendCommand(Command):
    """A command that issues one authenticated GET to the backend.

    Subclasses set ``endpoint`` and implement params() and
    render(); failure messaging is shared. A refused request shows the
    backend's comment, a failed authentication shows a generic
    connectivity message.
    """

    endpoint: str = ""

    @abstractmethod
    def params(self, ctx: CommandContext) -> Dict[str, str]:
        """Query parameters for the request."""
        ...

    @abstractmethod
    def render(self, ctx: CommandContext, data: Any) -> Reply:
        """Render a successful response."""
        ...

    async def execute(self, ctx: CommandContext) -> CommandResult:
        mention = ctx.invoker.mention
        try:
            credential = await ctx.get_credential()
        except AuthError as e:
            logger.warning("credential_unavailable", command=self.name, error=str(e))
            return Ok([response_fail(mention, CONNECTION_FAILURE)])

        try:
            data = await ctx.backend.get(
                self.endpoint, self.params(ctx), credential.token
            )
        except BackendError as e:
            logger.info(
                "backend_refused",
                command=self.name,
                status=e.status,
                comment=e.comment,
            )
            return Ok([response_fail(mention, e.comment or CONNECTION_FAILURE)])

        return Ok([self.render(ctx, data)])

"""Message dispatcher for leaguebot.

Turns inbound chat messages into command invocations and runs them:

    parse -> resolve -> ACK marker -> guard chain -> record cooldown
          -> command -> replies -> DONE marker

Messages without the prefix and prefixed messages naming no known
command are ignored silently, so ordinary chat that happens to start
with the prefix character is left alone. A guard rejection is posted
and stops dispatch before any cooldown is recorded. The cooldown is
recorded synchronously right after the chain passes, so no other
message can slip in between the check and the record.

Key classes:
    Responder: Outbound side of the chat platform for one message.
    Dispatcher: Owns the pipeline; all collaborators are injected.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import structlog

from .backend import BackendClient
from .commands.base import CommandContext, Err, InboundMessage, Invocation, Ok
from .commands.registry import CommandRegistry
from .cooldowns import CooldownTracker
from .credentials import CredentialCache
from .exceptions import GuardRejection
from .guards import GuardChain
from .replies import GENERIC_FAILURE, Reply

logger = structlog.get_logger("leaguebot.dispatch")

ACK_MARKER = "⚙️"
DONE_MARKER = "👌"


class Responder(ABC):
    """Posts into the context an inbound message came from."""

    @abstractmethod
    async def send(self, reply: Reply) -> None:
        """Post a reply (plain message or direct reply)."""
        ...

    @abstractmethod
    async def react(self, marker: str) -> None:
        """Attach a reaction marker to the inbound message."""
        ...


class Dispatcher:
    """Routes prefixed messages to registered commands.

    Args:
        registry: Frozen command registry.
        cooldowns: Shared cooldown tracker.
        credentials: Shared credential cache handed to commands.
        backend: Backend client handed to commands.
        prefix: Single-character command prefix.
        palette: Embed colours handed to commands.
        guards: Guard chain; defaults to the standard four guards.
        clock: Monotonic time source in seconds.
        bot_name: How commands refer to the bot in their replies.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        cooldowns: CooldownTracker,
        credentials: CredentialCache,
        backend: BackendClient,
        prefix: str = "!",
        palette: Optional[List[int]] = None,
        guards: Optional[GuardChain] = None,
        clock: Callable[[], float] = time.monotonic,
        bot_name: str = "leaguebot",
    ):
        if len(prefix) != 1:
            raise ValueError(f"Command prefix must be one character, got {prefix!r}")
        self.registry = registry
        self.cooldowns = cooldowns
        self.credentials = credentials
        self.backend = backend
        self.prefix = prefix
        self.palette = list(palette or [])
        self.guards = guards if guards is not None else GuardChain.default(prefix, cooldowns)
        self._clock = clock
        # Replaced by the chat adapter once it knows its own user
        self.bot_name = bot_name

    def parse(self, message: InboundMessage) -> Optional[Invocation]:
        """Split a prefixed message into command token and arguments.

        Returns None when the text lacks the prefix or names nothing. The
        token must follow the prefix directly: "! help" is ordinary chat.
        """
        text = message.text
        if not text.startswith(self.prefix):
            return None
        body = text[len(self.prefix):]
        if not body or body[0].isspace():
            return None
        parts = body.split()
        if not parts:
            return None
        return Invocation(
            invoker=message.invoker,
            context=message.context,
            token=parts[0],
            args=tuple(parts[1:]),
        )

    async def on_message(self, message: InboundMessage, responder: Responder) -> None:
        """Dispatch one inbound message.

        Never raises for command-level failures: guard rejections and
        handler faults are reported to the invoker and logged.
        """
        invocation = self.parse(message)
        if invocation is None:
            return

        command = self.registry.resolve(invocation.token)
        if command is None:
            logger.debug("unknown_command_ignored", token=invocation.token[:32])
            return
        descriptor = command.descriptor

        await responder.react(ACK_MARKER)

        now = self._clock()
        try:
            self.guards.evaluate(invocation, descriptor, now)
        except GuardRejection as rejection:
            await responder.send(
                Reply(text=rejection.message, as_reply=rejection.as_reply)
            )
            return

        self.cooldowns.record(
            descriptor.name, invocation.invoker.id, now, descriptor.cooldown
        )

        logger.info(
            "command_dispatched",
            command=descriptor.name,
            token=invocation.token,
            args=len(invocation.args),
            context=invocation.context.value,
        )

        ctx = CommandContext(
            invocation=invocation,
            prefix=self.prefix,
            registry=self.registry,
            backend=self.backend,
            get_credential=self.credentials.get,
            palette=self.palette,
            bot_name=self.bot_name,
        )
        result = await command.invoke(ctx)

        if isinstance(result, Ok):
            for reply in result.replies:
                await responder.send(reply)
        elif isinstance(result, Err):
            logger.error(
                "handler_fault_reported",
                command=descriptor.name,
                error=str(result.fault),
            )
            await responder.send(Reply(text=GENERIC_FAILURE))
        else:
            logger.error(
                "handler_invalid_result",
                command=descriptor.name,
                result_type=type(result).__name__,
            )
            await responder.send(Reply(text=GENERIC_FAILURE))

        await responder.react(DONE_MARKER)

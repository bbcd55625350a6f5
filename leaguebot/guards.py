"""Dispatch guards for leaguebot.

Every invocation that resolves to a command passes through the same
ordered chain before the command runs: context, arity, privilege,
cooldown. The first guard to fail raises GuardRejection and the rest
are skipped. Guards only read state; recording a cooldown is the
dispatcher's job once the whole chain has passed.
"""

from typing import Callable, List, Sequence

import structlog

from .commands.base import (
    CommandDescriptor,
    ContextKind,
    ContextRestriction,
    Invocation,
    PrivilegeRequirement,
)
from .cooldowns import CooldownTracker
from .exceptions import GuardRejection

logger = structlog.get_logger("leaguebot.dispatch")

# (invocation, descriptor, now) -> None, raising GuardRejection on failure
Guard = Callable[[Invocation, CommandDescriptor, float], None]


def check_context(invocation: Invocation, descriptor: CommandDescriptor, now: float) -> None:
    """Reject guild-only commands in DMs and DM-only commands in guilds."""
    restriction = descriptor.context
    if restriction is ContextRestriction.ANY:
        return
    if restriction is ContextRestriction.GUILD_ONLY:
        if invocation.context is ContextKind.DIRECT_MESSAGE:
            raise GuardRejection(
                "I can't execute that command inside DMs!",
                guard="context",
                as_reply=True,
            )
        return
    if restriction is ContextRestriction.DM_ONLY:
        if invocation.context is not ContextKind.DIRECT_MESSAGE:
            raise GuardRejection(
                "I can't execute that command inside a server. Slide into my DM!",
                guard="context",
                as_reply=True,
            )
        return
    raise ValueError(f"Unhandled context restriction: {restriction!r}")


def make_arity_check(prefix: str) -> Guard:
    """Build the arity guard; its message quotes the command prefix."""

    def check_arity(invocation: Invocation, descriptor: CommandDescriptor, now: float) -> None:
        if len(invocation.args) >= descriptor.min_args:
            return
        message = (
            "You didn't provide the proper amount of arguments, "
            f"{invocation.invoker.mention}!"
        )
        if descriptor.usage:
            message += (
                "\nThe proper usage would be: "
                f"`{prefix}{descriptor.name} {descriptor.usage}`"
            )
        raise GuardRejection(message, guard="arity")

    return check_arity


def check_privilege(invocation: Invocation, descriptor: CommandDescriptor, now: float) -> None:
    """Reject administrator commands from non-administrators."""
    requirement = descriptor.privilege
    if requirement is PrivilegeRequirement.NONE:
        return
    if requirement is PrivilegeRequirement.ADMINISTRATOR:
        if not invocation.invoker.is_admin:
            raise GuardRejection(
                "You need administrative permission to use this command, "
                f"{invocation.invoker.mention}.",
                guard="privilege",
            )
        return
    raise ValueError(f"Unhandled privilege requirement: {requirement!r}")


def make_cooldown_check(tracker: CooldownTracker) -> Guard:
    """Build the cooldown guard over a shared tracker."""

    def check_cooldown(invocation: Invocation, descriptor: CommandDescriptor, now: float) -> None:
        remaining = tracker.remaining(descriptor.name, invocation.invoker.id, now)
        if remaining <= 0:
            return
        raise GuardRejection(
            f"Please wait {remaining:.1f} more second(s) before reusing "
            f"the `{descriptor.name}` command.",
            guard="cooldown",
            as_reply=True,
            remaining=round(remaining, 1),
        )

    return check_cooldown


class GuardChain:
    """An ordered sequence of guards, short-circuiting on first failure."""

    def __init__(self, guards: Sequence[Guard]):
        self._guards: List[Guard] = list(guards)

    @classmethod
    def default(cls, prefix: str, tracker: CooldownTracker) -> "GuardChain":
        """The standard chain: context, arity, privilege, cooldown."""
        return cls([
            check_context,
            make_arity_check(prefix),
            check_privilege,
            make_cooldown_check(tracker),
        ])

    def evaluate(self, invocation: Invocation, descriptor: CommandDescriptor, now: float) -> None:
        """Run every guard in order.

        Raises:
            GuardRejection: From the first guard that fails.
        """
        for guard in self._guards:
            try:
                guard(invocation, descriptor, now)
            except GuardRejection as rejection:
                logger.info(
                    "guard_rejected",
                    command=descriptor.name,
                    guard=rejection.guard,
                )
                raise

    def __len__(self) -> int:
        return len(self._guards)

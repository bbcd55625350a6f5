"""Custom exception hierarchy for leaguebot.

Classifies failures across the dispatch pipeline so each layer can
decide what to surface: registry misconfiguration fails at load time,
guard rejections become user-facing messages, backend and auth errors
are rendered by the command that hit them, and handler faults are
caught at the command boundary and reported generically.

Nothing in leaguebot retries; ``ErrorCategory`` is carried for logging.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for logging and escalation."""
    TRANSIENT = "transient"          # Backend unreachable, timeouts
    PERMANENT = "permanent"          # Bad input, rejected request
    INFRASTRUCTURE = "infrastructure"  # Misconfiguration, missing secrets


class LeagueBotError(Exception):
    """Base exception for all leaguebot errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification.
        module: Originating module name (e.g. "backend").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error could succeed on a later attempt."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(LeagueBotError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )


class DuplicateNameError(ConfigurationError):
    """A command name or alias is already taken in the registry.

    Attributes:
        name: The colliding name or alias.
        existing: Canonical name of the command that already owns it.
    """

    def __init__(
        self,
        name: str,
        *,
        existing: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.name = name
        self.existing = existing
        message = f"Command name or alias {name!r} is already registered"
        if existing:
            message += f" by {existing!r}"
        super().__init__(
            message, module=module or "commands.registry", **context
        )


# ---------------------------------------------------------------------------
# Dispatch exceptions
# ---------------------------------------------------------------------------

class GuardRejection(LeagueBotError):
    """An invocation failed one of the dispatch guards.

    The message is meant for the invoker; dispatch stops and no
    cooldown is recorded.

    Attributes:
        guard: Name of the guard that rejected ("context", "arity",
            "privilege" or "cooldown").
        as_reply: Whether the message should be posted as a direct
            reply to the invoker rather than a plain channel message.
    """

    def __init__(
        self,
        message: str,
        *,
        guard: str,
        as_reply: bool = False,
        **context: Any,
    ) -> None:
        self.guard = guard
        self.as_reply = as_reply
        super().__init__(message, module="guards", **context)


class HandlerFault(LeagueBotError):
    """An uncaught fault raised while a command was executing.

    Attributes:
        command: Canonical name of the failing command.
        cause: The original exception, if any.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        cause: Optional[BaseException] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        self.cause = cause
        super().__init__(
            message, category=category, module=module or "commands", **context
        )


# ---------------------------------------------------------------------------
# Backend exceptions
# ---------------------------------------------------------------------------

class BackendError(LeagueBotError):
    """The backend answered a resource request with a non-2xx status.

    Attributes:
        comment: The ``comment`` field of the error payload, which is
            shown to the invoker as-is.
        status: HTTP status code, if a response was received.
    """

    def __init__(
        self,
        comment: str = "",
        *,
        status: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.comment = comment
        self.status = status
        super().__init__(
            comment, category=category, module=module or "backend", **context
        )


class AuthError(BackendError):
    """Refreshing the backend credential failed.

    Defaults to TRANSIENT: most failures are connectivity problems.
    """

    def __init__(
        self,
        comment: str = "",
        *,
        status: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            comment,
            status=status,
            category=category,
            module=module or "credentials",
            **context,
        )

"""Shared backend credential cache.

Every outbound backend call needs a bearer token. Tokens are fetched
with the service identity and reused for a fixed validity window
tracked on the local clock; the backend's own expiry headers are not
consulted. Refreshes are single-flight: concurrent callers that find
the cache expired await one shared refresh task and all receive its
result, token or AuthError alike. The next caller after the task
finishes starts a fresh attempt.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import structlog

from .exceptions import AuthError

logger = structlog.get_logger("leaguebot.backend")

DEFAULT_VALIDITY_SECONDS = 12 * 60 * 60


@dataclass(frozen=True)
class Credential:
    """An opaque bearer token and the local time it stops being reused."""
    token: str
    expires_at: float

    def is_live(self, now: float) -> bool:
        return self.expires_at > now


class CredentialCache:
    """Holds the single shared credential and refreshes it on demand.

    Args:
        authenticate: Coroutine function returning a fresh token,
            raising AuthError on failure (BackendClient.authenticate
            bound to the service identity).
        validity: Seconds a fetched token is reused.
        clock: Time source in seconds, shared with callers that pass
            ``now`` explicitly.
    """

    def __init__(
        self,
        authenticate: Callable[[], Awaitable[str]],
        validity: float = DEFAULT_VALIDITY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._authenticate = authenticate
        self.validity = validity
        self._clock = clock
        self._credential: Optional[Credential] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self.refresh_count = 0

    @property
    def credential(self) -> Optional[Credential]:
        """The cached credential, live or not."""
        return self._credential

    async def get(self, now: Optional[float] = None) -> Credential:
        """Return a live credential, refreshing it at most once.

        Args:
            now: Current time; defaults to the cache's clock.

        Raises:
            AuthError: If a refresh was needed and failed. The
                previously cached credential is kept.
        """
        if now is None:
            now = self._clock()
        cached = self._credential
        if cached is not None and cached.is_live(now):
            return cached

        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.create_task(self._refresh(now))
            task.add_done_callback(self._refresh_finished)
            self._refresh_task = task
        # shield: one cancelled waiter must not cancel the shared refresh
        return await asyncio.shield(task)

    def _refresh_finished(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Mark the failure retrieved even if every waiter went away
            task.exception()

    async def _refresh(self, now: float) -> Credential:
        self.refresh_count += 1
        try:
            token = await self._authenticate()
        except AuthError as e:
            logger.error("credential_refresh_failed", error=str(e), status=e.status)
            raise

        credential = Credential(token=token, expires_at=now + self.validity)
        self._credential = credential
        logger.info("credential_refreshed", valid_for_seconds=self.validity)
        return credential

    def invalidate(self) -> None:
        """Drop the cached credential; the next get() refreshes."""
        self._credential = None

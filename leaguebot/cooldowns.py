"""Per-command, per-user cooldown tracking for leaguebot.

Each command keeps a map of invoker identity -> timestamp of the last
accepted invocation. An entry lives exactly as long as its cooldown
window: recording schedules its removal on the running event loop,
and lookups check the window themselves, so the answer is the same
whether or not the removal has fired yet.

All operations are synchronous; a check followed by a record inside
one coroutine step cannot interleave with another message.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import structlog

logger = structlog.get_logger("leaguebot.dispatch")


@dataclass(frozen=True)
class CooldownEntry:
    """Last accepted invocation of a command by one identity."""
    timestamp: float
    duration: float

    @property
    def expires_at(self) -> float:
        return self.timestamp + self.duration


class CooldownTracker:
    """Tracks when each identity last used each command.

    Timestamps are whatever clock the caller passes as ``now``; the
    dispatcher uses a monotonic clock in seconds.
    """

    def __init__(self):
        self._entries: Dict[str, Dict[str, CooldownEntry]] = {}
        self._timers: Dict[Tuple[str, str], asyncio.TimerHandle] = {}

    def is_limited(self, command: str, identity: str, now: float) -> bool:
        """True iff a live entry exists and now is inside its window."""
        return self.remaining(command, identity, now) > 0

    def remaining(self, command: str, identity: str, now: float) -> float:
        """Seconds left in the cooldown window, 0.0 when not limited."""
        entry = self.entry(command, identity)
        if entry is None or now >= entry.expires_at:
            return 0.0
        return entry.expires_at - now

    def record(self, command: str, identity: str, now: float, duration: float) -> None:
        """Store an accepted invocation and schedule its expiry.

        Overwrites any previous entry for the same key; the earlier
        removal timer is cancelled so it can't delete the new entry.
        """
        entry = CooldownEntry(timestamp=now, duration=duration)
        self._entries.setdefault(command, {})[identity] = entry
        key = (command, identity)

        previous = self._timers.pop(key, None)
        if previous is not None:
            previous.cancel()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # No running loop (e.g., in sync test context); sweep() cleans up
        self._timers[key] = loop.call_later(
            duration, self._expire, command, identity, entry
        )

    def _expire(self, command: str, identity: str, entry: CooldownEntry) -> None:
        """Remove an entry if it is still the one this timer was set for."""
        self._timers.pop((command, identity), None)
        entries = self._entries.get(command)
        if entries is None or entries.get(identity) is not entry:
            return
        self._remove(command, identity)
        logger.debug("cooldown_expired", command=command)

    def _remove(self, command: str, identity: str) -> None:
        entries = self._entries[command]
        del entries[identity]
        if not entries:
            del self._entries[command]

    def sweep(self, now: float) -> int:
        """Remove every entry whose window has closed.

        Returns:
            Number of entries removed.
        """
        removed = 0
        for command in list(self._entries):
            for identity, entry in list(self._entries[command].items()):
                if entry.expires_at <= now:
                    self._remove(command, identity)
                    timer = self._timers.pop((command, identity), None)
                    if timer is not None:
                        timer.cancel()
                    removed += 1
        if removed:
            logger.debug("cooldown_sweep", removed=removed)
        return removed

    def entry(self, command: str, identity: str) -> Optional[CooldownEntry]:
        """The stored entry for a key, if any."""
        return self._entries.get(command, {}).get(identity)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def cancel_timers(self) -> None:
        """Cancel all pending removals (for shutdown)."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

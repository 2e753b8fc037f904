"""
Per-caller cooldowns and command rate windows.

Both trackers are synchronous: a check and its record happen in one step
with no await in between, so two invocations handled on the same event
loop can never both be allowed for the same key.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


@dataclass
class CooldownEntry:
    """Last use of one command by one caller."""
    last_invoked_at: float
    cooldown_ms: int

    def remaining(self, now: float) -> float:
        return self.cooldown_ms - (now - self.last_invoked_at)

    def is_expired(self, now: float) -> bool:
        return now - self.last_invoked_at >= self.cooldown_ms


@dataclass
class CooldownResult:
    """Outcome of a cooldown check."""
    allowed: bool
    remaining_ms: int = 0


class CooldownTracker:
    """
    Minimum interval between uses of a command by the same caller.

    Entries live in an LRU keyed by (command, caller). When the table grows
    past max_entries, only entries whose own cooldown has already elapsed
    are evicted; a live entry is never dropped, so eviction can not turn a
    cooling-down key into a false "allowed".
    """

    def __init__(
        self,
        max_entries: int = 10000,
        clock: Callable[[], float] | None = None,
    ):
        self.max_entries = max_entries
        self._clock = clock or monotonic_ms
        self._entries: OrderedDict[tuple[str, str], CooldownEntry] = OrderedDict()

        # Stats
        self._allowed = 0
        self._denied = 0
        self._evicted = 0

    def try_consume(
        self,
        command_name: str,
        caller_id: str,
        cooldown_ms: int,
        now: float | None = None,
    ) -> CooldownResult:
        """
        Check a cooldown and record the use if allowed.

        Args:
            command_name: Canonical command name.
            caller_id: Stable caller identifier.
            cooldown_ms: Required interval for this command.
            now: Current time in ms (defaults to the tracker's clock).

        Returns:
            CooldownResult; when denied, remaining_ms is the wait left.
        """
        if now is None:
            now = self._clock()
        key = (command_name, caller_id)

        entry = self._entries.get(key)
        if entry is not None and now - entry.last_invoked_at < cooldown_ms:
            self._denied += 1
            remaining = cooldown_ms - (now - entry.last_invoked_at)
            return CooldownResult(allowed=False, remaining_ms=max(1, round(remaining)))

        self._entries[key] = CooldownEntry(last_invoked_at=now, cooldown_ms=cooldown_ms)
        self._entries.move_to_end(key)
        self._allowed += 1

        if len(self._entries) > self.max_entries:
            self._evict(now)

        return CooldownResult(allowed=True)

    def remaining(self, command_name: str, caller_id: str, now: float | None = None) -> int:
        """Milliseconds left on a cooldown without recording anything."""
        entry = self._entries.get((command_name, caller_id))
        if entry is None:
            return 0
        if now is None:
            now = self._clock()
        return max(0, round(entry.remaining(now)))

    def _evict(self, now: float) -> None:
        """Drop expired entries, oldest first, until back under the cap."""
        excess = len(self._entries) - self.max_entries
        for key in list(self._entries):
            if excess <= 0:
                break
            if self._entries[key].is_expired(now):
                del self._entries[key]
                self._evicted += 1
                excess -= 1

    def reset(self, command_name: str | None = None, caller_id: str | None = None) -> None:
        """Clear cooldowns, optionally only for one command and/or caller."""
        if command_name is None and caller_id is None:
            self._entries.clear()
            return
        for key in list(self._entries):
            cmd, caller = key
            if (command_name is None or cmd == command_name) and (
                caller_id is None or caller == caller_id
            ):
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Get cooldown statistics."""
        return {
            "entries": len(self._entries),
            "allowed": self._allowed,
            "denied": self._denied,
            "evicted": self._evicted,
        }


@dataclass
class RateWindow:
    """Command count for one caller in the current window."""
    count: int
    window_start: float


@dataclass
class RateResult:
    """Outcome of a rate window check."""
    allowed: bool
    retry_after_ms: int = 0


class RateWindowLimiter:
    """
    Per-caller command frequency limit.

    Allows at most max_commands per fixed window per caller. A window
    restarts once now - window_start exceeds window_ms.
    """

    def __init__(
        self,
        max_commands: int = 5,
        window_ms: int = 60000,
        max_entries: int = 10000,
        clock: Callable[[], float] | None = None,
    ):
        self.max_commands = max_commands
        self.window_ms = window_ms
        self.max_entries = max_entries
        self._clock = clock or monotonic_ms
        self._windows: dict[str, RateWindow] = {}
        self._limited = 0

    def try_acquire(self, caller_id: str, now: float | None = None) -> RateResult:
        """Count one command for a caller if the window has room."""
        if now is None:
            now = self._clock()

        window = self._windows.get(caller_id)
        if window is None or now - window.window_start > self.window_ms:
            self._windows[caller_id] = RateWindow(count=1, window_start=now)
            if len(self._windows) > self.max_entries:
                self._prune(now)
            return RateResult(allowed=True)

        if window.count >= self.max_commands:
            self._limited += 1
            retry_after = self.window_ms - (now - window.window_start)
            return RateResult(allowed=False, retry_after_ms=max(1, round(retry_after)))

        window.count += 1
        return RateResult(allowed=True)

    def _prune(self, now: float) -> None:
        """Drop windows that have already ended."""
        for caller_id in [
            cid for cid, w in self._windows.items()
            if now - w.window_start > self.window_ms
        ]:
            del self._windows[caller_id]

    def clear_caller(self, caller_id: str) -> None:
        """Clear the rate window for a caller."""
        self._windows.pop(caller_id, None)

    def get_stats(self) -> dict[str, Any]:
        """Get rate limiter statistics."""
        return {
            "tracked_callers": len(self._windows),
            "limited": self._limited,
            "max_commands": self.max_commands,
            "window_ms": self.window_ms,
        }

"""In-memory AFK status per chatter and channel."""

import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from lunabot.utils.helpers import normalize_channel


@dataclass
class AfkStatus:
    """One chatter's away status in one channel."""
    user_id: str
    login: str
    channel: str
    reason: str
    since: float
    returned_at: float | None = None

    @property
    def active(self) -> bool:
        return self.returned_at is None


def format_away(seconds: float) -> str:
    """
    Format an away duration with its two largest units.

    Examples:
        3725 -> "1h 2m"
        42 -> "42s"
        0 -> "0s"
    """
    remaining = int(seconds)
    parts = []
    for size, label in ((86400, "d"), (3600, "h"), (60, "m"), (1, "s")):
        if remaining >= size:
            parts.append(f"{remaining // size}{label}")
            remaining %= size
            if len(parts) == 2:
                break
    return " ".join(parts) or "0s"


class AfkTracker:
    """
    Tracks who is away.

    A returned status is kept for resume_window seconds so rafk can
    restore it; older ones are pruned.
    """

    def __init__(self, resume_window_seconds: float = 1800, clock: Callable[[], float] | None = None):
        self.resume_window = resume_window_seconds
        self._clock = clock or time.monotonic
        self._statuses: dict[tuple[str, str], AfkStatus] = {}

    def _key(self, channel: str, user_id: str) -> tuple[str, str]:
        return normalize_channel(channel), user_id

    def get(self, channel: str, user_id: str) -> AfkStatus | None:
        """Active status of a chatter, or None."""
        status = self._statuses.get(self._key(channel, user_id))
        return status if status and status.active else None

    def go_afk(self, channel: str, user_id: str, login: str, reason: str) -> AfkStatus:
        """Mark a chatter as away, replacing any earlier status."""
        self._prune()
        key = self._key(channel, user_id)
        status = AfkStatus(user_id=user_id, login=login, channel=key[0], reason=reason, since=self._clock())
        self._statuses[key] = status
        logger.debug(f"{login} is AFK in #{key[0]}: {reason}")
        return status

    def come_back(self, channel: str, user_id: str) -> tuple[AfkStatus, float] | None:
        """
        End an active status.

        Returns:
            The status and how long the chatter was away, or None if they
            were not away.
        """
        status = self.get(channel, user_id)
        if status is None:
            return None
        status.returned_at = self._clock()
        return status, status.returned_at - status.since

    def resume(self, channel: str, user_id: str) -> AfkStatus | None:
        """Restore the last status if it ended within the resume window."""
        status = self._statuses.get(self._key(channel, user_id))
        if status is None or status.active:
            return None
        if self._clock() - status.returned_at > self.resume_window:
            return None
        return self.go_afk(channel, user_id, status.login, status.reason)

    def clear(self, channel: str, user_id: str) -> bool:
        return self._statuses.pop(self._key(channel, user_id), None) is not None

    def _prune(self) -> None:
        now = self._clock()
        stale = [
            key for key, status in self._statuses.items()
            if not status.active and now - status.returned_at > self.resume_window
        ]
        for key in stale:
            del self._statuses[key]

    def __len__(self) -> int:
        return sum(1 for status in self._statuses.values() if status.active)

"""
Tracks whether the bot holds an elevated role in each channel.

An elevated bot account (moderator, VIP or broadcaster) is exempt from the
platform's unprivileged outbound message cap. The state is advisory: it
reflects the last badge set observed for the bot's own account and can go
stale until the next observation.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from loguru import logger

from lunabot.core.badges import Badge, grants_bypass
from lunabot.utils.helpers import normalize_channel


@dataclass
class ChannelPrivilegeState:
    """Bot privilege in one channel."""
    channel: str
    can_bypass: bool = False
    badges: frozenset[Badge] = field(default_factory=frozenset)
    last_updated: float = 0.0


class PrivilegeTracker:
    """
    Per-channel bypass flag derived from the bot's own badges.

    Unknown channels default to no bypass.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock or time.time
        self._states: dict[str, ChannelPrivilegeState] = {}

    def observe(self, channel: str) -> ChannelPrivilegeState:
        """Get the state for a channel, creating a default one if unseen."""
        key = normalize_channel(channel)
        state = self._states.get(key)
        if state is None:
            state = ChannelPrivilegeState(channel=key, last_updated=self._clock())
            self._states[key] = state
        return state

    def update(self, channel: str, badges: Iterable[Badge]) -> bool:
        """
        Record the bot's badges for a channel.

        Args:
            channel: Channel the badges were observed in.
            badges: The bot's own badge set there.

        Returns:
            The new bypass flag.
        """
        badges = frozenset(badges)
        state = self.observe(channel)
        previous = state.can_bypass

        state.badges = badges
        state.can_bypass = grants_bypass(badges)
        state.last_updated = self._clock()

        if previous != state.can_bypass:
            logger.info(
                f"Bot privilege in #{state.channel} changed: "
                f"can bypass rate limit = {state.can_bypass}"
            )
        else:
            logger.debug(
                f"Bot status in #{state.channel}: can bypass = {state.can_bypass}, "
                f"badges = {sorted(b.value for b in badges)}"
            )
        return state.can_bypass

    def can_bypass(self, channel: str) -> bool:
        """Whether sends to this channel may skip the outbound spacing."""
        state = self._states.get(normalize_channel(channel))
        return state.can_bypass if state is not None else False

    def get(self, channel: str) -> ChannelPrivilegeState | None:
        return self._states.get(normalize_channel(channel))

    def forget(self, channel: str) -> None:
        """Drop state for a channel the bot has left."""
        self._states.pop(normalize_channel(channel), None)

    @property
    def channels(self) -> list[str]:
        return sorted(self._states)

    def get_stats(self) -> dict[str, Any]:
        """Get privilege statistics."""
        return {
            "channels": len(self._states),
            "privileged": sorted(c for c, s in self._states.items() if s.can_bypass),
        }

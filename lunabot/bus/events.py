"""Event types flowing from chat transports into the bot."""

import time
from dataclasses import dataclass, field
from typing import Protocol

from lunabot.core.badges import Badge, Role, role_for_badges
from lunabot.utils.helpers import normalize_channel


@dataclass(frozen=True)
class ChatUser:
    """The author of a chat line."""
    id: str
    login: str
    display_name: str = ""
    badges: frozenset[Badge] = frozenset()

    def __post_init__(self) -> None:
        if not self.display_name:
            object.__setattr__(self, "display_name", self.login)

    @property
    def role(self) -> Role:
        """Effective role: the highest level any badge grants."""
        return role_for_badges(self.badges)

    @property
    def is_broadcaster(self) -> bool:
        return Badge.BROADCASTER in self.badges

    @property
    def is_mod(self) -> bool:
        return Badge.MODERATOR in self.badges

    @property
    def is_vip(self) -> bool:
        return Badge.VIP in self.badges

    @property
    def is_subscriber(self) -> bool:
        return Badge.SUBSCRIBER in self.badges or Badge.FOUNDER in self.badges


@dataclass
class InboundMessage:
    """A single chat line received from a channel."""
    channel: str
    user: ChatUser
    text: str
    id: str = ""
    timestamp: float = field(default_factory=time.time)
    tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.channel = normalize_channel(self.channel)


class ChatEvents(Protocol):
    """
    Subscription interface for transport events.

    A transport calls exactly one method per event kind. Subscribers
    implement all of them.
    """

    async def on_message(self, message: InboundMessage) -> None: ...

    async def on_self_state(self, channel: str, badges: frozenset[Badge]) -> None: ...

    async def on_join(self, channel: str) -> None: ...

    async def on_part(self, channel: str) -> None: ...

    async def on_connected(self) -> None: ...

    async def on_disconnected(self) -> None: ...

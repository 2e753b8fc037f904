"""Base class for chat transports."""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from lunabot.bus.events import ChatEvents, InboundMessage
from lunabot.core.badges import Badge


class BaseTransport(ABC):
    """
    A connection to a chat platform.

    Transports deliver events to subscribers through the ChatEvents
    interface and expose send/join/part to the bot. A subscriber that
    raises never breaks the transport's read loop.
    """

    name: str = "base"

    def __init__(self) -> None:
        self._subscribers: list[ChatEvents] = []
        self._running = False

    def subscribe(self, events: ChatEvents) -> None:
        """Register an event subscriber."""
        self._subscribers.append(events)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def bot_login(self) -> str:
        """Login name of the bot account on this transport."""
        return ""

    @abstractmethod
    async def start(self) -> None:
        """Connect and run until stopped."""

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect."""

    @abstractmethod
    async def send(self, channel: str, text: str) -> None:
        """
        Send a chat message.

        Raises:
            DeliveryFailure: If the message could not be sent.
        """

    @abstractmethod
    async def join(self, channel: str) -> None:
        """Join a channel."""

    @abstractmethod
    async def part(self, channel: str) -> None:
        """Leave a channel."""

    async def _emit(self, event: str, *args: Any) -> None:
        for subscriber in self._subscribers:
            try:
                await getattr(subscriber, event)(*args)
            except Exception:
                logger.exception(f"{self.name}: subscriber failed handling {event}")

    async def _emit_message(self, message: InboundMessage) -> None:
        await self._emit("on_message", message)

    async def _emit_self_state(self, channel: str, badges: frozenset[Badge]) -> None:
        await self._emit("on_self_state", channel, badges)

    async def _emit_join(self, channel: str) -> None:
        await self._emit("on_join", channel)

    async def _emit_part(self, channel: str) -> None:
        await self._emit("on_part", channel)

    async def _emit_connected(self) -> None:
        await self._emit("on_connected")

    async def _emit_disconnected(self) -> None:
        await self._emit("on_disconnected")

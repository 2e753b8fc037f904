"""Chat event types shared by transports and the bot."""

from lunabot.bus.events import ChatEvents, ChatUser, InboundMessage, normalize_channel

__all__ = ["ChatEvents", "ChatUser", "InboundMessage", "normalize_channel"]

"""Chat transports for LunaBot."""

from lunabot.channels.base import BaseTransport
from lunabot.channels.console import ConsoleTransport
from lunabot.channels.reconnect import ConnectionState, ReconnectPolicy, ReconnectStateMachine
from lunabot.channels.twitch import TwitchTransport

__all__ = [
    "BaseTransport",
    "ConsoleTransport",
    "ConnectionState",
    "ReconnectPolicy",
    "ReconnectStateMachine",
    "TwitchTransport",
]

"""
Console transport: drive the bot from a terminal.

Each stdin line is a chat message from one local user with a chosen role.
Replies are printed as they leave the outbound throttle, so pacing is
visible.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable

from loguru import logger
from rich.console import Console
from rich.markup import escape

from lunabot.bus.events import ChatUser, InboundMessage
from lunabot.channels.base import BaseTransport
from lunabot.core.badges import Badge, Role
from lunabot.utils.helpers import normalize_channel

BADGES_FOR_ROLE: dict[Role, frozenset[Badge]] = {
    Role.VIEWER: frozenset(),
    Role.SUBSCRIBER: frozenset({Badge.SUBSCRIBER}),
    Role.VIP: frozenset({Badge.VIP}),
    Role.MODERATOR: frozenset({Badge.MODERATOR}),
    Role.BROADCASTER: frozenset({Badge.BROADCASTER}),
}

EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit", ":q"}


def _read_line() -> str | None:
    try:
        return input()
    except EOFError:
        return None


class ConsoleTransport(BaseTransport):
    """Local stdin/stdout transport for trying commands offline."""

    name = "console"

    def __init__(
        self,
        channel: str = "console",
        user_login: str = "you",
        role: Role = Role.VIEWER,
        privileged: bool = False,
        console: Console | None = None,
        reader: Callable[[], Awaitable[str | None]] | None = None,
    ):
        super().__init__()
        self.channel = normalize_channel(channel)
        self.privileged = privileged
        self.user = ChatUser(id=f"console:{user_login}", login=user_login, badges=BADGES_FOR_ROLE[role])
        self.console = console or Console()
        self._reader = reader or (lambda: asyncio.to_thread(_read_line))

    @property
    def bot_login(self) -> str:
        return "lunabot"

    async def start(self) -> None:
        """Read lines until EOF or an exit command."""
        self._running = True
        await self._emit_connected()
        await self._emit_join(self.channel)
        bot_badges = frozenset({Badge.MODERATOR}) if self.privileged else frozenset()
        await self._emit_self_state(self.channel, bot_badges)

        logger.info(f"Console chat in #{self.channel} as {self.user.login} ({self.user.role.name.lower()})")

        while self._running:
            line = await self._reader()
            if line is None or line.strip().lower() in EXIT_COMMANDS:
                break
            if not line.strip():
                continue
            await self._emit_message(InboundMessage(channel=self.channel, user=self.user, text=line))

        self._running = False
        await self._emit_disconnected()

    async def stop(self) -> None:
        self._running = False

    async def send(self, channel: str, text: str) -> None:
        stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        self.console.print(
            f"[dim]{stamp}[/dim] [cyan]#{normalize_channel(channel)}[/cyan] "
            f"[bold magenta]{self.bot_login}[/bold magenta]: {escape(text)}"
        )

    async def join(self, channel: str) -> None:
        await self._emit_join(normalize_channel(channel))

    async def part(self, channel: str) -> None:
        await self._emit_part(normalize_channel(channel))

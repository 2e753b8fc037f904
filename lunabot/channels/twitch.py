"""
Twitch chat transport for LunaBot.

Speaks IRC over Twitch's WebSocket endpoint with:
- IRCv3 tags (badges, user ids, display names)
- Bot badge tracking from USERSTATE
- Automatic reconnect with jittered backoff
"""

import asyncio
from typing import Any

import aiohttp
from loguru import logger

from lunabot.bus.events import ChatUser, InboundMessage
from lunabot.channels.base import BaseTransport
from lunabot.channels.irc import IrcMessage, format_privmsg, parse_irc_line
from lunabot.channels.reconnect import ReconnectPolicy, ReconnectStateMachine
from lunabot.config.schema import TwitchConfig
from lunabot.core.badges import parse_badges
from lunabot.core.errors import DeliveryFailure
from lunabot.utils.helpers import normalize_channel

CAPABILITIES = "twitch.tv/tags twitch.tv/commands twitch.tv/membership"


class TwitchTransport(BaseTransport):
    """
    Twitch IRC-over-WebSocket client.

    Configuration (via TwitchConfig):
    - username: Bot account login
    - oauth_token: Chat token for the bot account
    - channels: Channels to join on every connect
    - reconnect: Backoff policy
    """

    name = "twitch"

    def __init__(self, config: TwitchConfig):
        super().__init__()
        self.config = config
        self.login = config.username.lower()
        self._channels: set[str] = {normalize_channel(c) for c in config.channels}

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None

        reconnect = config.reconnect
        self._reconnect = ReconnectStateMachine(ReconnectPolicy(
            initial_delay=reconnect.initial_delay_seconds,
            multiplier=reconnect.multiplier,
            max_delay=reconnect.max_delay_seconds,
            jitter=reconnect.jitter,
            max_attempts=reconnect.max_attempts,
        ))

    @property
    def bot_login(self) -> str:
        return self.login

    @property
    def channels(self) -> list[str]:
        return sorted(self._channels)

    @property
    def connection_state(self) -> str:
        return self._reconnect.state.value

    async def start(self) -> None:
        """Connect and keep the connection alive until stopped."""
        if self._running:
            return

        self._running = True
        logger.info(f"Connecting to Twitch chat as {self.login}")

        while self._running:
            connected = False
            try:
                await self._connect()
                connected = True
                self._reconnect.connected()
                await self._emit_connected()
                await self._run_loop()
            except asyncio.CancelledError:
                break
            except ConnectionRefusedError as e:
                logger.error(f"Twitch rejected the login: {e}")
                self._running = False
            except Exception as e:
                logger.error(f"Twitch connection error: {e}")
            finally:
                await self._close_socket()
                if connected:
                    await self._emit_disconnected()

            if self._running:
                delay = self._reconnect.connection_lost()
                if delay is None:
                    break
                logger.info(f"Reconnecting in {delay:.1f}s (attempt {self._reconnect.attempt})")
                try:
                    await asyncio.sleep(delay)
                except asyncio.CancelledError:
                    break

        self._running = False
        self._reconnect.stop()
        await self._close_session()
        logger.info("Twitch transport stopped")

    async def stop(self) -> None:
        """Stop the transport and close the connection."""
        self._running = False
        await self._close_socket()

    async def _connect(self) -> None:
        """Open the WebSocket, authenticate and join channels."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

        self._ws = await self._session.ws_connect(self.config.irc_url, heartbeat=60.0)

        await self._send_raw(f"CAP REQ :{CAPABILITIES}")
        await self._send_raw(f"PASS oauth:{self.config.token}")
        await self._send_raw(f"NICK {self.login}")

        # Wait for the welcome numeric or an auth failure notice
        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                for line in msg.data.splitlines():
                    parsed = parse_irc_line(line)
                    if parsed is None:
                        continue
                    if parsed.command == "001":
                        logger.info("Connected to Twitch chat")
                        for channel in sorted(self._channels):
                            await self._send_raw(f"JOIN #{channel}")
                        return
                    if parsed.command == "NOTICE" and "authentication failed" in parsed.trailing.lower():
                        raise ConnectionRefusedError(parsed.trailing)
                    if parsed.command == "PING":
                        await self._send_raw(f"PONG :{parsed.trailing}")

            elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                break

        raise ConnectionError("WebSocket closed during login")

    async def _run_loop(self) -> None:
        """Read lines until the socket closes or Twitch asks us to reconnect."""
        if not self._ws:
            return

        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                for line in msg.data.splitlines():
                    parsed = parse_irc_line(line)
                    if parsed is None:
                        continue
                    if parsed.command == "RECONNECT":
                        logger.info("Twitch requested a reconnect")
                        return
                    try:
                        await self._handle_line(parsed)
                    except Exception as e:
                        logger.error(f"Error handling IRC line {parsed.command}: {e}")

            elif msg.type == aiohttp.WSMsgType.CLOSED:
                logger.info("Twitch closed the connection")
                break

            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error(f"WebSocket error: {self._ws.exception()}")
                break

    async def _handle_line(self, msg: IrcMessage) -> None:
        """Map one IRC line to transport events."""
        command = msg.command

        if command == "PING":
            await self._send_raw(f"PONG :{msg.trailing}")

        elif command == "PRIVMSG":
            await self._handle_privmsg(msg)

        elif command == "USERSTATE":
            await self._emit_self_state(msg.channel, parse_badges(msg.tags.get("badges", "")))

        elif command == "JOIN" and msg.nick.lower() == self.login:
            logger.info(f"Joined #{msg.channel}")
            await self._emit_join(msg.channel)

        elif command == "PART" and msg.nick.lower() == self.login:
            logger.info(f"Left #{msg.channel}")
            await self._emit_part(msg.channel)

        elif command == "NOTICE":
            logger.info(f"Twitch notice in #{msg.channel or '-'}: {msg.trailing}")

    async def _handle_privmsg(self, msg: IrcMessage) -> None:
        badges = parse_badges(msg.tags.get("badges", ""))
        login = msg.nick.lower()

        if login == self.login:
            await self._emit_self_state(msg.channel, badges)
            return

        user = ChatUser(
            id=msg.tags.get("user-id") or login,
            login=login,
            display_name=msg.tags.get("display-name") or login,
            badges=badges,
        )
        await self._emit_message(InboundMessage(
            channel=msg.channel,
            user=user,
            text=msg.trailing,
            id=msg.tags.get("id", ""),
            tags=msg.tags,
        ))

    async def send(self, channel: str, text: str) -> None:
        """Send a chat message to a channel."""
        if not self._ws or self._ws.closed or not self._reconnect.is_connected:
            raise DeliveryFailure(normalize_channel(channel), "not connected")
        try:
            await self._send_raw(format_privmsg(normalize_channel(channel), text))
        except Exception as e:
            raise DeliveryFailure(normalize_channel(channel), e) from e

    async def join(self, channel: str) -> None:
        channel = normalize_channel(channel)
        self._channels.add(channel)
        if self._ws and not self._ws.closed:
            await self._send_raw(f"JOIN #{channel}")

    async def part(self, channel: str) -> None:
        channel = normalize_channel(channel)
        self._channels.discard(channel)
        if self._ws and not self._ws.closed:
            await self._send_raw(f"PART #{channel}")

    async def _send_raw(self, line: str) -> None:
        if not self._ws:
            raise ConnectionError("WebSocket not open")
        await self._ws.send_str(line)

    async def _close_socket(self) -> None:
        if self._ws and not self._ws.closed:
            await self._ws.close()
        self._ws = None

    async def _close_session(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def get_stats(self) -> dict[str, Any]:
        """Get transport statistics."""
        return {
            "state": self.connection_state,
            "reconnect_attempt": self._reconnect.attempt,
            "channels": self.channels,
        }

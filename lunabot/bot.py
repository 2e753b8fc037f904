"""
ChatBot: wires a chat transport to the command core.

Inbound lines flow transport -> dispatcher -> handler; replies flow
handler -> outbound throttle -> transport. The bot's own badge
observations feed the privilege tracker that the throttle consults.
"""

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger

from lunabot.bus.events import InboundMessage
from lunabot.channels.base import BaseTransport
from lunabot.commands import register_builtin_commands
from lunabot.config.schema import Config
from lunabot.core.badges import Badge
from lunabot.core.commands import CommandRegistry
from lunabot.core.cooldown import CooldownTracker, RateWindowLimiter
from lunabot.core.dispatch import CommandDispatcher, DispatchConfig
from lunabot.core.privilege import PrivilegeTracker
from lunabot.core.throttle import OutboundThrottle, ThrottleConfig
from lunabot.services import BotServices
from lunabot.services.afk import AfkTracker, format_away


class ChatBot:
    """
    One bot account on one transport.

    Implements the ChatEvents interface and subscribes itself to the
    transport on construction.
    """

    def __init__(
        self,
        config: Config,
        transport: BaseTransport,
        services: BotServices | None = None,
        register_builtins: bool = True,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        """
        Args:
            config: Root configuration.
            transport: Chat transport to serve.
            services: Clients for command bodies.
            register_builtins: Register the built-in commands.
            clock: Monotonic clock in seconds (tests inject a virtual one).
            sleep: Async sleep matching the clock.
        """
        self.config = config
        self.transport = transport
        self.services = services or BotServices(
            afk=AfkTracker(config.afk.resume_window_seconds, clock=clock) if config.afk.enabled else None
        )

        ms_clock = (lambda: clock() * 1000) if clock else None
        commands = config.commands

        self.registry = CommandRegistry(case_sensitive=commands.case_sensitive)
        self.privileges = PrivilegeTracker()
        self.cooldowns = CooldownTracker(max_entries=commands.cooldown_cache_size, clock=ms_clock)
        self.rate_limiter = (
            RateWindowLimiter(
                max_commands=commands.rate_limit.max_commands,
                window_ms=commands.rate_limit.window_ms,
                max_entries=commands.cooldown_cache_size,
                clock=ms_clock,
            )
            if commands.rate_limit.enabled
            else None
        )
        self.throttle = OutboundThrottle(
            sender=transport.send,
            privileges=self.privileges,
            config=ThrottleConfig(
                min_spacing_ms=config.outbound.min_spacing_ms,
                max_message_length=config.outbound.max_message_length,
            ),
            clock=clock,
            sleep=sleep,
        )
        self.dispatcher = CommandDispatcher(
            registry=self.registry,
            throttle=self.throttle,
            cooldowns=self.cooldowns,
            config=DispatchConfig(
                prefix=commands.prefix,
                cooldown_overrides=dict(commands.cooldowns),
                reply_on_cooldown=commands.reply_on_cooldown,
            ),
            rate_limiter=self.rate_limiter,
            services=self.services,
        )

        if register_builtins:
            register_builtin_commands(self.registry, config)

        self._accepting = True
        self._stopped = False
        self._in_flight: set[asyncio.Task] = set()
        self._messages_seen = 0

        transport.subscribe(self)

    # ChatEvents

    async def on_message(self, message: InboundMessage) -> None:
        if not self._accepting:
            return

        if message.user.login == self.transport.bot_login:
            self.privileges.update(message.channel, message.user.badges)
            return

        self._messages_seen += 1
        if not message.text.lstrip().startswith(self.config.commands.prefix):
            self._note_activity(message)
            return

        # Handlers may await delivery; never block the transport's read loop
        task = asyncio.create_task(
            self.dispatcher.handle(message.text, message.user, message.channel),
            name=f"command:{message.channel}:{message.user.login}",
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    def _note_activity(self, message: InboundMessage) -> None:
        """Announce a chatter coming back from AFK."""
        tracker = self.services.afk
        if tracker is None:
            return
        returned = tracker.come_back(message.channel, message.user.id)
        if returned is None:
            return

        status, away = returned
        logger.info(f"{message.user.login} is back in #{status.channel} after {away:.0f}s")
        self.throttle.enqueue(
            message.channel,
            f"@{message.user.display_name} is no longer {status.reason} (was away for {format_away(away)})",
        )

    async def on_self_state(self, channel: str, badges: frozenset[Badge]) -> None:
        self.privileges.update(channel, badges)

    async def on_join(self, channel: str) -> None:
        self.privileges.observe(channel)

    async def on_part(self, channel: str) -> None:
        self.privileges.forget(channel)

    async def on_connected(self) -> None:
        logger.info(f"{self.transport.name}: connected, {len(self.registry)} commands ready")

    async def on_disconnected(self) -> None:
        logger.warning(f"{self.transport.name}: disconnected")

    # Lifecycle

    async def run(self) -> None:
        """
        Serve until the transport stops, then shut down.

        On cancellation the transport keeps its connection until stop() has
        drained or discarded the queued replies.
        """
        logger.info(f"LunaBot starting on {self.transport.name}")
        serving = asyncio.create_task(self.transport.start(), name=f"transport:{self.transport.name}")
        try:
            await asyncio.shield(serving)
        except asyncio.CancelledError:
            logger.info("Shutdown requested")
            await self.stop()
            await asyncio.gather(serving, return_exceptions=True)
            raise
        finally:
            await self.stop()

    async def stop(self, drain: bool | None = None) -> None:
        """
        Shut down.

        Stops accepting inbound lines, waits for in-flight handlers, then
        drains or discards queued replies. Discarded replies resolve their
        delivery outcome to False.

        Args:
            drain: Deliver queued replies first; defaults to
                outbound.drain_on_shutdown.
        """
        if self._stopped:
            return
        self._stopped = True
        self._accepting = False

        if drain is None:
            drain = self.config.outbound.drain_on_shutdown
        timeout = self.config.outbound.shutdown_timeout_seconds

        if self._in_flight:
            logger.info(f"Waiting for {len(self._in_flight)} running commands")
            _, pending = await asyncio.wait(set(self._in_flight), timeout=timeout)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        await self.throttle.close(drain=drain, timeout=timeout)
        await self.transport.stop()
        await self.services.close()
        logger.info("LunaBot stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get bot statistics."""
        return {
            "transport": self.transport.name,
            "accepting": self._accepting,
            "messages_seen": self._messages_seen,
            "in_flight": len(self._in_flight),
            "privileges": self.privileges.get_stats(),
            "dispatcher": self.dispatcher.get_stats(),
        }

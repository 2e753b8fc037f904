"""
Command dispatcher for LunaBot.

Turns an inbound chat line into a gated command execution:
1. Parse the prefix and command token
2. Resolve the command (unknown tokens are ignored)
3. Check enabled, permission, cooldown and rate window
4. Run the handler with a context whose reply goes through the throttle
5. Convert any failure into a single chat reply
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger

from lunabot.core.commands import (
    Command,
    CommandContext,
    CommandRegistry,
    ParsedCommand,
    parse_command,
)
from lunabot.core.cooldown import CooldownTracker, RateWindowLimiter
from lunabot.core.errors import (
    CommandDisabled,
    CommandError,
    CooldownActive,
    HandlerFailure,
    PermissionDenied,
    RateLimited,
)
from lunabot.core.permissions import is_allowed
from lunabot.core.throttle import OutboundThrottle
from lunabot.utils.helpers import normalize_channel

if TYPE_CHECKING:
    from lunabot.bus.events import ChatUser


@dataclass
class DispatchConfig:
    """Configuration for the dispatcher."""
    prefix: str = "#"
    cooldown_overrides: dict[str, int] = field(default_factory=dict)
    reply_on_cooldown: bool = True  # False drops cooldown hits silently


class DispatchOutcome(str, Enum):
    """What happened to one inbound line."""
    IGNORED = "ignored"          # Not a command, or unknown command
    EXECUTED = "executed"
    FAILED = "failed"            # Handler raised or reported failure
    DISABLED = "disabled"
    DENIED = "denied"
    COOLDOWN = "cooldown"
    RATE_LIMITED = "rate_limited"


_OUTCOME_BY_ERROR: dict[type[CommandError], DispatchOutcome] = {
    CommandDisabled: DispatchOutcome.DISABLED,
    PermissionDenied: DispatchOutcome.DENIED,
    CooldownActive: DispatchOutcome.COOLDOWN,
    RateLimited: DispatchOutcome.RATE_LIMITED,
    HandlerFailure: DispatchOutcome.FAILED,
}


class CommandDispatcher:
    """
    Orchestrates command execution.

    Owns no long-lived state of its own: the registry, cooldown tracker,
    rate limiter and throttle are injected and each keeps its own maps.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        throttle: OutboundThrottle,
        cooldowns: CooldownTracker,
        config: DispatchConfig | None = None,
        rate_limiter: RateWindowLimiter | None = None,
        services: Any = None,
    ):
        self.registry = registry
        self.throttle = throttle
        self.cooldowns = cooldowns
        self.config = config or DispatchConfig()
        self.rate_limiter = rate_limiter
        self.services = services

        # Stats
        self._outcomes: Counter[str] = Counter()

    def parse(self, raw_line: str) -> ParsedCommand | None:
        """Split a line into command token and arguments, or None."""
        return parse_command(raw_line.strip(), self.config.prefix)

    def cooldown_for(self, command: Command) -> int:
        """Effective cooldown of a command, honouring configured overrides."""
        return self.registry.setting_for(command, self.config.cooldown_overrides, command.cooldown_ms)

    async def handle(self, raw_line: str, caller: "ChatUser", channel: str) -> DispatchOutcome:
        """
        Handle one inbound line.

        Never raises for per-invocation failures; they become a chat reply
        and an outcome.

        Args:
            raw_line: The chat text.
            caller: Who sent it.
            channel: Where it was sent.

        Returns:
            The dispatch outcome.
        """
        parsed = self.parse(raw_line)
        if parsed is None:
            return self._record(DispatchOutcome.IGNORED)

        command = self.registry.resolve(parsed.name)
        if command is None:
            logger.debug(f"Unknown command token: {parsed.name}")
            return self._record(DispatchOutcome.IGNORED)

        channel = normalize_channel(channel)

        try:
            self._authorize(command, caller)
        except CommandError as e:
            return self._reject(e, caller, channel)

        context = CommandContext(
            channel=channel,
            caller=caller,
            args=parsed.arguments,
            reply=lambda text: self.throttle.enqueue(channel, text),
            command=command,
            invoked_as=parsed.name,
            services=self.services,
        )

        logger.debug(f"Executing {command.name} for {caller.login} in #{channel}")
        try:
            result = await command.handler(context)
        except Exception as e:
            logger.exception(f"Command {command.name} failed for {caller.login} in #{channel}: {e}")
            return self._reject(HandlerFailure(command.name, e), caller, channel)

        if result is False:
            logger.debug(f"Command {command.name} reported failure")
            return self._record(DispatchOutcome.FAILED)

        return self._record(DispatchOutcome.EXECUTED)

    def _authorize(self, command: Command, caller: "ChatUser") -> None:
        """Run the gates in order; raise the first one that fails."""
        if not command.enabled:
            raise CommandDisabled(command.name)

        if not is_allowed(command, caller):
            raise PermissionDenied(command.name)

        cooldown = self.cooldowns.try_consume(command.name, caller.id, self.cooldown_for(command))
        if not cooldown.allowed:
            raise CooldownActive(command.name, cooldown.remaining_ms)

        if self.rate_limiter is not None:
            rate = self.rate_limiter.try_acquire(caller.id)
            if not rate.allowed:
                raise RateLimited(command.name, rate.retry_after_ms)

    def _reject(self, error: CommandError, caller: "ChatUser", channel: str) -> DispatchOutcome:
        outcome = _OUTCOME_BY_ERROR.get(type(error), DispatchOutcome.FAILED)

        if isinstance(error, CooldownActive) and not self.config.reply_on_cooldown:
            logger.debug(f"{error.command} on cooldown for {caller.login}, ignoring")
            return self._record(outcome)

        logger.debug(f"{error.command} rejected for {caller.login} in #{channel}: {outcome.value}")
        self.throttle.enqueue(channel, error.reply_text(caller))
        return self._record(outcome)

    def _record(self, outcome: DispatchOutcome) -> DispatchOutcome:
        self._outcomes[outcome.value] += 1
        return outcome

    def get_stats(self) -> dict[str, Any]:
        """Get dispatcher statistics."""
        return {
            "outcomes": dict(self._outcomes),
            "commands": self.registry.get_stats(),
            "cooldowns": self.cooldowns.get_stats(),
            "rate_limit": self.rate_limiter.get_stats() if self.rate_limiter else None,
            "throttle": self.throttle.get_stats(),
        }

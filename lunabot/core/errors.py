"""
Error taxonomy for the LunaBot command core.

Registration errors are fatal at startup. Per-invocation errors are
subclasses of CommandError and are turned into a single chat reply by the
dispatcher. DeliveryFailure is raised by transports and swallowed (logged)
by the outbound throttle.
"""

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lunabot.bus.events import ChatUser


class LunaBotError(Exception):
    """Base class for all LunaBot errors."""


class DuplicateCommand(LunaBotError):
    """A command name or alias is already registered."""

    def __init__(self, token: str, existing: str):
        self.token = token
        self.existing = existing
        super().__init__(f"'{token}' is already registered by command '{existing}'")


class CommandError(LunaBotError):
    """A command invocation failed; the caller gets a terse reply."""

    def __init__(self, command: str, message: str = ""):
        self.command = command
        super().__init__(message or self.__class__.__name__)

    def reply_text(self, caller: "ChatUser") -> str:
        return f"@{caller.display_name} {self}"


class PermissionDenied(CommandError):
    """Caller's role is below the command's required level."""

    def __init__(self, command: str):
        super().__init__(command, "You don't have permission to use this command.")


class CommandDisabled(CommandError):
    """The command is registered but switched off."""

    def __init__(self, command: str):
        super().__init__(command, "This command is currently disabled.")


class CooldownActive(CommandError):
    """The same caller used the same command too recently."""

    def __init__(self, command: str, remaining_ms: int):
        self.remaining_ms = remaining_ms
        seconds = max(1, math.ceil(remaining_ms / 1000))
        super().__init__(command, f"Command on cooldown. Try again in {seconds}s.")


class RateLimited(CommandError):
    """The caller exceeded the per-caller command rate window."""

    def __init__(self, command: str, retry_after_ms: int):
        self.retry_after_ms = retry_after_ms
        super().__init__(command, "You're using commands too quickly. Please wait a moment.")


class HandlerFailure(CommandError):
    """The command handler raised."""

    def __init__(self, command: str, cause: BaseException):
        self.cause = cause
        super().__init__(
            command,
            "An error occurred while executing the command. Please try again later.",
        )


class TransportError(LunaBotError):
    """The chat transport is unavailable or misbehaved."""


class DeliveryFailure(TransportError):
    """A single outbound message could not be sent."""

    def __init__(self, channel: str, cause: BaseException | str):
        self.channel = channel
        self.cause = cause
        super().__init__(f"Failed to deliver to #{channel}: {cause}")

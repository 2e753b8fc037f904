"""
Command dispatch and outbound rate-limiting core for LunaBot.

Provides:
- Command registry with aliases
- Role-based permission gate
- Per-caller cooldowns and rate windows
- Per-channel bot privilege tracking
- Paced, per-channel outbound reply queues
"""

from lunabot.core.badges import Badge, Role, parse_badges, role_for_badges, grants_bypass
from lunabot.core.commands import (
    Command,
    CommandContext,
    CommandRegistry,
    ParsedCommand,
    parse_command,
)
from lunabot.core.cooldown import CooldownTracker, RateWindowLimiter
from lunabot.core.dispatch import CommandDispatcher, DispatchConfig, DispatchOutcome
from lunabot.core.errors import (
    CommandDisabled,
    CommandError,
    CooldownActive,
    DeliveryFailure,
    DuplicateCommand,
    HandlerFailure,
    PermissionDenied,
    RateLimited,
)
from lunabot.core.permissions import PermissionDecision, check_permission
from lunabot.core.privilege import ChannelPrivilegeState, PrivilegeTracker
from lunabot.core.throttle import OutboundThrottle, QueuedReply, ThrottleConfig

__all__ = [
    # Badges
    "Badge",
    "Role",
    "parse_badges",
    "role_for_badges",
    "grants_bypass",
    # Commands
    "Command",
    "CommandContext",
    "CommandRegistry",
    "ParsedCommand",
    "parse_command",
    # Gates
    "PermissionDecision",
    "check_permission",
    "CooldownTracker",
    "RateWindowLimiter",
    # Outbound
    "ChannelPrivilegeState",
    "PrivilegeTracker",
    "OutboundThrottle",
    "QueuedReply",
    "ThrottleConfig",
    # Dispatch
    "CommandDispatcher",
    "DispatchConfig",
    "DispatchOutcome",
    # Errors
    "CommandDisabled",
    "CommandError",
    "CooldownActive",
    "DeliveryFailure",
    "DuplicateCommand",
    "HandlerFailure",
    "PermissionDenied",
    "RateLimited",
]

"""
Permission gate for LunaBot commands.

Maps a caller's badges to a role level and compares it against the level a
command requires. Pure functions, no state.
"""

from enum import Enum
from typing import TYPE_CHECKING

from lunabot.core.badges import Role

if TYPE_CHECKING:
    from lunabot.bus.events import ChatUser
    from lunabot.core.commands import Command


class PermissionDecision(str, Enum):
    """Result of a permission check."""
    ALLOW = "allow"
    DENY = "deny"


def caller_level(caller: "ChatUser") -> Role:
    """Effective level of a caller (maximum over their role badges)."""
    return caller.role


def check_permission(command: "Command", caller: "ChatUser") -> PermissionDecision:
    """
    Check whether a caller may invoke a command.

    Args:
        command: The resolved command.
        caller: The author of the inbound line.

    Returns:
        ALLOW if the caller's level is at least the command's required level.
    """
    if caller_level(caller) >= command.required_level:
        return PermissionDecision.ALLOW
    return PermissionDecision.DENY


def is_allowed(command: "Command", caller: "ChatUser") -> bool:
    """Shorthand for check_permission(...) == ALLOW."""
    return check_permission(command, caller) is PermissionDecision.ALLOW

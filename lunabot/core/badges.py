"""
Chat badges and role levels.

Badges are a finite tagged set. Everything derived from them (caller role,
bot rate-limit bypass) is a pure function over that set.
"""

from enum import Enum, IntEnum
from typing import Iterable, Mapping


class Badge(str, Enum):
    """Platform badges the bot cares about."""
    BROADCASTER = "broadcaster"
    MODERATOR = "moderator"
    VIP = "vip"
    SUBSCRIBER = "subscriber"
    FOUNDER = "founder"
    STAFF = "staff"
    ADMIN = "admin"
    PARTNER = "partner"
    TURBO = "turbo"
    PREMIUM = "premium"


class Role(IntEnum):
    """Ordered privilege levels."""
    VIEWER = 0
    SUBSCRIBER = 1
    VIP = 2
    MODERATOR = 3
    BROADCASTER = 4

    @classmethod
    def parse(cls, value: "str | int | Role") -> "Role":
        """Parse a role from a name ("moderator") or an ordinal."""
        if isinstance(value, Role):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown role: {value}") from None


# Badge -> the role it grants. Badges not listed grant nothing.
ROLE_BY_BADGE: dict[Badge, Role] = {
    Badge.BROADCASTER: Role.BROADCASTER,
    Badge.MODERATOR: Role.MODERATOR,
    Badge.VIP: Role.VIP,
    Badge.SUBSCRIBER: Role.SUBSCRIBER,
    Badge.FOUNDER: Role.SUBSCRIBER,
}

# Badges that lift the unprivileged outbound message cap.
BYPASS_BADGES = frozenset({Badge.BROADCASTER, Badge.MODERATOR, Badge.VIP})


def parse_badges(raw: str | Mapping[str, str] | Iterable[str] | None) -> frozenset[Badge]:
    """
    Parse platform badge data into a set of known badges.

    Accepts the IRC tag form ("moderator/1,subscriber/12"), a mapping of
    badge name to version, or an iterable of names. Unknown badges are
    dropped.

    Examples:
        "moderator/1,subscriber/6" -> {MODERATOR, SUBSCRIBER}
        {"vip": "1"} -> {VIP}
        "" -> {}
    """
    if not raw:
        return frozenset()

    if isinstance(raw, str):
        names = [part.split("/", 1)[0] for part in raw.split(",")]
    elif isinstance(raw, Mapping):
        names = list(raw.keys())
    else:
        names = list(raw)

    badges = set()
    for name in names:
        name = name.strip().lower()
        try:
            badges.add(Badge(name))
        except ValueError:
            continue
    return frozenset(badges)


def role_for_badges(badges: Iterable[Badge]) -> Role:
    """Highest role granted by any badge; VIEWER when none do."""
    return max(
        (ROLE_BY_BADGE[b] for b in badges if b in ROLE_BY_BADGE),
        default=Role.VIEWER,
    )


def grants_bypass(badges: Iterable[Badge]) -> bool:
    """True if the badges exempt their holder from the default outbound cap."""
    return not BYPASS_BADGES.isdisjoint(badges)

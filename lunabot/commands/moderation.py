"""
Moderation commands: timeout, ban, unban and vip.

Require the moderator role. Actions go through the Helix API with the
bot's own token, so the bot must be a moderator in the channel too.
"""

from lunabot.core.badges import Role
from lunabot.core.commands import Command, CommandContext
from lunabot.services.helix import HelixError

DEFAULT_TIMEOUT_SECONDS = 600
MAX_TIMEOUT_SECONDS = 1_209_600  # Two weeks, the Helix maximum

_VIP_ACTIONS = {"add": True, "+": True, "remove": False, "-": False}
_VIP_ALIASES = {"addvip": True, "removevip": False, "unvip": False}


def parse_duration(value: str) -> int | None:
    """
    Parse a timeout duration.

    Accepts plain seconds or a number with an s/m/h/d/w suffix.

    Returns:
        Seconds, or None if invalid or out of range.
    """
    units = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}
    value = value.strip().lower()
    if not value:
        return None

    multiplier = 1
    if value[-1] in units:
        multiplier = units[value[-1]]
        value = value[:-1]
    if not value.isdigit():
        return None

    seconds = int(value) * multiplier
    if not 1 <= seconds <= MAX_TIMEOUT_SECONDS:
        return None
    return seconds


def moderation_commands(prefix: str = "#", cooldown_ms: int = 0) -> list[Command]:
    """Build timeout, ban, unban and vip."""

    def _helix(ctx: CommandContext):
        helix = getattr(ctx.services, "helix", None)
        if helix is None:
            ctx.reply(f"@{ctx.caller.display_name} Moderation is not configured.")
        return helix

    async def handle_timeout(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        if not ctx.args:
            ctx.reply(f"@{user} Usage: {prefix}timeout <user> [duration] [reason]")
            return False

        target = ctx.args[0].lstrip("@")
        duration = DEFAULT_TIMEOUT_SECONDS
        reason_args = ctx.args[1:]
        if reason_args:
            parsed = parse_duration(reason_args[0])
            if parsed is not None:
                duration = parsed
                reason_args = reason_args[1:]

        helix = _helix(ctx)
        if helix is None:
            return False
        try:
            await helix.ban(ctx.channel, target, duration=duration, reason=" ".join(reason_args))
        except HelixError as e:
            ctx.reply(f"@{user} Failed to time out {target}: {e}")
            return False

        ctx.reply(f"@{user} {target} has been timed out for {duration}s.")
        return True

    async def handle_ban(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        if not ctx.args:
            ctx.reply(f"@{user} Usage: {prefix}ban <user> [reason]")
            return False

        target = ctx.args[0].lstrip("@")
        helix = _helix(ctx)
        if helix is None:
            return False
        try:
            await helix.ban(ctx.channel, target, reason=" ".join(ctx.args[1:]))
        except HelixError as e:
            ctx.reply(f"@{user} Failed to ban {target}: {e}")
            return False

        ctx.reply(f"@{user} {target} has been banned.")
        return True

    async def handle_unban(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        if not ctx.args:
            ctx.reply(f"@{user} Usage: {prefix}unban <user>")
            return False

        target = ctx.args[0].lstrip("@")
        helix = _helix(ctx)
        if helix is None:
            return False
        try:
            await helix.unban(ctx.channel, target)
        except HelixError as e:
            ctx.reply(f"@{user} Failed to unban {target}: {e}")
            return False

        ctx.reply(f"@{user} {target} has been unbanned.")
        return True

    async def handle_vip(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        invoked = ctx.invoked_as.casefold()

        if invoked in _VIP_ALIASES:
            add = _VIP_ALIASES[invoked]
            target = ctx.arg
        else:
            add = _VIP_ACTIONS.get(ctx.arg.lower())
            target = ctx.args[1] if len(ctx.args) > 1 else ""

        if add is None or not target:
            ctx.reply(f"@{user} Usage: {prefix}vip <add|remove> <user>")
            return False

        target = target.lstrip("@")
        helix = _helix(ctx)
        if helix is None:
            return False
        try:
            if add:
                await helix.add_vip(ctx.channel, target)
            else:
                await helix.remove_vip(ctx.channel, target)
        except HelixError as e:
            ctx.reply(f"@{user} Failed to change VIP status of {target}: {e}")
            return False

        if add:
            ctx.reply(f"@{user} added VIP status to {target}.")
        else:
            ctx.reply(f"@{user} removed VIP status from {target}.")
        return True

    common = dict(required_level=Role.MODERATOR, cooldown_ms=cooldown_ms, category="Moderation")
    return [
        Command(
            name="timeout",
            handler=handle_timeout,
            description="Time out a user.",
            usage=f"{prefix}timeout <user> [duration] [reason]",
            **common,
        ),
        Command(
            name="ban",
            handler=handle_ban,
            description="Ban a user.",
            usage=f"{prefix}ban <user> [reason]",
            **common,
        ),
        Command(
            name="unban",
            handler=handle_unban,
            description="Lift a ban or timeout.",
            usage=f"{prefix}unban <user>",
            **common,
        ),
        Command(
            name="vip",
            handler=handle_vip,
            aliases=frozenset(_VIP_ALIASES),
            description="Add or remove a VIP.",
            usage=f"{prefix}vip <add|remove> <user>",
            **common,
        ),
    ]

"""
7TV emote commands.

#7tv searches all of 7TV; #emote looks a name up in the current
channel's emote set, which needs the Helix client to find the channel's
Twitch id.
"""

from loguru import logger

from lunabot.core.commands import Command, CommandContext
from lunabot.services.helix import HelixError
from lunabot.services.seventv import SevenTvError

MAX_RESULTS = 5

_SEARCH_MODES = ("search", "animated", "zero", "trending")


def emote_commands(prefix: str = "#", cooldown_ms: int = 3000) -> list[Command]:
    """Build 7tv and emote."""

    async def handle_7tv(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        mode = ctx.arg.lower()
        query = " ".join(ctx.args[1:])
        if mode not in _SEARCH_MODES or not query:
            ctx.reply(f"@{user} Usage: {prefix}7tv <{'|'.join(_SEARCH_MODES)}> <query>")
            return False

        client = getattr(ctx.services, "seventv", None)
        if client is None:
            ctx.reply(f"@{user} 7TV is not configured.")
            return False

        try:
            emotes = await client.search(query, trending=mode == "trending")
        except SevenTvError as e:
            ctx.reply(f"@{user} {e}")
            return False

        if mode == "animated":
            emotes = [e for e in emotes if e.animated]
        elif mode == "zero":
            emotes = [e for e in emotes if e.zero_width]

        if not emotes:
            kind = {"animated": "animated ", "zero": "zero-width ", "trending": "trending "}.get(mode, "")
            ctx.reply(f'@{user} No {kind}emotes found for "{query}"')
            return False

        emotes = emotes[:MAX_RESULTS]
        if mode == "search":
            found = " | ".join(f"{e.name} - {e.page_url}" for e in emotes)
            ctx.reply(f"@{user} Found: {found}")
        else:
            label = {"animated": "Animated", "zero": "Zero-width", "trending": "Trending"}[mode]
            ctx.reply(f"@{user} {label} emotes: {', '.join(e.name for e in emotes)}")
        return True

    async def handle_emote(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        if not ctx.args:
            ctx.reply(f"@{user} Usage: {prefix}emote <name>")
            return False

        seventv = getattr(ctx.services, "seventv", None)
        helix = getattr(ctx.services, "helix", None)
        if seventv is None or helix is None:
            ctx.reply(f"@{user} Emote lookup is not configured.")
            return False

        name = ctx.arg
        try:
            channel_id = await helix.get_user_id(ctx.channel)
            emote = await seventv.find_channel_emote(channel_id, name)
            if emote is None:
                ctx.reply(f'@{user} No emote found matching "{name}"')
                return False

            added_by = "Unknown"
            if emote.actor_id:
                added_by = await seventv.user_display_name(emote.actor_id)
        except (HelixError, SevenTvError) as e:
            logger.warning(f"Emote lookup for {name!r} in #{ctx.channel} failed: {e}")
            ctx.reply(f"@{user} {e}")
            return False

        shown = emote.name
        if emote.original_name and emote.original_name != emote.name:
            shown += f" [{emote.original_name}]"
        ctx.reply(f"@{user} {shown} • Added by: {added_by} • {emote.page_url}")
        return True

    return [
        Command(
            name="7tv",
            handler=handle_7tv,
            aliases=frozenset({"seventv"}),
            cooldown_ms=cooldown_ms,
            description="Search 7TV emotes.",
            usage=f"{prefix}7tv <search|animated|zero|trending> <query>",
            category="Emotes",
        ),
        Command(
            name="emote",
            handler=handle_emote,
            aliases=frozenset({"emotes"}),
            cooldown_ms=cooldown_ms,
            description="Show who added a channel emote.",
            usage=f"{prefix}emote <name>",
            category="Emotes",
        ),
    ]

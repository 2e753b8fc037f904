"""Steam lookup command."""

from lunabot.core.commands import Command, CommandContext
from lunabot.services.steam import SteamError


def steam_commands(prefix: str = "#", cooldown_ms: int = 3000) -> list[Command]:
    async def handle_steam(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        if not ctx.args:
            ctx.reply(f"@{user} Usage: {prefix}steam <user or game>")
            return False

        client = getattr(ctx.services, "steam", None)
        if client is None:
            ctx.reply(f"@{user} Steam is not configured.")
            return False

        try:
            answer = await client.lookup(ctx.args_str)
        except SteamError as e:
            ctx.reply(f"@{user} {e}")
            return False

        ctx.reply(f"@{user} {answer}")
        return True

    return [
        Command(
            name="steam",
            handler=handle_steam,
            aliases=frozenset({"game", "steamgame"}),
            cooldown_ms=cooldown_ms,
            description="Look up a Steam user or game.",
            usage=f"{prefix}steam <user or game>",
            category="Gaming",
        ),
    ]

"""AFK commands: afk and its flavours, plus rafk to resume."""

from lunabot.core.commands import Command, CommandContext

# name -> (status shown in chat, aliases)
AFK_KINDS: dict[str, tuple[str, frozenset[str]]] = {
    "afk": ("AFK", frozenset({"away"})),
    "sleep": ("sleeping", frozenset({"gn", "bed", "bedge"})),
    "work": ("working", frozenset({"working"})),
    "food": ("eating", frozenset({"eating"})),
    "gaming": ("gaming", frozenset()),
}


def afk_commands(prefix: str = "#", cooldown_ms: int = 3000) -> list[Command]:
    """Build the AFK commands. Returning from AFK is detected by the bot on plain chat lines."""

    def _tracker(ctx: CommandContext):
        tracker = getattr(ctx.services, "afk", None)
        if tracker is None:
            ctx.reply(f"@{ctx.caller.display_name} AFK is not enabled.")
        return tracker

    def make_handler(status_text: str):
        async def handle_afk(ctx: CommandContext) -> bool:
            tracker = _tracker(ctx)
            if tracker is None:
                return False

            user = ctx.caller.display_name
            current = tracker.get(ctx.channel, ctx.caller.id)
            if current is not None:
                ctx.reply(f"@{user}, you are already AFK: {current.reason}")
                return False

            reason = f"{status_text} • {ctx.args_str}" if ctx.args else status_text
            tracker.go_afk(ctx.channel, ctx.caller.id, ctx.caller.login, reason)
            ctx.reply(f"@{user} is now {reason}")
            return True

        return handle_afk

    async def handle_rafk(ctx: CommandContext) -> bool:
        tracker = _tracker(ctx)
        if tracker is None:
            return False

        user = ctx.caller.display_name
        status = tracker.resume(ctx.channel, ctx.caller.id)
        if status is None:
            ctx.reply(f"@{user}, you don't have any recent AFK status to resume.")
            return False

        ctx.reply(f"@{user} is now {status.reason}")
        return True

    commands = [
        Command(
            name=name,
            handler=make_handler(status_text),
            aliases=aliases,
            cooldown_ms=cooldown_ms,
            description=f"Mark yourself as {status_text}.",
            usage=f"{prefix}{name} [message]",
            category="User",
        )
        for name, (status_text, aliases) in AFK_KINDS.items()
    ]
    commands.append(Command(
        name="rafk",
        handler=handle_rafk,
        cooldown_ms=cooldown_ms,
        description="Resume your last AFK status.",
        usage=f"{prefix}rafk",
        category="User",
    ))
    return commands

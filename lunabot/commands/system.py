"""System commands: ping and help."""

import time

from loguru import logger

from lunabot.core.commands import Command, CommandContext, CommandRegistry


def system_commands(registry: CommandRegistry, prefix: str = "#", cooldown_ms: int = 3000) -> list[Command]:
    """Build ping and help. Help reads the live registry, so it sees every command."""

    async def handle_ping(ctx: CommandContext) -> None:
        started = time.monotonic()
        delivered = await ctx.reply(f"@{ctx.caller.display_name} Pong!")
        if delivered:
            # Includes time spent waiting in the outbound queue
            logger.debug(f"Pong delivered to #{ctx.channel} after {(time.monotonic() - started) * 1000:.0f}ms")

    async def handle_help(ctx: CommandContext) -> None:
        ctx.reply(f"@{ctx.caller.display_name} {registry.get_help(ctx.arg, prefix)}")

    return [
        Command(
            name="ping",
            handler=handle_ping,
            aliases=frozenset({"pong", "latency"}),
            cooldown_ms=cooldown_ms,
            description="Check that the bot is alive.",
            usage=f"{prefix}ping",
            category="System",
        ),
        Command(
            name="help",
            handler=handle_help,
            aliases=frozenset({"commands"}),
            cooldown_ms=cooldown_ms,
            description="List commands or show how to use one.",
            usage=f"{prefix}help [command]",
            category="System",
        ),
    ]

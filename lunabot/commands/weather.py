"""Weather command."""

from lunabot.core.commands import Command, CommandContext
from lunabot.services.weather import WeatherError


def weather_commands(prefix: str = "#", cooldown_ms: int = 3000) -> list[Command]:
    async def handle_weather(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        if not ctx.args:
            ctx.reply(f"@{user} Usage: {prefix}weather <location>")
            return False

        client = getattr(ctx.services, "weather", None)
        if client is None:
            ctx.reply(f"@{user} Weather is not configured.")
            return False

        try:
            report = await client.current(ctx.args_str)
        except WeatherError as e:
            ctx.reply(f"@{user} {e}")
            return False

        ctx.reply(f"@{user} {report.format()}")
        return True

    return [
        Command(
            name="weather",
            handler=handle_weather,
            aliases=frozenset({"w"}),
            cooldown_ms=cooldown_ms,
            description="Current weather for a location.",
            usage=f"{prefix}weather <location>",
            category="Utility",
        ),
    ]

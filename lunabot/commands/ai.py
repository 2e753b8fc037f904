"""AI chat commands backed by the LiteLLM completion provider."""

from loguru import logger

from lunabot.config.schema import AIConfig
from lunabot.core.commands import Command, CommandContext, CommandHandler


def _single_line(text: str) -> str:
    return " ".join(text.split())


def _make_handler(model: str, label: str, prefix: str, name: str) -> CommandHandler:
    async def handle(ctx: CommandContext) -> bool:
        user = ctx.caller.display_name
        if not ctx.args:
            ctx.reply(f"@{user} Usage: {prefix}{name} <question>")
            return False

        llm = getattr(ctx.services, "llm", None)
        if llm is None:
            ctx.reply(f"@{user} {label} is not configured.")
            return False

        result = await llm.complete(ctx.args_str, model=model)
        if not result.ok:
            logger.warning(f"{label} completion failed for {ctx.caller.login}: {result.content}")
            ctx.reply(f"@{user} {label} is unavailable right now. Please try again later.")
            return False

        ctx.reply(f"@{user} {_single_line(result.content or '')}")
        return True

    return handle


def ai_commands(config: AIConfig, prefix: str = "#") -> list[Command]:
    """Build gpt and claude."""
    return [
        Command(
            name="gpt",
            handler=_make_handler(config.gpt_model, "GPT", prefix, "gpt"),
            aliases=frozenset({"ask"}),
            cooldown_ms=config.cooldown_ms,
            description="Ask GPT a question.",
            usage=f"{prefix}gpt <question>",
            category="AI",
        ),
        Command(
            name="claude",
            handler=_make_handler(config.claude_model, "Claude", prefix, "claude"),
            cooldown_ms=config.cooldown_ms,
            description="Ask Claude a question.",
            usage=f"{prefix}claude <question>",
            category="AI",
        ),
    ]

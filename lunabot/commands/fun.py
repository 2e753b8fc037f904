"""Fun commands: coin flips, dice and ratings."""

import random
import re

from lunabot.core.commands import Command, CommandContext

MAX_DICE = 10
MIN_SIDES = 2
MAX_SIDES = 100

_DICE_PATTERN = re.compile(r"^(?:(\d+)?d)?(\d+)$", re.IGNORECASE)


def parse_dice(spec: str) -> tuple[int, int] | None:
    """
    Parse a dice expression.

    Examples:
        "" -> (1, 6)
        "20" -> (1, 20)
        "2d6" -> (2, 6)
        "d8" -> (1, 8)
        "11d6" -> None (too many dice)

    Returns:
        (count, sides) or None if the expression is invalid or out of range.
    """
    if not spec:
        return 1, 6

    match = _DICE_PATTERN.match(spec.strip())
    if not match:
        return None

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    if not 1 <= count <= MAX_DICE or not MIN_SIDES <= sides <= MAX_SIDES:
        return None
    return count, sides


def fun_commands(
    prefix: str = "#",
    cooldown_ms: int = 3000,
    rng: random.Random | None = None,
) -> list[Command]:
    """Build coin, roll and rate."""
    rng = rng or random.Random()

    async def handle_coin(ctx: CommandContext) -> None:
        side = rng.choice(["Heads", "Tails"])
        ctx.reply(f"@{ctx.caller.display_name} flipped a coin: {side}!")

    async def handle_roll(ctx: CommandContext) -> bool:
        dice = parse_dice(ctx.arg)
        if dice is None:
            ctx.reply(
                f"@{ctx.caller.display_name} Usage: {prefix}roll [XdY] "
                f"(1-{MAX_DICE} dice, {MIN_SIDES}-{MAX_SIDES} sides)"
            )
            return False

        count, sides = dice
        rolls = [rng.randint(1, sides) for _ in range(count)]
        if count == 1:
            ctx.reply(f"@{ctx.caller.display_name} rolled a d{sides}: {rolls[0]}")
        else:
            detail = " + ".join(str(r) for r in rolls)
            ctx.reply(f"@{ctx.caller.display_name} rolled {count}d{sides}: {detail} = {sum(rolls)}")
        return True

    async def handle_rate(ctx: CommandContext) -> None:
        target = ctx.arg.lstrip("@") or ctx.caller.display_name
        ctx.reply(f"@{ctx.caller.display_name} I'd rate {target} {rng.randint(0, 100)}% cute")

    return [
        Command(
            name="coin",
            handler=handle_coin,
            aliases=frozenset({"flip", "coinflip"}),
            cooldown_ms=cooldown_ms,
            description="Flip a coin.",
            usage=f"{prefix}coin",
            category="Fun",
        ),
        Command(
            name="roll",
            handler=handle_roll,
            aliases=frozenset({"dice"}),
            cooldown_ms=cooldown_ms,
            description="Roll dice.",
            usage=f"{prefix}roll [XdY]",
            category="Fun",
        ),
        Command(
            name="rate",
            handler=handle_rate,
            aliases=frozenset({"cute"}),
            cooldown_ms=cooldown_ms,
            description="Rate someone's cuteness.",
            usage=f"{prefix}rate [user]",
            category="Fun",
        ),
    ]

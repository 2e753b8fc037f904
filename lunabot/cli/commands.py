"""CLI commands for LunaBot."""

import asyncio
import sys

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from lunabot import __logo__, __version__

app = typer.Typer(
    name="lunabot",
    help=f"{__logo__} LunaBot - Twitch chat command bot",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} LunaBot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """LunaBot - Twitch chat command bot."""
    pass


def _setup_logging(config, verbose: bool = False) -> None:
    """Configure loguru sinks from the logging config section."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else config.logging.level)
    if config.logging.file:
        logger.add(
            config.logging.file,
            level="DEBUG",
            rotation=config.logging.rotation,
            retention=config.logging.retention,
        )


def _load_config_or_exit():
    from pydantic import ValidationError

    from lunabot.config.loader import get_config_path, load_config

    try:
        return load_config()
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid config at {get_config_path()}:[/red]\n{e}")
        raise typer.Exit(1)


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard():
    """Write a default LunaBot configuration."""
    from lunabot.config.loader import get_config_path, save_config
    from lunabot.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]✓[/green] Created config at {config_path}")

    console.print(f"\n{__logo__} LunaBot is ready!")
    console.print("\nNext steps:")
    console.print(f"  1. Set [cyan]twitch.username[/cyan], [cyan]twitch.oauthToken[/cyan] and [cyan]twitch.channels[/cyan] in {config_path}")
    console.print("  2. Try commands offline: [cyan]lunabot console[/cyan]")
    console.print("  3. Go live: [cyan]lunabot run[/cyan]")


# ============================================================================
# Status
# ============================================================================


@app.command()
def status():
    """Show LunaBot status."""
    from lunabot.config.loader import get_config_path

    config_path = get_config_path()
    console.print(f"{__logo__} LunaBot Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")

    config = _load_config_or_exit()

    console.print(f"\n[bold]Twitch:[/bold]")
    console.print(f"  Account: {config.twitch.username or '[dim]not set[/dim]'}")
    console.print(f"  Token: {'[green]✓[/green]' if config.twitch.oauth_token else '[dim]not set[/dim]'}")
    channels = ", ".join(f"#{c}" for c in config.twitch.channels) or "[dim]none[/dim]"
    console.print(f"  Channels: {channels}")

    console.print(f"\n[bold]Services:[/bold]")
    console.print(f"  AI: {'[green]✓ ' + config.ai.gpt_model + '[/green]' if config.has_ai else '[dim]not set[/dim]'}")
    console.print(f"  Weather: {'[green]✓[/green]' if config.has_weather else '[dim]not set[/dim]'}")
    console.print(f"  Steam: {'[green]✓[/green]' if config.has_steam else '[dim]not set[/dim]'}")
    console.print(f"  7TV: {'[green]✓[/green]' if config.seventv.enabled else '[dim]disabled[/dim]'}")
    console.print(f"  AFK: {'[green]✓[/green]' if config.afk.enabled else '[dim]disabled[/dim]'}")
    console.print(f"  Moderation: {'[green]✓[/green]' if config.has_moderation else '[dim]not set[/dim]'}")

    console.print(f"\n[bold]Limits:[/bold]")
    console.print(f"  Prefix: {config.commands.prefix}")
    console.print(f"  Default cooldown: {config.commands.default_cooldown_ms}ms")
    console.print(f"  Outbound spacing: {config.outbound.min_spacing_ms}ms")
    rate = config.commands.rate_limit
    if rate.enabled:
        console.print(f"  Rate limit: {rate.max_commands} per {rate.window_ms}ms")
    else:
        console.print("  Rate limit: [dim]disabled[/dim]")


# ============================================================================
# Commands
# ============================================================================


@app.command("commands")
def list_commands(
    all_: bool = typer.Option(False, "--all", "-a", help="Include hidden commands"),
):
    """List the commands the bot would register."""
    from lunabot.commands import register_builtin_commands
    from lunabot.core.commands import CommandRegistry

    config = _load_config_or_exit()
    logger.disable("lunabot")

    registry = CommandRegistry(case_sensitive=config.commands.case_sensitive)
    register_builtin_commands(registry, config)
    cooldowns = config.commands.cooldowns

    table = Table(title="Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Aliases")
    table.add_column("Level")
    table.add_column("Cooldown")
    table.add_column("Category")
    table.add_column("Description")

    prefix = config.commands.prefix
    for cmd in registry.commands(include_hidden=all_):
        name = f"{prefix}{cmd.name}" if cmd.enabled else f"[dim]{prefix}{cmd.name} (disabled)[/dim]"
        table.add_row(
            name,
            ", ".join(sorted(cmd.aliases)) or "-",
            cmd.required_level.name.lower(),
            f"{registry.setting_for(cmd, cooldowns, cmd.cooldown_ms) / 1000:g}s",
            cmd.category,
            cmd.description,
        )

    console.print(table)


# ============================================================================
# Run
# ============================================================================


@app.command()
def run(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Connect to Twitch chat and serve commands."""
    from lunabot.bot import ChatBot
    from lunabot.channels.twitch import TwitchTransport
    from lunabot.services import BotServices

    config = _load_config_or_exit()
    _setup_logging(config, verbose)

    if not config.has_twitch_credentials:
        console.print("[red]Error: Twitch username and OAuth token are not configured.[/red]")
        console.print("Set twitch.username and twitch.oauthToken in ~/.lunabot/config.json")
        raise typer.Exit(1)
    if not config.twitch.channels:
        console.print("[yellow]Warning: No channels configured[/yellow]")

    console.print(f"{__logo__} Starting LunaBot as {config.twitch.username}...")

    async def serve():
        bot = ChatBot(config, TwitchTransport(config.twitch), BotServices.from_config(config))
        await bot.run()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        console.print("\nShutting down...")


@app.command("console")
def console_chat(
    role: str = typer.Option("viewer", "--role", "-r", help="Your role: viewer, subscriber, vip, moderator, broadcaster"),
    privileged: bool = typer.Option(False, "--privileged", "-p", help="Bot is a moderator (no outbound spacing)"),
    channel: str = typer.Option("console", "--channel", "-c", help="Channel name"),
    user: str = typer.Option("you", "--user", "-u", help="Your chat login"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Chat with the bot from the terminal."""
    from lunabot.bot import ChatBot
    from lunabot.channels.console import ConsoleTransport
    from lunabot.core.badges import Role
    from lunabot.services import BotServices

    try:
        user_role = Role.parse(role)
    except ValueError:
        console.print(f"[red]Unknown role: {role}[/red]")
        raise typer.Exit(1)

    config = _load_config_or_exit()
    _setup_logging(config, verbose)

    console.print(f"{__logo__} Console chat (type [cyan]exit[/cyan] to quit, prefix is [cyan]{config.commands.prefix}[/cyan])\n")

    transport = ConsoleTransport(
        channel=channel,
        user_login=user,
        role=user_role,
        privileged=privileged,
        console=console,
    )

    async def serve():
        await ChatBot(config, transport, BotServices.from_config(config)).run()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        console.print("\nGoodbye!")


if __name__ == "__main__":
    app()

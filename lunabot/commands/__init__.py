"""Built-in chat commands."""

from dataclasses import replace

from loguru import logger

from lunabot.commands.afk import afk_commands
from lunabot.commands.ai import ai_commands
from lunabot.commands.emote import emote_commands
from lunabot.commands.fun import fun_commands
from lunabot.commands.moderation import moderation_commands
from lunabot.commands.steam import steam_commands
from lunabot.commands.system import system_commands
from lunabot.commands.weather import weather_commands
from lunabot.config.schema import Config
from lunabot.core.commands import Command, CommandRegistry


def builtin_commands(registry: CommandRegistry, config: Config) -> list[Command]:
    """
    Build the built-in commands for a configuration.

    AI, weather, Steam and moderation commands are only included when their
    credentials are configured. The 7TV search and AFK commands need no
    credentials and follow their enabled flags; the channel emote lookup
    also needs the Helix credentials.
    """
    prefix = config.commands.prefix
    cooldown = config.commands.default_cooldown_ms

    commands = system_commands(registry, prefix, cooldown) + fun_commands(prefix, cooldown)
    if config.afk.enabled:
        commands += afk_commands(prefix, cooldown)
    if config.has_ai:
        commands += ai_commands(config.ai, prefix)
    if config.has_weather:
        commands += weather_commands(prefix, cooldown)
    if config.has_steam:
        commands += steam_commands(prefix, cooldown)
    if config.seventv.enabled:
        emotes = emote_commands(prefix, cooldown)
        commands += emotes if config.has_moderation else [c for c in emotes if c.name != "emote"]
    if config.has_moderation:
        commands += moderation_commands(prefix)
    return commands


def register_builtin_commands(registry: CommandRegistry, config: Config) -> int:
    """
    Register the built-in commands, applying the configured disabled list.

    Returns:
        Number of commands registered.

    Raises:
        DuplicateCommand: If a name or alias clashes.
    """
    disabled = {name.lower() for name in config.commands.disabled}

    count = 0
    for command in builtin_commands(registry, config):
        if command.name.lower() in disabled:
            command = replace(command, enabled=False)
            logger.info(f"Command {command.name} is disabled")
        registry.register(command)
        count += 1

    logger.info(f"Registered {count} commands")
    return count


__all__ = ["builtin_commands", "register_builtin_commands"]

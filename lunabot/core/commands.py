"""
Command definitions, parsing and the command registry for LunaBot.

Supports:
- Prefixed commands ("#roll 2d6")
- Aliases resolving to a canonical name
- Configurable case sensitivity
- Help text and usage metadata
"""

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from loguru import logger

from lunabot.core.badges import Role
from lunabot.core.errors import DuplicateCommand

if TYPE_CHECKING:
    from lunabot.bus.events import ChatUser


# Reply sink handed to handlers. The returned future resolves to the
# delivery outcome (True once sent, False if the send failed or was dropped).
ReplyFunc = Callable[[str], "asyncio.Future[bool]"]


@dataclass
class CommandContext:
    """Everything a handler gets to see about one invocation."""
    channel: str
    caller: "ChatUser"
    args: list[str]
    reply: ReplyFunc
    command: "Command"
    invoked_as: str = ""
    services: Any = None

    @property
    def arg(self) -> str:
        """First argument or empty string."""
        return self.args[0] if self.args else ""

    @property
    def args_str(self) -> str:
        """All arguments as a single string."""
        return " ".join(self.args)


# Handlers return False to signal a handled failure; None or True is success.
CommandHandler = Callable[[CommandContext], Awaitable[bool | None]]


@dataclass(frozen=True)
class Command:
    """A registered command and its policy metadata."""
    name: str
    handler: CommandHandler
    aliases: frozenset[str] = frozenset()
    required_level: Role = Role.VIEWER
    cooldown_ms: int = 3000
    enabled: bool = True
    description: str = ""
    usage: str = ""
    category: str = "General"
    hidden: bool = False

    def __post_init__(self) -> None:
        if not self.name or any(c.isspace() for c in self.name):
            raise ValueError(f"Invalid command name: {self.name!r}")
        if self.cooldown_ms < 0:
            raise ValueError(f"cooldown_ms must be non-negative, got {self.cooldown_ms}")
        object.__setattr__(self, "aliases", frozenset(self.aliases))
        object.__setattr__(self, "required_level", Role.parse(self.required_level))


@dataclass
class ParsedCommand:
    """A command line split into its token and arguments."""
    name: str
    arguments: list[str] = field(default_factory=list)
    raw: str = ""

    @property
    def arg(self) -> str:
        """Get first argument or empty string."""
        return self.arguments[0] if self.arguments else ""

    @property
    def args_str(self) -> str:
        """Get all arguments as a single string."""
        return " ".join(self.arguments)


def parse_command(text: str, prefix: str = "#") -> ParsedCommand | None:
    """
    Parse a single command from a chat line.

    The command token is kept as typed; case folding is the registry's job.

    Examples:
        #help -> ParsedCommand(name="help")
        #roll 2d6 -> ParsedCommand(name="roll", arguments=["2d6"])
        "# roll" -> None (no token directly after the prefix)
        "hello" -> None

    Args:
        text: A raw chat line.
        prefix: The command prefix.

    Returns:
        Parsed command or None if the line is not a command.
    """
    if not prefix or not text.startswith(prefix):
        return None

    body = text[len(prefix):]
    if not body or body[0].isspace():
        return None

    parts = body.split()
    return ParsedCommand(name=parts[0], arguments=parts[1:], raw=text)


class CommandRegistry:
    """
    Registry of commands.

    Owns the name -> command table and the alias -> name table. Names and
    aliases share one namespace: no two commands may claim the same token.
    Registered commands are immutable; changing one means re-registering at
    startup.
    """

    def __init__(self, case_sensitive: bool = False):
        self.case_sensitive = case_sensitive
        self._commands: dict[str, Command] = {}
        self._aliases: dict[str, str] = {}

    def _fold(self, token: str) -> str:
        return token if self.case_sensitive else token.casefold()

    def setting_for(self, command: Command, settings: dict[str, int], default: int) -> int:
        """Look up a per-command setting keyed by name, folded like command tokens."""
        name = self._fold(command.name)
        for key, value in settings.items():
            if self._fold(key) == name:
                return value
        return default

    def register(self, command: Command) -> Command:
        """
        Register a command.

        Args:
            command: The command to add.

        Returns:
            The registered command.

        Raises:
            DuplicateCommand: If the name or any alias is already taken.
        """
        name = self._fold(command.name)
        aliases = {self._fold(a) for a in command.aliases} - {name}

        # Validate everything before touching the tables
        for token in (name, *sorted(aliases)):
            owner = self._owner_of(token)
            if owner is not None:
                raise DuplicateCommand(token, owner)

        self._commands[name] = command
        for alias in aliases:
            self._aliases[alias] = name

        logger.debug(f"Registered command: {name} (aliases: {sorted(aliases) or '-'})")
        return command

    def _owner_of(self, token: str) -> str | None:
        if token in self._commands:
            return self._commands[token].name
        canonical = self._aliases.get(token)
        if canonical is not None:
            return self._commands[canonical].name
        return None

    def resolve(self, token: str) -> Command | None:
        """
        Resolve a token to a command by name or alias.

        Unknown tokens return None; they are not an error.
        """
        key = self._fold(token)
        command = self._commands.get(key)
        if command is not None:
            return command
        canonical = self._aliases.get(key)
        if canonical is not None:
            return self._commands.get(canonical)
        return None

    def __contains__(self, token: str) -> bool:
        return self.resolve(token) is not None

    def __len__(self) -> int:
        return len(self._commands)

    def commands(self, include_hidden: bool = True) -> list[Command]:
        """All registered commands sorted by name."""
        return [
            cmd for _, cmd in sorted(self._commands.items())
            if include_hidden or not cmd.hidden
        ]

    def get_help(self, token: str = "", prefix: str = "#") -> str:
        """Get help text for a command or a one-line list of all visible ones."""
        if token:
            command = self.resolve(token.removeprefix(prefix))
            if command is None or command.hidden:
                return f"No help for: {token}"
            usage = command.usage or f"{prefix}{command.name}"
            text = f"{prefix}{command.name}: {command.description or 'No description'} Usage: {usage}"
            if command.aliases:
                text += f" Aliases: {', '.join(sorted(command.aliases))}"
            return text

        names = [f"{prefix}{cmd.name}" for cmd in self.commands(include_hidden=False)]
        return "Available commands: " + ", ".join(names)

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics."""
        return {
            "commands": len(self._commands),
            "aliases": len(self._aliases),
            "disabled": sum(1 for c in self._commands.values() if not c.enabled),
        }

"""
IRCv3 line parsing for Twitch chat.

Format: [@tags] [:prefix] COMMAND [params...] [:trailing]
"""

from dataclasses import dataclass, field

_TAG_ESCAPES = {
    ":": ";",
    "s": " ",
    "\\": "\\",
    "r": "\r",
    "n": "\n",
}


def unescape_tag_value(value: str) -> str:
    """Undo IRCv3 tag value escaping."""
    if "\\" not in value:
        return value
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            nxt = value[i + 1]
            out.append(_TAG_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        if ch != "\\":
            out.append(ch)
        i += 1
    return "".join(out)


@dataclass
class IrcMessage:
    """One parsed IRC line."""
    command: str
    params: list[str] = field(default_factory=list)
    prefix: str = ""
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str:
        """Nickname part of the prefix ("nick!user@host" -> "nick")."""
        return self.prefix.split("!", 1)[0].split("@", 1)[0]

    @property
    def channel(self) -> str:
        """First parameter when it names a channel, without the '#'."""
        if self.params and self.params[0].startswith("#"):
            return self.params[0][1:]
        return ""

    @property
    def trailing(self) -> str:
        return self.params[-1] if self.params else ""


def parse_irc_line(line: str) -> IrcMessage | None:
    """
    Parse a single IRC line.

    Examples:
        "PING :tmi.twitch.tv" -> IrcMessage(command="PING", params=["tmi.twitch.tv"])
        "@badges=moderator/1 :bob!bob@bob.tmi.twitch.tv PRIVMSG #chan :hi"

    Returns:
        The parsed message, or None for a blank line.
    """
    line = line.rstrip("\r\n")
    if not line.strip():
        return None

    tags: dict[str, str] = {}
    prefix = ""
    rest = line

    if rest.startswith("@"):
        raw_tags, _, rest = rest[1:].partition(" ")
        for item in raw_tags.split(";"):
            if not item:
                continue
            key, _, value = item.partition("=")
            tags[key] = unescape_tag_value(value)
        rest = rest.lstrip(" ")

    if rest.startswith(":"):
        prefix, _, rest = rest[1:].partition(" ")
        rest = rest.lstrip(" ")

    trailing = None
    if " :" in rest:
        rest, trailing = rest.split(" :", 1)
    elif rest.startswith(":"):
        rest, trailing = "", rest[1:]

    parts = rest.split()
    if not parts:
        return None

    params = parts[1:]
    if trailing is not None:
        params.append(trailing)

    return IrcMessage(command=parts[0].upper(), params=params, prefix=prefix, tags=tags)


def sanitize_text(text: str) -> str:
    """Collapse line breaks; one chat message is one IRC line."""
    return " ".join(text.replace("\r", " ").replace("\n", " ").split())


def format_privmsg(channel: str, text: str) -> str:
    """Build a PRIVMSG line for a channel."""
    return f"PRIVMSG #{channel.lstrip('#')} :{sanitize_text(text)}"

"""
Tests for IRC line parsing and formatting.
"""

from lunabot.channels.irc import format_privmsg, parse_irc_line, unescape_tag_value


class TestParseIrcLine:
    """Tests for parse_irc_line."""

    def test_ping(self):
        msg = parse_irc_line("PING :tmi.twitch.tv")
        assert msg.command == "PING"
        assert msg.trailing == "tmi.twitch.tv"

    def test_privmsg_with_tags(self):
        line = (
            "@badges=moderator/1,subscriber/12;display-name=Bob;user-id=42 "
            ":bob!bob@bob.tmi.twitch.tv PRIVMSG #luna :#roll 2d6\r\n"
        )
        msg = parse_irc_line(line)

        assert msg.command == "PRIVMSG"
        assert msg.nick == "bob"
        assert msg.channel == "luna"
        assert msg.trailing == "#roll 2d6"
        assert msg.tags == {
            "badges": "moderator/1,subscriber/12",
            "display-name": "Bob",
            "user-id": "42",
        }

    def test_userstate(self):
        msg = parse_irc_line("@badges=vip/1;mod=0 :tmi.twitch.tv USERSTATE #luna")
        assert msg.command == "USERSTATE"
        assert msg.channel == "luna"
        assert msg.tags["badges"] == "vip/1"

    def test_numeric_welcome(self):
        msg = parse_irc_line(":tmi.twitch.tv 001 lunabot :Welcome, GLHF!")
        assert msg.command == "001"
        assert msg.params == ["lunabot", "Welcome, GLHF!"]

    def test_empty_tag_value(self):
        msg = parse_irc_line("@badges=;color= :x!x@x PRIVMSG #c :hi")
        assert msg.tags["badges"] == ""

    def test_blank_line(self):
        assert parse_irc_line("") is None
        assert parse_irc_line("   \r\n") is None

    def test_trailing_keeps_colons(self):
        msg = parse_irc_line(":a!a@a PRIVMSG #c :time is 12:30 :)")
        assert msg.trailing == "time is 12:30 :)"


class TestTagEscaping:
    """Tests for IRCv3 tag value unescaping."""

    def test_escapes(self):
        assert unescape_tag_value(r"hello\sworld") == "hello world"
        assert unescape_tag_value(r"a\:b") == "a;b"
        assert unescape_tag_value(r"back\\slash") == "back\\slash"

    def test_plain_value_unchanged(self):
        assert unescape_tag_value("plain") == "plain"

    def test_escaped_value_in_line(self):
        msg = parse_irc_line(r"@system-msg=5\sraiders :tmi.twitch.tv USERNOTICE #c")
        assert msg.tags["system-msg"] == "5 raiders"


class TestFormatPrivmsg:
    """Tests for format_privmsg."""

    def test_format(self):
        assert format_privmsg("luna", "hi there") == "PRIVMSG #luna :hi there"
        assert format_privmsg("#luna", "hi") == "PRIVMSG #luna :hi"

    def test_newlines_are_collapsed(self):
        assert format_privmsg("luna", "line one\r\nline two") == "PRIVMSG #luna :line one line two"

"""
Tests for the built-in command bodies and their service clients.
"""

import asyncio
import json
import random
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from lunabot.commands import builtin_commands, register_builtin_commands
from lunabot.commands.afk import afk_commands
from lunabot.commands.ai import ai_commands
from lunabot.commands.emote import emote_commands
from lunabot.commands.fun import fun_commands, parse_dice
from lunabot.commands.moderation import moderation_commands, parse_duration
from lunabot.commands.steam import steam_commands
from lunabot.commands.system import system_commands
from lunabot.commands.weather import weather_commands
from lunabot.config.schema import AIConfig, Config
from lunabot.core.badges import Role
from lunabot.core.commands import CommandContext, CommandRegistry
from lunabot.services import (
    AfkTracker,
    BotServices,
    CompletionResult,
    HelixClient,
    SevenTvClient,
    SevenTvError,
    SteamClient,
    WeatherClient,
    format_away,
)
from lunabot.services.helix import HelixError
from lunabot.services.steam import SteamGame


class Replies(list):
    """Reply sink that records texts and reports them as delivered."""

    def __call__(self, text: str) -> "asyncio.Future[bool]":
        self.append(text)
        future = asyncio.get_running_loop().create_future()
        future.set_result(True)
        return future


def _by_name(commands):
    return {cmd.name: cmd for cmd in commands}


async def _invoke(command, user, args=(), services=None, channel="luna", invoked_as=""):
    replies = Replies()
    ctx = CommandContext(
        channel=channel,
        caller=user,
        args=list(args),
        reply=replies,
        command=command,
        invoked_as=invoked_as or command.name,
        services=services,
    )
    result = await command.handler(ctx)
    return result, replies


class TestRegistration:
    """Tests for register_builtin_commands."""

    def test_default_config_registers_core_commands(self):
        registry = CommandRegistry()
        count = register_builtin_commands(registry, Config())

        assert count == 12
        assert [c.name for c in registry.commands()] == [
            "7tv", "afk", "coin", "food", "gaming", "help", "ping", "rafk", "rate", "roll", "sleep", "work",
        ]
        assert registry.resolve("flip").name == "coin"
        assert registry.resolve("dice").name == "roll"
        assert registry.resolve("latency").name == "ping"

    def test_credentials_enable_service_commands(self):
        config = Config(
            twitch={"username": "lunabot", "oauth_token": "t", "client_id": "c"},
            ai={"api_key": "k"},
            weather={"api_key": "w"},
        )
        registry = CommandRegistry()
        assert register_builtin_commands(registry, config) == 20

        assert registry.resolve("ask").name == "gpt"
        assert registry.resolve("w").name == "weather"
        assert registry.resolve("ban").required_level == Role.MODERATOR
        assert registry.resolve("timeout").required_level == Role.MODERATOR
        assert registry.resolve("unvip").name == "vip"
        assert registry.resolve("emotes").name == "emote"
        assert registry.resolve("steam") is None

    def test_optional_features_follow_config(self):
        config = Config(steam={"api_key": "s"}, seventv={"enabled": False}, afk={"enabled": False})
        registry = CommandRegistry()
        register_builtin_commands(registry, config)

        assert registry.resolve("game").name == "steam"
        assert registry.resolve("7tv") is None
        assert registry.resolve("afk") is None
        assert registry.resolve("emote") is None

    def test_disabled_commands_stay_registered(self):
        registry = CommandRegistry()
        register_builtin_commands(registry, Config(commands={"disabled": ["Roll"]}))

        assert registry.resolve("roll").enabled is False
        assert registry.resolve("coin").enabled is True

    def test_default_cooldown_applies(self):
        config = Config(commands={"default_cooldown_ms": 7000})
        commands = _by_name(builtin_commands(CommandRegistry(), config))
        assert commands["coin"].cooldown_ms == 7000


class TestSystemCommands:
    """Tests for ping and help."""

    @pytest.mark.asyncio
    async def test_ping(self, make_user):
        commands = _by_name(system_commands(CommandRegistry()))
        _, replies = await _invoke(commands["ping"], make_user("alice"))
        assert replies == ["@alice Pong!"]

    @pytest.mark.asyncio
    async def test_help_lists_registry(self, make_user):
        registry = CommandRegistry()
        for command in system_commands(registry) + fun_commands():
            registry.register(command)

        _, replies = await _invoke(registry.resolve("help"), make_user("alice"))
        assert replies[0].startswith("@alice Available commands:")
        assert "#roll" in replies[0]

    @pytest.mark.asyncio
    async def test_help_for_one_command(self, make_user):
        registry = CommandRegistry()
        for command in system_commands(registry) + fun_commands():
            registry.register(command)

        _, replies = await _invoke(registry.resolve("help"), make_user("alice"), ["dice"])
        assert "#roll [XdY]" in replies[0]


class TestFunCommands:
    """Tests for coin, roll and rate."""

    @pytest.mark.parametrize("spec,expected", [
        ("", (1, 6)),
        ("20", (1, 20)),
        ("2d6", (2, 6)),
        ("d8", (1, 8)),
        ("10D100", (10, 100)),
        ("11d6", None),
        ("0d6", None),
        ("1d1", None),
        ("2d101", None),
        ("abc", None),
    ])
    def test_parse_dice(self, spec, expected):
        assert parse_dice(spec) == expected

    @pytest.mark.asyncio
    async def test_coin(self, make_user):
        commands = _by_name(fun_commands(rng=random.Random(1)))
        _, replies = await _invoke(commands["coin"], make_user("alice"))
        assert replies[0] in ("@alice flipped a coin: Heads!", "@alice flipped a coin: Tails!")

    @pytest.mark.asyncio
    async def test_roll_sums_dice(self, make_user):
        rng = MagicMock()
        rng.randint.side_effect = [3, 4]
        commands = _by_name(fun_commands(rng=rng))

        result, replies = await _invoke(commands["roll"], make_user("alice"), ["2d6"])
        assert result is True
        assert replies == ["@alice rolled 2d6: 3 + 4 = 7"]

    @pytest.mark.asyncio
    async def test_roll_invalid_replies_usage(self, make_user):
        commands = _by_name(fun_commands())
        result, replies = await _invoke(commands["roll"], make_user("alice"), ["50d6"])
        assert result is False
        assert "Usage" in replies[0]

    @pytest.mark.asyncio
    async def test_rate(self, make_user):
        rng = MagicMock()
        rng.randint.return_value = 87
        commands = _by_name(fun_commands(rng=rng))

        _, replies = await _invoke(commands["rate"], make_user("alice"), ["@Bob"])
        assert replies == ["@alice I'd rate Bob 87% cute"]


class TestAICommands:
    """Tests for gpt and claude."""

    @pytest.mark.asyncio
    async def test_gpt_uses_configured_model(self, make_user):
        config = AIConfig(api_key="k", gpt_model="openai/test-model")
        llm = MagicMock()
        llm.complete = AsyncMock(return_value=CompletionResult(content="Forty\ntwo.", model="openai/test-model"))
        commands = _by_name(ai_commands(config))

        result, replies = await _invoke(
            commands["gpt"], make_user("alice"), ["what", "is", "it?"], BotServices(llm=llm)
        )

        assert result is True
        llm.complete.assert_awaited_once_with("what is it?", model="openai/test-model")
        assert replies == ["@alice Forty two."]

    @pytest.mark.asyncio
    async def test_claude_failure_replies_unavailable(self, make_user):
        llm = MagicMock()
        llm.complete = AsyncMock(return_value=CompletionResult(content="Error", finish_reason="error"))
        commands = _by_name(ai_commands(AIConfig(api_key="k")))

        result, replies = await _invoke(commands["claude"], make_user("alice"), ["hi"], BotServices(llm=llm))
        assert result is False
        assert "unavailable" in replies[0]

    @pytest.mark.asyncio
    async def test_missing_question(self, make_user):
        commands = _by_name(ai_commands(AIConfig(api_key="k")))
        result, replies = await _invoke(commands["gpt"], make_user("alice"), [], BotServices())
        assert result is False
        assert "Usage" in replies[0]


def _weather_client(handler) -> WeatherClient:
    return WeatherClient(api_key="secret", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestWeather:
    """Tests for the weather client and command."""

    @pytest.mark.asyncio
    async def test_current_weather(self, make_user):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "name": "London",
                "sys": {"country": "GB"},
                "weather": [{"description": "light rain"}],
                "main": {"temp": 11.6, "feels_like": 10.2, "humidity": 81},
                "wind": {"speed": 4.1},
            })

        client = _weather_client(handler)
        commands = _by_name(weather_commands())
        result, replies = await _invoke(
            commands["weather"], make_user("alice"), ["London"], BotServices(weather=client)
        )

        assert result is True
        assert seen[0].url.path.endswith("/weather")
        assert seen[0].url.params["q"] == "London"
        assert seen[0].url.params["appid"] == "secret"
        assert replies[0].startswith("@alice Weather in London, GB: light rain, 12°C")

        # Second lookup is served from cache
        await client.current("london")
        assert len(seen) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_unknown_location(self, make_user):
        client = _weather_client(lambda request: httpx.Response(404, json={"message": "city not found"}))
        commands = _by_name(weather_commands())

        result, replies = await _invoke(
            commands["weather"], make_user("alice"), ["Nowhere"], BotServices(weather=client)
        )
        assert result is False
        assert replies == ["@alice Location not found: Nowhere"]
        await client.close()


class FakeHelix:
    """Helix API stand-in served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/users"):
            login = request.url.params["login"]
            if login == "ghost":
                return httpx.Response(200, json={"data": []})
            return httpx.Response(200, json={"data": [{"id": f"id-{login}", "login": login}]})
        if request.method == "POST":
            return httpx.Response(200, json={"data": [{"user_id": "x"}]})
        return httpx.Response(204)

    @property
    def bans(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/moderation/bans")]


@pytest.fixture
def helix_api():
    return FakeHelix()


@pytest.fixture
def helix(helix_api):
    return HelixClient(
        client_id="cid",
        token="oauth:tok",
        bot_login="LunaBot",
        client=httpx.AsyncClient(transport=httpx.MockTransport(helix_api)),
    )


class TestModeration:
    """Tests for timeout, ban and unban."""

    @pytest.mark.parametrize("value,expected", [
        ("600", 600),
        ("10m", 600),
        ("2h", 7200),
        ("1w", 604800),
        ("0", None),
        ("3w", None),
        ("soon", None),
    ])
    def test_parse_duration(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.asyncio
    async def test_timeout_posts_ban_with_duration(self, helix, helix_api, make_user):
        commands = _by_name(moderation_commands())
        result, replies = await _invoke(
            commands["timeout"], make_user("mod", "moderator/1"), ["@troll", "5m", "spam"],
            BotServices(helix=helix),
        )

        assert result is True
        request = helix_api.bans[0]
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Client-Id"] == "cid"
        assert request.url.params["broadcaster_id"] == "id-luna"
        assert request.url.params["moderator_id"] == "id-lunabot"
        assert json.loads(request.content) == {
            "data": {"user_id": "id-troll", "duration": 300, "reason": "spam"}
        }
        assert replies == ["@mod troll has been timed out for 300s."]

    @pytest.mark.asyncio
    async def test_ban_without_duration(self, helix, helix_api, make_user):
        commands = _by_name(moderation_commands())
        await _invoke(commands["ban"], make_user("mod", "moderator/1"), ["troll"], BotServices(helix=helix))

        assert json.loads(helix_api.bans[0].content) == {"data": {"user_id": "id-troll"}}

    @pytest.mark.asyncio
    async def test_unban_deletes(self, helix, helix_api, make_user):
        commands = _by_name(moderation_commands())
        result, _ = await _invoke(commands["unban"], make_user("mod", "moderator/1"), ["troll"], BotServices(helix=helix))

        assert result is True
        assert helix_api.bans[0].method == "DELETE"
        assert helix_api.bans[0].url.params["user_id"] == "id-troll"

    @pytest.mark.asyncio
    async def test_unknown_user_replies_failure(self, helix, make_user):
        commands = _by_name(moderation_commands())
        result, replies = await _invoke(commands["ban"], make_user("mod", "moderator/1"), ["ghost"], BotServices(helix=helix))

        assert result is False
        assert replies == ["@mod Failed to ban ghost: User ghost not found"]

    @pytest.mark.asyncio
    async def test_user_ids_are_cached(self, helix, helix_api):
        await helix.get_user_id("troll")
        await helix.get_user_id("@Troll")
        assert len(helix_api.requests) == 1

    @pytest.mark.asyncio
    async def test_api_error_raises_helix_error(self):
        client = HelixClient(
            client_id="cid",
            token="tok",
            bot_login="lunabot",
            client=httpx.AsyncClient(transport=httpx.MockTransport(
                lambda request: httpx.Response(401, json={"message": "Invalid OAuth token"})
            )),
        )
        with pytest.raises(HelixError) as exc:
            await client.get_user_id("troll")
        assert exc.value.status_code == 401
        assert "Invalid OAuth token" in str(exc.value)

    @pytest.mark.asyncio
    async def test_vip_add_posts_to_vips(self, helix, helix_api, make_user):
        commands = _by_name(moderation_commands())
        result, replies = await _invoke(
            commands["vip"], make_user("mod", "moderator/1"), ["add", "@Friend"], BotServices(helix=helix)
        )

        assert result is True
        request = [r for r in helix_api.requests if r.url.path.endswith("/channels/vips")][0]
        assert request.method == "POST"
        assert request.url.params["broadcaster_id"] == "id-luna"
        assert request.url.params["user_id"] == "id-friend"
        assert replies == ["@mod added VIP status to Friend."]

    @pytest.mark.asyncio
    async def test_unvip_alias_removes(self, helix, helix_api, make_user):
        commands = _by_name(moderation_commands())
        result, replies = await _invoke(
            commands["vip"], make_user("mod", "moderator/1"), ["friend"], BotServices(helix=helix),
            invoked_as="UnVip",
        )

        assert result is True
        request = [r for r in helix_api.requests if r.url.path.endswith("/channels/vips")][0]
        assert request.method == "DELETE"
        assert replies == ["@mod removed VIP status from friend."]

    @pytest.mark.asyncio
    async def test_vip_needs_action_and_user(self, helix, helix_api, make_user):
        commands = _by_name(moderation_commands())
        result, replies = await _invoke(
            commands["vip"], make_user("mod", "moderator/1"), ["promote", "friend"], BotServices(helix=helix)
        )

        assert result is False
        assert replies == ["@mod Usage: #vip <add|remove> <user>"]
        assert helix_api.requests == []


class FakeSteam:
    """Steam Web API and store stand-in."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path.endswith("/ResolveVanityURL/v1/"):
            if params["vanityurl"] == "gaben":
                return httpx.Response(200, json={"response": {"success": 1, "steamid": "765"}})
            return httpx.Response(200, json={"response": {"success": 42, "message": "No match"}})
        if path.endswith("/GetPlayerSummaries/v2/"):
            return httpx.Response(200, json={"response": {"players": [{"personaname": "Gabe"}]}})
        if path.endswith("/GetOwnedGames/v1/"):
            return httpx.Response(200, json={"response": {"game_count": 12}})
        if path.endswith("/GetRecentlyPlayedGames/v1/"):
            return httpx.Response(200, json={"response": {"games": [{"name": "Dota 2", "playtime_2weeks": 180}]}})
        if path.endswith("/storesearch/"):
            items = [{"id": 400, "name": "Portal"}] if params["term"].lower() == "portal" else []
            return httpx.Response(200, json={"total": len(items), "items": items})
        if path.endswith("/appdetails"):
            return httpx.Response(200, json={"400": {"success": True, "data": {
                "name": "Portal",
                "price_overview": {"final": 999, "discount_percent": 50, "currency": "USD"},
                "metacritic": {"score": 90},
                "genres": [{"description": "Action"}, {"description": "Puzzle"}],
            }}})
        return httpx.Response(404)


def _steam_client(api, clock=None) -> SteamClient:
    return SteamClient(
        api_key="key",
        client=httpx.AsyncClient(transport=httpx.MockTransport(api)),
        clock=clock,
    )


class TestSteam:
    """Tests for the Steam client and command."""

    @pytest.mark.asyncio
    async def test_user_lookup(self, make_user):
        api = FakeSteam()
        commands = _by_name(steam_commands())

        result, replies = await _invoke(
            commands["steam"], make_user("alice"), ["gaben"], BotServices(steam=_steam_client(api))
        )

        assert result is True
        assert replies == ["@alice Steam user Gabe • Recently played: Dota 2 (3h past 2 weeks) • 12 games owned"]
        assert all(r.url.params.get("key") == "key" for r in api.requests)

    @pytest.mark.asyncio
    async def test_game_lookup_when_no_user_matches(self, make_user):
        api = FakeSteam()
        commands = _by_name(steam_commands())

        result, replies = await _invoke(
            commands["steam"], make_user("alice"), ["Portal"], BotServices(steam=_steam_client(api))
        )

        assert result is True
        assert replies == ["@alice Portal • 9.99 USD (-50%) • 90/100 on Metacritic • Action, Puzzle"]

    @pytest.mark.asyncio
    async def test_nothing_found(self, make_user):
        commands = _by_name(steam_commands())
        result, replies = await _invoke(
            commands["steam"], make_user("alice"), ["zzz"], BotServices(steam=_steam_client(FakeSteam()))
        )

        assert result is False
        assert replies == ['@alice No Steam user or game found matching "zzz"']

    @pytest.mark.asyncio
    async def test_answers_are_cached(self, clock):
        api = FakeSteam()
        client = _steam_client(api, clock=clock)

        first = await client.lookup("Portal")
        calls = len(api.requests)
        assert await client.lookup("portal") == first
        assert len(api.requests) == calls

        clock.advance(301)
        await client.lookup("portal")
        assert len(api.requests) > calls
        await client.close()

    def test_free_game_format(self):
        game = SteamGame(app_id=570, name="Dota 2", genres=["Strategy"])
        assert game.format() == "Dota 2 • Free to Play • No rating available • Strategy"


class FakeSevenTv:
    """7TV REST and GraphQL stand-in."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/users/twitch/id-luna"):
            return httpx.Response(200, json={"id": "u1", "emote_set": {"id": "set1"}})
        if path.endswith("/users/twitch/id-empty"):
            return httpx.Response(200, json={"id": "u2", "emote_set": None})
        if path.endswith("/emote-sets/set1"):
            return httpx.Response(200, json={"id": "set1", "emotes": [{
                "id": "e1",
                "name": "Clap",
                "flags": 0,
                "actor_id": "a1",
                "data": {"name": "ClapClap", "animated": True, "owner": {"display_name": "Maker"}},
            }]})
        if path.endswith("/users/a1"):
            return httpx.Response(200, json={"id": "a1", "username": "mod", "display_name": "Mod"})
        if path.endswith("/gql"):
            return httpx.Response(200, json={"data": {"emotes": {"items": [
                {"id": "a", "name": "PepeA", "flags": 0, "animated": True, "owner": {"display_name": "x"}},
                {"id": "b", "name": "PepeZ", "flags": 256, "animated": False, "owner": {"display_name": "y"}},
            ]}}})
        return httpx.Response(404)


@pytest.fixture
def seventv_api():
    return FakeSevenTv()


@pytest.fixture
def seventv(seventv_api, clock):
    return SevenTvClient(client=httpx.AsyncClient(transport=httpx.MockTransport(seventv_api)), clock=clock)


class TestSevenTv:
    """Tests for the 7tv and emote commands."""

    @pytest.mark.asyncio
    async def test_channel_emote_lookup(self, seventv, seventv_api, helix, make_user):
        commands = _by_name(emote_commands())

        result, replies = await _invoke(
            commands["emote"], make_user("alice"), ["clap"], BotServices(helix=helix, seventv=seventv)
        )

        assert result is True
        assert replies == ["@alice Clap [ClapClap] • Added by: Mod • https://7tv.app/emotes/e1"]

        # The emote set is cached; only the actor lookup repeats
        before = len(seventv_api.requests)
        assert (await seventv.find_channel_emote("id-luna", "ClapClap")).id == "e1"
        assert len(seventv_api.requests) == before

    @pytest.mark.asyncio
    async def test_unknown_channel_emote(self, seventv, helix, make_user):
        commands = _by_name(emote_commands())
        result, replies = await _invoke(
            commands["emote"], make_user("alice"), ["Nope"], BotServices(helix=helix, seventv=seventv)
        )

        assert result is False
        assert replies == ['@alice No emote found matching "Nope"']

    @pytest.mark.asyncio
    async def test_channel_without_emote_set(self, seventv):
        with pytest.raises(SevenTvError):
            await seventv.channel_emotes("id-empty")

    @pytest.mark.asyncio
    async def test_emote_needs_helix(self, seventv, make_user):
        commands = _by_name(emote_commands())
        result, replies = await _invoke(commands["emote"], make_user("alice"), ["Clap"], BotServices(seventv=seventv))

        assert result is False
        assert replies == ["@alice Emote lookup is not configured."]

    @pytest.mark.asyncio
    async def test_search(self, seventv, make_user):
        commands = _by_name(emote_commands())
        result, replies = await _invoke(
            commands["7tv"], make_user("alice"), ["search", "pepe"], BotServices(seventv=seventv)
        )

        assert result is True
        assert replies == [
            "@alice Found: PepeA - https://7tv.app/emotes/a | PepeZ - https://7tv.app/emotes/b"
        ]

    @pytest.mark.asyncio
    async def test_search_filters(self, seventv, make_user):
        commands = _by_name(emote_commands())
        services = BotServices(seventv=seventv)

        _, animated = await _invoke(commands["7tv"], make_user("alice"), ["animated", "pepe"], services)
        _, zero = await _invoke(commands["7tv"], make_user("alice"), ["zero", "pepe"], services)

        assert animated == ["@alice Animated emotes: PepeA"]
        assert zero == ["@alice Zero-width emotes: PepeZ"]

    @pytest.mark.asyncio
    async def test_trending_sorts_by_popularity(self, seventv, seventv_api, make_user):
        commands = _by_name(emote_commands())
        await _invoke(commands["7tv"], make_user("alice"), ["trending", "pepe"], BotServices(seventv=seventv))

        body = json.loads(seventv_api.requests[-1].content)
        assert body["variables"]["sort"] == {"value": "popularity", "order": "DESCENDING"}
        assert body["variables"]["query"] == "pepe"

    @pytest.mark.asyncio
    async def test_bad_mode_shows_usage(self, seventv, seventv_api, make_user):
        commands = _by_name(emote_commands())
        result, replies = await _invoke(commands["7tv"], make_user("alice"), ["dance"], BotServices(seventv=seventv))

        assert result is False
        assert replies[0].startswith("@alice Usage: #7tv")
        assert seventv_api.requests == []


class TestAfk:
    """Tests for the AFK tracker and commands."""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"),
        (42, "42s"),
        (90, "1m 30s"),
        (3725, "1h 2m"),
        (90061, "1d 1h"),
    ])
    def test_format_away(self, seconds, expected):
        assert format_away(seconds) == expected

    @pytest.mark.asyncio
    async def test_afk_with_reason(self, clock, make_user):
        tracker = AfkTracker(clock=clock)
        commands = _by_name(afk_commands())

        result, replies = await _invoke(
            commands["sleep"], make_user("alice"), ["long", "day"], BotServices(afk=tracker)
        )

        assert result is True
        assert replies == ["@alice is now sleeping • long day"]
        assert tracker.get("#Luna", "id-alice").reason == "sleeping • long day"

    @pytest.mark.asyncio
    async def test_already_afk(self, clock, make_user):
        services = BotServices(afk=AfkTracker(clock=clock))
        commands = _by_name(afk_commands())

        await _invoke(commands["afk"], make_user("alice"), [], services)
        result, replies = await _invoke(commands["work"], make_user("alice"), [], services)

        assert result is False
        assert replies == ["@alice, you are already AFK: AFK"]

    def test_come_back_reports_time_away(self, clock):
        tracker = AfkTracker(clock=clock)
        tracker.go_afk("luna", "1", "alice", "AFK")
        clock.advance(90)

        status, away = tracker.come_back("luna", "1")
        assert status.reason == "AFK"
        assert away == pytest.approx(90)
        assert tracker.get("luna", "1") is None
        assert tracker.come_back("luna", "1") is None

    @pytest.mark.asyncio
    async def test_rafk_within_window(self, clock, make_user):
        tracker = AfkTracker(resume_window_seconds=1800, clock=clock)
        commands = _by_name(afk_commands())
        tracker.go_afk("luna", "id-alice", "alice", "eating • pizza")
        tracker.come_back("luna", "id-alice")
        clock.advance(600)

        result, replies = await _invoke(commands["rafk"], make_user("alice"), [], BotServices(afk=tracker))

        assert result is True
        assert replies == ["@alice is now eating • pizza"]
        assert tracker.get("luna", "id-alice") is not None

    @pytest.mark.asyncio
    async def test_rafk_after_window(self, clock, make_user):
        tracker = AfkTracker(resume_window_seconds=1800, clock=clock)
        commands = _by_name(afk_commands())
        tracker.go_afk("luna", "id-alice", "alice", "AFK")
        tracker.come_back("luna", "id-alice")
        clock.advance(1801)

        result, replies = await _invoke(commands["rafk"], make_user("alice"), [], BotServices(afk=tracker))

        assert result is False
        assert replies == ["@alice, you don't have any recent AFK status to resume."]

    @pytest.mark.asyncio
    async def test_disabled_afk_replies(self, make_user):
        commands = _by_name(afk_commands())
        result, replies = await _invoke(commands["afk"], make_user("alice"), [], BotServices(afk=None))

        assert result is False
        assert replies == ["@alice AFK is not enabled."]

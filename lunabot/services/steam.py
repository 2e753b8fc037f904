"""
Steam client for the steam command.

A query is first tried as a profile vanity name, then as a store search.
Formatted answers are cached per query for a few minutes.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
from loguru import logger

from lunabot.core.errors import LunaBotError


class SteamError(LunaBotError):
    """Steam lookup failed."""


@dataclass
class SteamGame:
    """Store details for one app."""
    app_id: int
    name: str
    price_cents: int | None = None  # None = free to play
    discount_percent: int = 0
    currency: str = "USD"
    metacritic: int | None = None
    genres: list[str] = field(default_factory=list)

    def format(self) -> str:
        if self.price_cents is None:
            price = "Free to Play"
        else:
            price = f"{self.price_cents / 100:.2f} {self.currency}"
            if self.discount_percent > 0:
                price += f" (-{self.discount_percent}%)"
        rating = (
            f"{self.metacritic}/100 on Metacritic" if self.metacritic is not None else "No rating available"
        )
        genres = ", ".join(self.genres) or "Unknown genre"
        return f"{self.name} • {price} • {rating} • {genres}"


@dataclass
class SteamProfile:
    """Public summary of a Steam account."""
    steam_id: str
    name: str
    game_count: int = 0
    recent_game: str = ""
    recent_minutes: int = 0

    def format(self) -> str:
        text = f"Steam user {self.name}"
        if self.recent_game:
            hours = round(self.recent_minutes / 60)
            text += f" • Recently played: {self.recent_game} ({hours}h past 2 weeks)"
        if self.game_count:
            text += f" • {self.game_count} games owned"
        return text


class SteamClient:
    """Steam Web API and store lookups."""

    def __init__(
        self,
        api_key: str,
        api_base: str = "https://api.steampowered.com",
        store_base: str = "https://store.steampowered.com/api",
        timeout: float = 10.0,
        cache_seconds: float = 300.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.api_key = api_key
        self.cache_seconds = cache_seconds
        self._api_base = api_base.rstrip("/")
        self._store_base = store_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock or time.monotonic
        self._cache: dict[str, tuple[float, str]] = {}

    async def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise SteamError(f"Steam is unavailable: {e}") from e

        if response.status_code >= 400:
            raise SteamError(f"Steam API error (HTTP {response.status_code})")
        try:
            return response.json()
        except ValueError as e:
            raise SteamError("Steam returned an invalid response") from e

    async def resolve_vanity(self, name: str) -> str | None:
        """Resolve a profile vanity name to a steam id, or None."""
        data = await self._get(
            f"{self._api_base}/ISteamUser/ResolveVanityURL/v1/",
            {"key": self.api_key, "vanityurl": name},
        )
        result = data.get("response", {})
        return result.get("steamid") if result.get("success") == 1 else None

    async def profile(self, steam_id: str) -> SteamProfile:
        """Persona name, owned game count and most recent game of an account."""
        summaries, owned, recent = await asyncio.gather(
            self._get(
                f"{self._api_base}/ISteamUser/GetPlayerSummaries/v2/",
                {"key": self.api_key, "steamids": steam_id},
            ),
            self._get(
                f"{self._api_base}/IPlayerService/GetOwnedGames/v1/",
                {"key": self.api_key, "steamid": steam_id, "include_played_free_games": 1},
            ),
            self._get(
                f"{self._api_base}/IPlayerService/GetRecentlyPlayedGames/v1/",
                {"key": self.api_key, "steamid": steam_id, "count": 1},
            ),
        )

        players = summaries.get("response", {}).get("players") or [{}]
        profile = SteamProfile(
            steam_id=steam_id,
            name=players[0].get("personaname", "Unknown"),
            game_count=int(owned.get("response", {}).get("game_count", 0)),
        )
        games = recent.get("response", {}).get("games") or []
        if games:
            profile.recent_game = games[0].get("name", "")
            profile.recent_minutes = int(games[0].get("playtime_2weeks", 0))
        return profile

    async def find_game(self, query: str) -> SteamGame | None:
        """Top store search hit for a query, or None."""
        search = await self._get(
            f"{self._store_base}/storesearch/",
            {"term": query, "l": "english", "cc": "US"},
        )
        items = search.get("items") or []
        if not items:
            return None

        app_id = int(items[0]["id"])
        details = await self._get(f"{self._store_base}/appdetails", {"appids": app_id, "cc": "US"})
        entry = details.get(str(app_id), {})
        if not entry.get("success"):
            return None
        return self._parse_game(app_id, entry.get("data", {}))

    def _parse_game(self, app_id: int, data: dict[str, Any]) -> SteamGame:
        game = SteamGame(
            app_id=app_id,
            name=data.get("name", str(app_id)),
            genres=[g.get("description", "") for g in data.get("genres", []) if g.get("description")],
        )
        price = data.get("price_overview")
        if price and not data.get("is_free"):
            game.price_cents = int(price.get("final", 0))
            game.discount_percent = int(price.get("discount_percent", 0))
            game.currency = price.get("currency", "USD")
        metacritic = data.get("metacritic")
        if metacritic:
            game.metacritic = int(metacritic.get("score", 0))
        return game

    async def lookup(self, query: str) -> str:
        """
        Answer a steam command query.

        Raises:
            SteamError: Nothing matched or the API failed.
        """
        key = query.strip().lower()
        cached = self._cache.get(key)
        if cached and self._clock() - cached[0] < self.cache_seconds:
            return cached[1]

        try:
            steam_id = await self.resolve_vanity(query)
        except SteamError as e:
            logger.debug(f"Steam profile lookup for {query!r} failed, trying the store: {e}")
            steam_id = None

        if steam_id:
            text = (await self.profile(steam_id)).format()
        else:
            game = await self.find_game(query)
            if game is None:
                raise SteamError(f'No Steam user or game found matching "{query}"')
            text = game.format()

        self._cache[key] = (self._clock(), text)
        return text

    async def close(self) -> None:
        await self._client.aclose()

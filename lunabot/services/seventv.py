"""
7TV client for emote commands.

Channel emote sets come from the REST API; free-text search goes through
the GraphQL endpoint.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from loguru import logger

from lunabot.core.errors import LunaBotError

# Emote flag on the emote itself (search results)
EMOTE_FLAG_ZERO_WIDTH = 1 << 8
# Flag on an emote's entry in an emote set
ACTIVE_FLAG_ZERO_WIDTH = 1

SEARCH_QUERY = """
query SearchEmotes($query: String!, $limit: Int, $page: Int, $sort: Sort) {
  emotes(query: $query, limit: $limit, page: $page, sort: $sort) {
    items {
      id
      name
      flags
      animated
      owner {
        display_name
      }
    }
  }
}
"""


class SevenTvError(LunaBotError):
    """7TV lookup failed."""


@dataclass
class Emote:
    """A 7TV emote, as found in a channel's set or a search."""
    id: str
    name: str
    original_name: str = ""
    owner: str = ""
    actor_id: str = ""
    animated: bool = False
    zero_width: bool = False

    @property
    def page_url(self) -> str:
        return f"https://7tv.app/emotes/{self.id}"

    def matches(self, name: str) -> bool:
        name = name.casefold()
        return name == self.name.casefold() or (bool(self.original_name) and name == self.original_name.casefold())


class SevenTvClient:
    """7TV emote lookups with a short cache of channel emote sets."""

    def __init__(
        self,
        api_base: str = "https://7tv.io/v3",
        timeout: float = 10.0,
        cache_seconds: float = 300.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.cache_seconds = cache_seconds
        self._api_base = api_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock or time.monotonic
        self._channel_cache: dict[str, tuple[float, list[Emote]]] = {}

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.request(method, f"{self._api_base}{path}", json=json)
        except httpx.HTTPError as e:
            raise SevenTvError(f"7TV is unavailable: {e}") from e

        if response.status_code == 404:
            raise SevenTvError("Not found on 7TV")
        if response.status_code >= 400:
            raise SevenTvError(f"7TV error (HTTP {response.status_code})")
        return response.json()

    async def channel_emotes(self, twitch_id: str) -> list[Emote]:
        """
        Emotes active in a Twitch channel.

        Raises:
            SevenTvError: The channel has no 7TV emote set or the API failed.
        """
        cached = self._channel_cache.get(twitch_id)
        if cached and self._clock() - cached[0] < self.cache_seconds:
            return cached[1]

        user = await self._request("GET", f"/users/twitch/{twitch_id}")
        emote_set = user.get("emote_set") or {}
        if not emote_set.get("id"):
            raise SevenTvError("This channel has no 7TV emote set")

        data = await self._request("GET", f"/emote-sets/{emote_set['id']}")
        emotes = [self._parse_active(item) for item in data.get("emotes") or []]
        logger.debug(f"Loaded {len(emotes)} 7TV emotes for Twitch user {twitch_id}")

        self._channel_cache[twitch_id] = (self._clock(), emotes)
        return emotes

    async def find_channel_emote(self, twitch_id: str, name: str) -> Emote | None:
        for emote in await self.channel_emotes(twitch_id):
            if emote.matches(name):
                return emote
        return None

    async def user_display_name(self, user_id: str) -> str:
        """Display name of a 7TV user id."""
        data = await self._request("GET", f"/users/{user_id}")
        return data.get("display_name") or data.get("username") or "Unknown"

    async def search(self, query: str, limit: int = 10, trending: bool = False) -> list[Emote]:
        """Search all of 7TV by name."""
        variables: dict[str, Any] = {"query": query, "limit": limit, "page": 1}
        if trending:
            variables["sort"] = {"value": "popularity", "order": "DESCENDING"}

        data = await self._request("POST", "/gql", json={"query": SEARCH_QUERY, "variables": variables})
        if data.get("errors"):
            raise SevenTvError(data["errors"][0].get("message", "7TV search failed"))

        items = ((data.get("data") or {}).get("emotes") or {}).get("items") or []
        return [self._parse_search(item) for item in items]

    def _parse_active(self, item: dict[str, Any]) -> Emote:
        details = item.get("data") or {}
        return Emote(
            id=item.get("id", ""),
            name=item.get("name", ""),
            original_name=details.get("name", ""),
            owner=(details.get("owner") or {}).get("display_name", ""),
            actor_id=item.get("actor_id") or "",
            animated=bool(details.get("animated")),
            zero_width=bool(item.get("flags", 0) & ACTIVE_FLAG_ZERO_WIDTH),
        )

    def _parse_search(self, item: dict[str, Any]) -> Emote:
        return Emote(
            id=item.get("id", ""),
            name=item.get("name", ""),
            owner=(item.get("owner") or {}).get("display_name", ""),
            animated=bool(item.get("animated")),
            zero_width=bool(item.get("flags", 0) & EMOTE_FLAG_ZERO_WIDTH),
        )

    async def close(self) -> None:
        await self._client.aclose()

"""
Twitch Helix API client for moderation commands.

Only the calls the bot needs: user lookup, ban/timeout, unban and VIP
changes.
"""

from typing import Any

import httpx
from loguru import logger

from lunabot.core.errors import LunaBotError
from lunabot.utils.helpers import normalize_channel


class HelixError(LunaBotError):
    """A Helix request failed."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class HelixClient:
    """
    Minimal async Helix client.

    The bot account acts as moderator, so its token needs the
    moderator:manage:banned_users scope. VIP changes additionally need
    channel:manage:vips.
    """

    def __init__(
        self,
        client_id: str,
        token: str,
        bot_login: str,
        api_base: str = "https://api.twitch.tv/helix",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.bot_login = bot_login.lower()
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._api_base = api_base.rstrip("/")
        self._headers = {
            "Client-Id": client_id,
            "Authorization": f"Bearer {token.removeprefix('oauth:')}",
        }
        self._user_ids: dict[str, str] = {}

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method,
                f"{self._api_base}{path}",
                params=params,
                json=json,
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise HelixError(f"Helix request failed: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise HelixError(message or f"HTTP {response.status_code}", response.status_code)

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def get_user_id(self, login: str) -> str:
        """
        Resolve a login to a user id (cached).

        Raises:
            HelixError: If the user does not exist.
        """
        login = login.lstrip("@").lower()
        if login in self._user_ids:
            return self._user_ids[login]

        data = await self._request("GET", "/users", params={"login": login})
        users = data.get("data", [])
        if not users:
            raise HelixError(f"User {login} not found", 404)

        self._user_ids[login] = users[0]["id"]
        return users[0]["id"]

    async def _ids(self, channel: str, target: str) -> dict[str, str]:
        return {
            "broadcaster_id": await self.get_user_id(normalize_channel(channel)),
            "moderator_id": await self.get_user_id(self.bot_login),
            "user_id": await self.get_user_id(target),
        }

    async def ban(
        self,
        channel: str,
        target: str,
        duration: int | None = None,
        reason: str = "",
    ) -> None:
        """
        Ban a user, or time them out when duration (seconds) is given.

        Args:
            channel: Channel to moderate.
            target: Login of the user.
            duration: Timeout length in seconds; None for a permanent ban.
            reason: Optional reason shown to moderators.
        """
        ids = await self._ids(channel, target)
        body: dict[str, Any] = {"user_id": ids["user_id"]}
        if duration is not None:
            body["duration"] = duration
        if reason:
            body["reason"] = reason

        await self._request(
            "POST",
            "/moderation/bans",
            params={"broadcaster_id": ids["broadcaster_id"], "moderator_id": ids["moderator_id"]},
            json={"data": body},
        )
        action = f"timed out for {duration}s" if duration is not None else "banned"
        logger.info(f"{target} {action} in #{normalize_channel(channel)}")

    async def unban(self, channel: str, target: str) -> None:
        """Lift a ban or timeout."""
        ids = await self._ids(channel, target)
        await self._request("DELETE", "/moderation/bans", params=ids)
        logger.info(f"{target} unbanned in #{normalize_channel(channel)}")

    async def _vip_params(self, channel: str, target: str) -> dict[str, str]:
        return {
            "broadcaster_id": await self.get_user_id(normalize_channel(channel)),
            "user_id": await self.get_user_id(target),
        }

    async def add_vip(self, channel: str, target: str) -> None:
        """Give a user the VIP badge."""
        await self._request("POST", "/channels/vips", params=await self._vip_params(channel, target))
        logger.info(f"{target} is now a VIP in #{normalize_channel(channel)}")

    async def remove_vip(self, channel: str, target: str) -> None:
        """Take the VIP badge away."""
        await self._request("DELETE", "/channels/vips", params=await self._vip_params(channel, target))
        logger.info(f"{target} is no longer a VIP in #{normalize_channel(channel)}")

    async def close(self) -> None:
        await self._client.aclose()

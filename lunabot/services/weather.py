"""OpenWeatherMap client for the weather command."""

import time
from dataclasses import dataclass
from typing import Any

import httpx

from lunabot.core.errors import LunaBotError


class WeatherError(LunaBotError):
    """Weather lookup failed."""


@dataclass
class WeatherReport:
    """Current conditions for a location."""
    location: str
    country: str
    description: str
    temperature: float
    feels_like: float
    humidity: int
    wind_speed: float
    units: str = "metric"

    def format(self) -> str:
        temp_unit = "°C" if self.units == "metric" else "°F"
        wind_unit = "m/s" if self.units == "metric" else "mph"
        place = f"{self.location}, {self.country}" if self.country else self.location
        return (
            f"Weather in {place}: {self.description}, {self.temperature:.0f}{temp_unit} "
            f"(feels like {self.feels_like:.0f}{temp_unit}), humidity {self.humidity}%, "
            f"wind {self.wind_speed:.1f} {wind_unit}"
        )


class WeatherClient:
    """Current weather lookups with a short result cache."""

    def __init__(
        self,
        api_key: str,
        api_base: str = "https://api.openweathermap.org/data/2.5",
        units: str = "metric",
        timeout: float = 10.0,
        cache_seconds: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.units = units
        self.cache_seconds = cache_seconds
        self._api_base = api_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._cache: dict[str, tuple[float, WeatherReport]] = {}

    async def current(self, location: str) -> WeatherReport:
        """
        Get current conditions for a place name.

        Raises:
            WeatherError: Unknown location or API failure.
        """
        key = location.strip().lower()
        cached = self._cache.get(key)
        if cached and time.monotonic() - cached[0] < self.cache_seconds:
            return cached[1]

        try:
            response = await self._client.get(
                f"{self._api_base}/weather",
                params={"q": location, "appid": self.api_key, "units": self.units},
            )
        except httpx.HTTPError as e:
            raise WeatherError(f"Weather service unavailable: {e}") from e

        if response.status_code == 404:
            raise WeatherError(f"Location not found: {location}")
        if response.status_code >= 400:
            raise WeatherError(f"Weather service error (HTTP {response.status_code})")

        report = self._parse(response.json())
        self._cache[key] = (time.monotonic(), report)
        return report

    def _parse(self, data: dict[str, Any]) -> WeatherReport:
        weather = (data.get("weather") or [{}])[0]
        main = data.get("main", {})
        return WeatherReport(
            location=data.get("name", ""),
            country=data.get("sys", {}).get("country", ""),
            description=weather.get("description", "unknown"),
            temperature=float(main.get("temp", 0.0)),
            feels_like=float(main.get("feels_like", 0.0)),
            humidity=int(main.get("humidity", 0)),
            wind_speed=float(data.get("wind", {}).get("speed", 0.0)),
            units=self.units,
        )

    async def close(self) -> None:
        await self._client.aclose()

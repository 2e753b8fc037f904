"""External service clients used by command bodies."""

from dataclasses import dataclass, field

from lunabot.config.schema import Config
from lunabot.services.afk import AfkStatus, AfkTracker, format_away
from lunabot.services.helix import HelixClient, HelixError
from lunabot.services.llm import CompletionProvider, CompletionResult
from lunabot.services.seventv import Emote, SevenTvClient, SevenTvError
from lunabot.services.steam import SteamClient, SteamError
from lunabot.services.weather import WeatherClient, WeatherError, WeatherReport


@dataclass
class BotServices:
    """Clients exposed to command handlers via CommandContext.services."""
    llm: CompletionProvider | None = None
    helix: HelixClient | None = None
    weather: WeatherClient | None = None
    steam: SteamClient | None = None
    seventv: SevenTvClient | None = None
    afk: AfkTracker | None = field(default_factory=AfkTracker)

    @classmethod
    def from_config(cls, config: Config) -> "BotServices":
        """Create the clients whose credentials are configured."""
        services = cls(afk=None)
        if config.has_ai:
            services.llm = CompletionProvider(
                api_key=config.ai.api_key or None,
                api_base=config.ai.api_base,
                default_model=config.ai.gpt_model,
                fallback_models=config.ai.fallback_models,
                cooldown_seconds=config.ai.failure_cooldown_seconds,
                system_prompt=config.ai.system_prompt,
                max_tokens=config.ai.max_tokens,
                temperature=config.ai.temperature,
            )
        if config.has_moderation:
            services.helix = HelixClient(
                client_id=config.twitch.client_id,
                token=config.twitch.token,
                bot_login=config.twitch.username,
                api_base=config.twitch.api_base,
            )
        if config.has_weather:
            services.weather = WeatherClient(
                api_key=config.weather.api_key,
                api_base=config.weather.api_base,
                units=config.weather.units,
                timeout=config.weather.timeout_seconds,
            )
        if config.has_steam:
            services.steam = SteamClient(
                api_key=config.steam.api_key,
                api_base=config.steam.api_base,
                store_base=config.steam.store_base,
                timeout=config.steam.timeout_seconds,
                cache_seconds=config.steam.cache_seconds,
            )
        if config.seventv.enabled:
            services.seventv = SevenTvClient(
                api_base=config.seventv.api_base,
                timeout=config.seventv.timeout_seconds,
                cache_seconds=config.seventv.cache_seconds,
            )
        if config.afk.enabled:
            services.afk = AfkTracker(resume_window_seconds=config.afk.resume_window_seconds)
        return services

    async def close(self) -> None:
        for client in (self.helix, self.weather, self.steam, self.seventv):
            if client:
                await client.close()


__all__ = [
    "AfkStatus",
    "AfkTracker",
    "BotServices",
    "CompletionProvider",
    "CompletionResult",
    "Emote",
    "HelixClient",
    "HelixError",
    "SevenTvClient",
    "SevenTvError",
    "SteamClient",
    "SteamError",
    "WeatherClient",
    "WeatherError",
    "WeatherReport",
    "format_away",
]

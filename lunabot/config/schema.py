"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReconnectConfig(BaseModel):
    """Transport reconnect backoff."""
    initial_delay_seconds: float = Field(1.0, gt=0)
    multiplier: float = Field(2.0, ge=1.0)
    max_delay_seconds: float = Field(30.0, gt=0)
    jitter: float = Field(0.2, ge=0.0, le=1.0)  # +/- fraction of the delay
    max_attempts: int = Field(0, ge=0)  # 0 = retry forever


class TwitchConfig(BaseModel):
    """Twitch chat connection configuration."""
    username: str = ""  # Bot account login
    oauth_token: str = ""  # User access token (with or without "oauth:")
    client_id: str = ""  # Needed for Helix moderation calls
    channels: list[str] = Field(default_factory=list)
    irc_url: str = "wss://irc-ws.chat.twitch.tv:443"
    api_base: str = "https://api.twitch.tv/helix"
    reconnect: ReconnectConfig = Field(default_factory=ReconnectConfig)

    @property
    def token(self) -> str:
        """Bare token without the IRC "oauth:" prefix."""
        return self.oauth_token.removeprefix("oauth:")


class RateLimitConfig(BaseModel):
    """Per-caller command frequency limit."""
    enabled: bool = True
    max_commands: int = Field(5, ge=1)
    window_ms: int = Field(60000, gt=0)


class CommandsConfig(BaseModel):
    """Command parsing and gating."""
    prefix: str = Field("#", min_length=1)
    case_sensitive: bool = False
    default_cooldown_ms: int = Field(3000, ge=0)
    cooldowns: dict[str, int] = Field(default_factory=dict)  # Per-command overrides
    disabled: list[str] = Field(default_factory=list)
    cooldown_cache_size: int = Field(10000, ge=1)
    reply_on_cooldown: bool = True  # False = drop cooldown hits silently
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)

    @field_validator("cooldowns")
    @classmethod
    def _non_negative(cls, value: dict[str, int]) -> dict[str, int]:
        for name, ms in value.items():
            if ms < 0:
                raise ValueError(f"cooldown for {name} must be non-negative")
        return value


class OutboundConfig(BaseModel):
    """Outbound message pacing."""
    min_spacing_ms: int = Field(1200, ge=1000)
    max_message_length: int = Field(500, ge=10)
    drain_on_shutdown: bool = True
    shutdown_timeout_seconds: float = Field(10.0, ge=0)


class AIConfig(BaseModel):
    """LLM completion commands."""
    api_key: str = ""
    api_base: str | None = None
    gpt_model: str = "openai/gpt-4o-mini"
    claude_model: str = "anthropic/claude-3-5-haiku-latest"
    fallback_models: list[str] = Field(default_factory=list)
    max_tokens: int = 300
    temperature: float = 0.7
    system_prompt: str = (
        "You are a friendly Twitch chat bot. Answer in one or two short sentences."
    )
    failure_cooldown_seconds: int = 300  # Time before retrying a failed model
    cooldown_ms: int = Field(10000, ge=0)


class WeatherConfig(BaseModel):
    """Weather lookup command."""
    api_key: str = ""  # OpenWeatherMap API key
    api_base: str = "https://api.openweathermap.org/data/2.5"
    units: Literal["metric", "imperial"] = "metric"
    timeout_seconds: float = 10.0


class SteamConfig(BaseModel):
    """Steam user and game lookups."""
    api_key: str = ""  # Steam Web API key
    api_base: str = "https://api.steampowered.com"
    store_base: str = "https://store.steampowered.com/api"
    timeout_seconds: float = 10.0
    cache_seconds: float = Field(300.0, ge=0)


class SevenTvConfig(BaseModel):
    """7TV emote lookups (no key needed)."""
    enabled: bool = True
    api_base: str = "https://7tv.io/v3"
    timeout_seconds: float = 10.0
    cache_seconds: float = Field(300.0, ge=0)


class AfkConfig(BaseModel):
    """AFK status commands."""
    enabled: bool = True
    resume_window_seconds: int = Field(1800, ge=0)  # How long rafk can restore a status


class LoggingConfig(BaseModel):
    """Log sinks."""
    level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: str = ""  # Empty = stderr only
    rotation: str = "10 MB"
    retention: str = "7 days"


class Config(BaseSettings):
    """Root configuration for LunaBot."""
    twitch: TwitchConfig = Field(default_factory=TwitchConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    outbound: OutboundConfig = Field(default_factory=OutboundConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    weather: WeatherConfig = Field(default_factory=WeatherConfig)
    steam: SteamConfig = Field(default_factory=SteamConfig)
    seventv: SevenTvConfig = Field(default_factory=SevenTvConfig)
    afk: AfkConfig = Field(default_factory=AfkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="LUNABOT_",
        env_nested_delimiter="__",
    )

    @property
    def has_twitch_credentials(self) -> bool:
        return bool(self.twitch.username and self.twitch.oauth_token)

    @property
    def has_ai(self) -> bool:
        return bool(self.ai.api_key or self.ai.api_base)

    @property
    def has_weather(self) -> bool:
        return bool(self.weather.api_key)

    @property
    def has_steam(self) -> bool:
        return bool(self.steam.api_key)

    @property
    def has_moderation(self) -> bool:
        return bool(self.twitch.client_id and self.twitch.oauth_token)

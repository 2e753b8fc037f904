"""
Tests for the configuration schema and loader.
"""

import json

import pytest
from pydantic import ValidationError

from lunabot.config.loader import camel_to_snake, load_config, save_config, snake_to_camel
from lunabot.config.schema import Config, OutboundConfig


class TestSchema:
    """Tests for defaults and validation."""

    def test_defaults(self):
        config = Config()
        assert config.commands.prefix == "#"
        assert config.commands.default_cooldown_ms == 3000
        assert config.commands.rate_limit.max_commands == 5
        assert config.outbound.min_spacing_ms == 1200
        assert config.twitch.reconnect.max_delay_seconds == 30.0

    def test_min_spacing_below_one_second_is_rejected(self):
        with pytest.raises(ValidationError):
            OutboundConfig(min_spacing_ms=999)

    def test_negative_cooldown_override_is_rejected(self):
        with pytest.raises(ValidationError):
            Config(commands={"cooldowns": {"ping": -5}})

    def test_token_strips_oauth_prefix(self):
        config = Config(twitch={"oauth_token": "oauth:abc123"})
        assert config.twitch.token == "abc123"

    def test_credential_flags(self):
        config = Config()
        assert not config.has_twitch_credentials
        assert not config.has_ai
        assert not config.has_weather
        assert not config.has_moderation

        config = Config(
            twitch={"username": "lunabot", "oauth_token": "t", "client_id": "c"},
            ai={"api_key": "k"},
            weather={"api_key": "w"},
        )
        assert config.has_twitch_credentials
        assert config.has_ai
        assert config.has_weather
        assert config.has_moderation

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LUNABOT_OUTBOUND__MIN_SPACING_MS", "1500")
        assert Config().outbound.min_spacing_ms == 1500


class TestKeyConversion:
    """Tests for camelCase <-> snake_case."""

    def test_round_names(self):
        assert camel_to_snake("minSpacingMs") == "min_spacing_ms"
        assert snake_to_camel("min_spacing_ms") == "minSpacingMs"
        assert camel_to_snake("prefix") == "prefix"


class TestLoader:
    """Tests for load_config and save_config."""

    def test_missing_file_gives_defaults(self, config_dir):
        config = load_config(config_dir / "missing.json")
        assert config.commands.prefix == "#"

    def test_load_camel_case_file(self, config_dir):
        path = config_dir / "config.json"
        path.write_text(json.dumps({
            "twitch": {"username": "lunabot", "oauthToken": "oauth:x", "channels": ["luna"]},
            "commands": {"defaultCooldownMs": 5000, "cooldowns": {"myCommand": 100}},
            "outbound": {"minSpacingMs": 1500},
        }))

        config = load_config(path)
        assert config.twitch.oauth_token == "oauth:x"
        assert config.commands.default_cooldown_ms == 5000
        assert config.commands.cooldowns == {"myCommand": 100}
        assert config.outbound.min_spacing_ms == 1500

    def test_invalid_value_raises(self, config_dir):
        path = config_dir / "config.json"
        path.write_text(json.dumps({"outbound": {"minSpacingMs": 200}}))
        with pytest.raises(ValidationError):
            load_config(path)

    def test_invalid_json_raises(self, config_dir):
        path = config_dir / "config.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_config(path)

    def test_save_writes_camel_case(self, config_dir):
        path = config_dir / "nested" / "config.json"
        config = Config(commands={"cooldowns": {"my_cmd": 100}})
        save_config(config, path)

        data = json.loads(path.read_text())
        assert "minSpacingMs" in data["outbound"]
        assert data["commands"]["defaultCooldownMs"] == 3000
        assert data["commands"]["cooldowns"] == {"my_cmd": 100}

        assert load_config(path).commands.cooldowns == {"my_cmd": 100}

"""Configuration module for LunaBot."""

from lunabot.config.loader import get_config_path, load_config, save_config
from lunabot.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]

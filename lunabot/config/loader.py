"""Configuration loading and saving."""

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger

from lunabot.config.schema import Config
from lunabot.utils.helpers import get_data_path

# Keys whose children are user data (command names), not schema fields
_OPAQUE_KEYS = {"cooldowns"}


def get_config_path() -> Path:
    """Default config file location (~/.lunabot/config.json)."""
    return get_data_path() / "config.json"


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def convert_keys(data: Any, convert) -> Any:
    """Recursively rename dict keys, leaving opaque sections untouched."""
    if isinstance(data, dict):
        result = {}
        for key, value in data.items():
            new_key = convert(key)
            if new_key in _OPAQUE_KEYS or key in _OPAQUE_KEYS:
                result[new_key] = value
            else:
                result[new_key] = convert_keys(value, convert)
        return result
    if isinstance(data, list):
        return [convert_keys(item, convert) for item in data]
    return data


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from a JSON file.

    Environment variables (LUNABOT_*) fill anything the file leaves out.
    A missing file yields the defaults.

    Args:
        config_path: Path to the file, default ~/.lunabot/config.json.

    Returns:
        The validated configuration.

    Raises:
        pydantic.ValidationError: If the file contents are invalid.
    """
    path = config_path or get_config_path()

    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return Config()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    return Config(**convert_keys(data, camel_to_snake))


def save_config(config: Config, config_path: Path | None = None) -> Path:
    """Write configuration to disk with camelCase keys."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_keys(config.model_dump(), snake_to_camel)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path

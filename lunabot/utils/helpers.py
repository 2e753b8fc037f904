"""Small shared helpers."""

from pathlib import Path


def normalize_channel(channel: str) -> str:
    """Canonical channel key: no leading '#', lower case."""
    return channel.strip().lstrip("#").lower()


def ensure_dir(path: Path) -> Path:
    """Create a directory (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Root directory for LunaBot config and logs (~/.lunabot)."""
    return ensure_dir(Path.home() / ".lunabot")

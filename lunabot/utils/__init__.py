"""Utility helpers."""

from lunabot.utils.helpers import normalize_channel, ensure_dir, get_data_path

__all__ = ["normalize_channel", "ensure_dir", "get_data_path"]

"""Small helpers for keeping a local copy of remote configuration."""

from __future__ import annotations

from pathlib import Path

from .consts import DATA_ID

CONFIG_CACHE_DIR = Path("tmp") / "nacos" / "config"


def create_config_cache(content: str) -> Path | None:
    """Write ``content`` to the local configuration cache file.

    Returns the path written, or None if the file could not be written.
    """
    try:
        CONFIG_CACHE_DIR.mkdir(parents=True, exist_ok=True)
        path = CONFIG_CACHE_DIR / DATA_ID
        path.write_text(content, encoding="utf-8")
    except OSError:
        return None
    return path
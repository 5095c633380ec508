# config_paths.py
# -----------------------------------------------------
# Shared filesystem paths and sitemap settings.
# Safe to import from helpers (no circular imports).
# -----------------------------------------------------

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from helpers.sitemap_utils import DEFAULT_INDEX_NAME, DEFAULT_LIMIT, DEFAULT_MAP_NAME

# Base and directories
BASE_DIR: Path = Path(__file__).resolve().parent
STATIC_DIR: Path = BASE_DIR / "static"
SITEMAP_DIR: Path = STATIC_DIR / "sitemaps"
LOG_DIR: Path = BASE_DIR / "logs"

DEFAULT_BASE_URL = "http://localhost:8000/sitemap"


@dataclass(frozen=True)
class SitemapSettings:
    output_dir: Path = SITEMAP_DIR
    base_url: str = DEFAULT_BASE_URL
    index_name: str = DEFAULT_INDEX_NAME
    map_name: str = DEFAULT_MAP_NAME
    limit: int = DEFAULT_LIMIT
    log_level: str = "INFO"
    log_dir: Path = LOG_DIR


def _parse_limit(raw: str) -> int:
    try:
        limit = int(raw)
    except ValueError:
        raise ValueError(f"SITEMAP_LIMIT must be an integer, got {raw!r}") from None
    if limit < 1:
        raise ValueError(f"SITEMAP_LIMIT must be >= 1, got {limit}")
    return limit


def load_settings(env: Optional[Mapping[str, str]] = None) -> SitemapSettings:
    """Build settings from environment variables (SITEMAP_*, LOG_*)."""
    env = os.environ if env is None else env
    return SitemapSettings(
        output_dir=Path(env.get("SITEMAP_OUTPUT_DIR", str(SITEMAP_DIR))),
        base_url=env.get("SITEMAP_BASE_URL", DEFAULT_BASE_URL),
        index_name=env.get("SITEMAP_INDEX_NAME", DEFAULT_INDEX_NAME),
        map_name=env.get("SITEMAP_MAP_NAME", DEFAULT_MAP_NAME),
        limit=_parse_limit(env.get("SITEMAP_LIMIT", str(DEFAULT_LIMIT))),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        log_dir=Path(env.get("LOG_DIR", str(LOG_DIR))),
    )

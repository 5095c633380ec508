# helpers/sitemap_utils.py

from __future__ import annotations

import gzip
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
from xml.sax.saxutils import escape, quoteattr

logger = logging.getLogger(__name__)

EOL = "\n"
XML_EXT = ".xml"
COMPRESS_EXT = ".gz"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"

DEFAULT_INDEX_NAME = "idx"
DEFAULT_MAP_NAME = "map"
DEFAULT_LIMIT = 50000

LastMod = Union[int, float, datetime, date, None]


class Frequency(str, Enum):
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


FREQUENCY_VALUES = {f.value for f in Frequency}


@dataclass
class UrlRecord:
    url: str
    priority: float
    frequency: str
    lastmod: Optional[datetime] = None
    deep_linking: Optional[str] = None


# ---------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------
def to_instant(value: LastMod) -> datetime:
    """Normalize a lastmod input into an aware datetime. None means now."""
    if value is None:
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        # naive datetimes are read as local time
        return value if value.tzinfo else value.astimezone()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).astimezone()
    return datetime.fromtimestamp(value, tz=timezone.utc)


def format_lastmod(value: datetime, tz: Optional[tzinfo] = None) -> str:
    """ISO 8601 with explicit offset, e.g. 2023-11-14T22:13:20+00:00"""
    return value.astimezone(tz).isoformat(timespec="seconds")


def format_priority(value: float) -> str:
    return format(float(value), ".14g")


def _frequency_value(frequency: Union[Frequency, str]) -> str:
    if isinstance(frequency, Frequency):
        return frequency.value
    value = str(frequency)
    if value not in FREQUENCY_VALUES:
        logger.debug("Unknown changefreq %r passed through as-is", value)
    return value


def chunked(items: List[UrlRecord], size: int) -> Iterable[List[UrlRecord]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


# ---------------------------------------------------------------
# Templates
# ---------------------------------------------------------------
def render_url(record: UrlRecord, tz: Optional[tzinfo] = None) -> str:
    out = f"<url><loc>{escape(record.url)}</loc>"

    # Android deep link
    if record.deep_linking:
        href = quoteattr(f"android-app://{record.deep_linking}")
        out += f'<xhtml:link rel="alternate" href={href} />'

    out += f"<changefreq>{escape(record.frequency)}</changefreq>"
    out += f"<priority>{format_priority(record.priority)}</priority>"

    if record.lastmod:
        out += f"<lastmod>{format_lastmod(record.lastmod, tz)}</lastmod>"

    return out + "</url>"


def render_urlset(records: Iterable[UrlRecord], tz: Optional[tzinfo] = None) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{SITEMAP_NS}" xmlns:xhtml="{XHTML_NS}">',
    ]
    lines.extend(render_url(r, tz) for r in records)
    lines.append("</urlset>")
    return EOL.join(lines)


def render_index(map_urls: Iterable[str], generated_at: str) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<sitemapindex xmlns="{SITEMAP_NS}">',
    ]
    for url in map_urls:
        lines.append(
            f"<sitemap><loc>{escape(url)}</loc><lastmod>{generated_at}</lastmod></sitemap>"
        )
    lines.append("</sitemapindex>")
    return EOL.join(lines)


def replace_file(path: Path, data: bytes) -> None:
    """Write to a temp file next to *path*, then swap it in with os.replace."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        # mkstemp creates 0600; chunks are served as static files
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def write_gz(path: Path, content: str) -> None:
    # mtime=0 keeps the compressed bytes stable between identical runs
    replace_file(path, gzip.compress(content.encode("utf-8"), mtime=0))


# ---------------------------------------------------------------
# Creator
# ---------------------------------------------------------------
class SitemapCreator:
    """
    Collects URL records and writes them out as gzip sitemap chunks
    plus an uncompressed sitemap index.

    Records are keyed by path (one leading slash stripped). Adding the same
    path again keeps the highest priority and the latest lastmod, while
    changefreq and the deep link follow the most recent call.
    """

    def __init__(
        self,
        output_dir: Union[Path, str],
        base_url: str,
        index_name: str = DEFAULT_INDEX_NAME,
        map_name: str = DEFAULT_MAP_NAME,
        limit: int = DEFAULT_LIMIT,
        tz: Optional[tzinfo] = None,
    ):
        if limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")
        self.output_dir = Path(output_dir)
        self.base_url = base_url.rstrip("/") + "/"
        self.index_name = index_name
        self.map_name = map_name
        self.limit = limit
        self.tz = tz
        self._urls: Dict[str, UrlRecord] = {}

    def __len__(self) -> int:
        return len(self._urls)

    def __contains__(self, path: str) -> bool:
        return self._key(path) in self._urls

    @staticmethod
    def _key(path: str) -> str:
        return path[1:] if path.startswith("/") else path

    # -----------------------------------------------------------
    def add(
        self,
        path: str,
        priority: float = 0.5,
        frequency: Union[Frequency, str] = Frequency.MONTHLY,
        lastmod: LastMod = None,
        deep_linking: Optional[str] = None,
    ) -> None:
        """Add a URL, merging with any record already held for the same path."""
        key = self._key(path)
        instant = to_instant(lastmod)
        prev = self._urls.get(key)

        if prev is not None:
            if prev.priority >= priority:
                priority = prev.priority
            if prev.lastmod is not None and prev.lastmod >= instant:
                instant = prev.lastmod

        self._urls[key] = UrlRecord(
            url=self.base_url + key,
            priority=priority,
            frequency=_frequency_value(frequency),
            lastmod=instant,
            deep_linking=deep_linking,
        )

    def get(self, path: str) -> Optional[UrlRecord]:
        return self._urls.get(self._key(path))

    def records(self) -> List[UrlRecord]:
        return [self._urls[k] for k in sorted(self._urls)]

    # -----------------------------------------------------------
    def chunk_name(self, i: int) -> str:
        return f"{self.map_name}{i}{XML_EXT}{COMPRESS_EXT}"

    def chunk_path(self, i: int) -> Path:
        return self.output_dir / self.chunk_name(i)

    def chunk_url(self, i: int) -> str:
        return self.base_url + self.chunk_name(i)

    def chunk_count(self) -> int:
        return -(-len(self._urls) // self.limit)

    @property
    def index_path(self) -> Path:
        return self.output_dir / f"{self.index_name}{XML_EXT}"

    @property
    def index_url(self) -> str:
        return f"{self.base_url}{self.index_name}{XML_EXT}"

    # -----------------------------------------------------------
    def generate(self) -> None:
        """
        Write every chunk, drop chunk files left over from earlier runs,
        then write the index. Any OSError aborts the run as-is.
        """
        records = self.records()

        # --- 1. Map files ---
        map_paths: List[Path] = []
        map_urls: List[str] = []
        for i, chunk in enumerate(chunked(records, self.limit)):
            map_path = self.chunk_path(i)
            write_gz(map_path, render_urlset(chunk, self.tz))
            map_paths.append(map_path)
            map_urls.append(self.chunk_url(i))
            logger.debug("Wrote %s with %d URLs", map_path, len(chunk))

        # --- 2. Clean previous map files ---
        removed = self._remove_stale({p.name for p in map_paths})

        # --- 3. Index ---
        generated_at = format_lastmod(datetime.now(timezone.utc), self.tz)
        replace_file(self.index_path, render_index(map_urls, generated_at).encode("utf-8"))

        logger.info(
            "🗺️ Sitemap generated: %d URLs in %d chunk(s), %d stale removed → %s",
            len(records), len(map_paths), removed, self.index_path,
        )

    def _remove_stale(self, keep: set) -> int:
        removed = 0
        for entry in sorted(self.output_dir.iterdir()):
            if not entry.name.startswith(self.map_name) or entry.name in keep:
                continue
            if not entry.is_file():
                continue
            entry.unlink()
            removed += 1
            logger.debug("Removed stale sitemap file %s", entry)
        return removed

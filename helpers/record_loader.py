# helpers/record_loader.py
"""
Bulk loading of sitemap records from CSV / JSON files (pandas).
"""
from __future__ import annotations

import logging
import numbers
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from helpers.sitemap_utils import Frequency, SitemapCreator

logger = logging.getLogger(__name__)

COLUMN_ALIASES = {
    "changefreq": "frequency",
    "deepLinking": "deep_linking",
}
DEFAULT_PRIORITY = 0.5


def read_records_frame(source: Union[Path, str]) -> pd.DataFrame:
    """Read a records file into a DataFrame; format is picked by suffix."""
    source = Path(source)
    suffix = source.suffix.lower()

    if suffix == ".csv":
        df = pd.read_csv(source, dtype=str, skipinitialspace=True)
    elif suffix in (".json", ".jsonl"):
        df = pd.read_json(
            source,
            orient="records",
            lines=suffix == ".jsonl",
            dtype=False,
            convert_dates=False,
        )
    else:
        raise ValueError(f"Unsupported records file type: {source.name}")

    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if v not in df.columns})
    if "path" not in df.columns:
        raise ValueError(f"Records file {source.name} has no 'path' column")
    return df


def _missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_lastmod(value) -> Optional[Union[float, datetime]]:
    """Epoch seconds stay numeric, anything else goes through pandas.

    Naive timestamps stay naive so SitemapCreator.add reads them as local time.
    """
    if _missing(value):
        return None
    if isinstance(value, numbers.Real):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    ts = pd.Timestamp(text)
    return ts.to_pydatetime()


def add_frame(creator: SitemapCreator, df: pd.DataFrame) -> int:
    """Feed every row of *df* into creator.add(); returns the number of rows used."""
    added = 0
    for row in df.to_dict(orient="records"):
        path = row.get("path")
        if _missing(path):
            logger.debug("Skipping record without path: %s", row)
            continue

        priority = row.get("priority")
        frequency = row.get("frequency")
        deep_linking = row.get("deep_linking")

        creator.add(
            str(path).strip(),
            priority=DEFAULT_PRIORITY if _missing(priority) else float(priority),
            frequency=Frequency.MONTHLY if _missing(frequency) else str(frequency).strip(),
            lastmod=parse_lastmod(row.get("lastmod")),
            deep_linking=None if _missing(deep_linking) else str(deep_linking).strip(),
        )
        added += 1

    return added


def load_records(creator: SitemapCreator, source: Union[Path, str]) -> int:
    df = read_records_frame(source)
    added = add_frame(creator, df)
    logger.info("📥 Loaded %d records from %s", added, Path(source).name)
    return added

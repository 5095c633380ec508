# sitemap_tool.py
# ---------------------------------------------------------------
# Command line front-end: collect paths / a records file and
# write the chunked sitemap + index into the output directory.
# ---------------------------------------------------------------

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from config_paths import LOG_DIR, load_settings
from helpers.record_loader import load_records
from helpers.sitemap_utils import Frequency, SitemapCreator
from logging_setup import setup_logging

logger = logging.getLogger("sitemap.cli")


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    p = argparse.ArgumentParser(description="Generate gzip sitemap chunks and a sitemap index")
    p.add_argument("--out", default=str(settings.output_dir), help="output directory")
    p.add_argument("--base", default=settings.base_url, help="public base URL, e.g. https://fly-tlv.com")
    p.add_argument("--index-name", default=settings.index_name)
    p.add_argument("--map-name", default=settings.map_name)
    p.add_argument("--limit", type=int, default=settings.limit, help="max URLs per chunk")
    p.add_argument("--records", help="CSV / JSON file with path,priority,frequency,lastmod,deep_linking")
    p.add_argument("--priority", type=float, default=0.5, help="priority for positional paths")
    p.add_argument(
        "--frequency",
        default=Frequency.MONTHLY.value,
        help="changefreq for positional paths (always, hourly, daily, weekly, monthly, yearly, never)",
    )
    p.add_argument("--log-level", default=settings.log_level)
    p.add_argument("--log-dir", default=str(settings.log_dir))
    p.add_argument("paths", nargs="*", help="e.g. / /about /privacy")
    return p


def run(args: argparse.Namespace) -> int:
    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)

    creator = SitemapCreator(
        out,
        args.base,
        index_name=args.index_name,
        map_name=args.map_name,
        limit=args.limit,
    )

    if args.records:
        load_records(creator, args.records)

    for path in args.paths:
        creator.add(path, priority=args.priority, frequency=args.frequency)

    creator.generate()
    logger.info("Wrote %s (%d URLs)", creator.index_path, len(creator))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    try:
        parser = build_parser()
    except ValueError as e:
        # bad SITEMAP_* environment; log with default settings
        setup_logging(log_dir=os.environ.get("LOG_DIR", str(LOG_DIR)))
        logger.error("❌ Invalid sitemap settings: %s", e)
        return 1

    args = parser.parse_args(argv)
    setup_logging(log_level=args.log_level, log_dir=args.log_dir)

    try:
        return run(args)
    except (OSError, ValueError) as e:
        logger.error("❌ Sitemap generation failed: %s", e, exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

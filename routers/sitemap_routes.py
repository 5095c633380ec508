# routers/sitemap_routes.py
# ---------------------------------------------------------------
# Sitemap API: build chunks + index from posted records and serve
# the generated files from the configured output directory.
# ---------------------------------------------------------------

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime
from functools import lru_cache
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from config_paths import SitemapSettings, load_settings
from helpers.sitemap_utils import Frequency, SitemapCreator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sitemap", tags=["sitemap"])

# process-wide: one generation at a time, whatever the output directory
_generate_lock = threading.Lock()


@lru_cache(maxsize=1)
def get_settings() -> SitemapSettings:
    return load_settings()


class UrlIn(BaseModel):
    path: str
    priority: float = 0.5
    frequency: str = Frequency.MONTHLY.value
    lastmod: Optional[Union[datetime, float]] = None
    deep_linking: Optional[str] = None


class GenerateRequest(BaseModel):
    urls: List[UrlIn] = Field(default_factory=list)


class GenerateResponse(BaseModel):
    index_url: str
    chunk_urls: List[str]
    count: int


def build_creator(settings: SitemapSettings) -> SitemapCreator:
    return SitemapCreator(
        settings.output_dir,
        settings.base_url,
        index_name=settings.index_name,
        map_name=settings.map_name,
        limit=settings.limit,
    )


# ---------------------------------------------------------------
# Generate
# ---------------------------------------------------------------
@router.post("/generate", response_model=GenerateResponse)
def generate_sitemap(body: GenerateRequest, settings: SitemapSettings = Depends(get_settings)):
    creator = build_creator(settings)
    for u in body.urls:
        creator.add(
            u.path,
            priority=u.priority,
            frequency=u.frequency,
            lastmod=u.lastmod,
            deep_linking=u.deep_linking,
        )

    with _generate_lock:
        settings.output_dir.mkdir(parents=True, exist_ok=True)
        creator.generate()

    chunk_urls = [creator.chunk_url(i) for i in range(creator.chunk_count())]
    logger.info("🧭 Generated sitemap with %d URLs via API", len(creator))
    return GenerateResponse(index_url=creator.index_url, chunk_urls=chunk_urls, count=len(creator))


# ---------------------------------------------------------------
# Serve generated files
# ---------------------------------------------------------------
@router.get("/{filename}", include_in_schema=False)
def sitemap_file(filename: str, settings: SitemapSettings = Depends(get_settings)):
    chunk_re = re.compile(rf"^{re.escape(settings.map_name)}\d+\.xml\.gz$")

    if filename == f"{settings.index_name}.xml":
        media_type = "application/xml"
    elif chunk_re.match(filename):
        media_type = "application/gzip"
    else:
        raise HTTPException(status_code=404, detail="Not Found")

    path = settings.output_dir / filename
    if not path.is_file():
        logger.debug("Sitemap file not generated yet: %s", path)
        raise HTTPException(status_code=404, detail="Not Found")

    return FileResponse(path, media_type=media_type)

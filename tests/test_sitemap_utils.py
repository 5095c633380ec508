import gzip
import os
import re
from datetime import date, datetime, timedelta, timezone

import pytest

from helpers.sitemap_utils import (
    Frequency,
    SitemapCreator,
    UrlRecord,
    format_lastmod,
    format_priority,
    render_index,
    render_urlset,
    to_instant,
)

LOC_RE = re.compile(r"<loc>([^<]+)</loc>")


def _read_chunk(path):
    with gzip.open(path, "rb") as f:
        return f.read().decode("utf-8")


def _creator(out_dir, **kw):
    kw.setdefault("tz", timezone.utc)
    return SitemapCreator(out_dir, "https://x.test", **kw)


def test_priority_keeps_maximum_in_either_order(out_dir):
    a = _creator(out_dir)
    a.add("page", 0.3)
    a.add("page", 0.7)

    b = _creator(out_dir)
    b.add("page", 0.7)
    b.add("page", 0.3)

    assert a.get("page").priority == 0.7
    assert b.get("page").priority == 0.7


def test_lastmod_keeps_latest_in_either_order(out_dir):
    t1, t2 = 1700000000, 1700003600
    a = _creator(out_dir)
    a.add("page", lastmod=t1)
    a.add("page", lastmod=t2)

    b = _creator(out_dir)
    b.add("page", lastmod=t2)
    b.add("page", lastmod=t1)

    expected = datetime.fromtimestamp(t2, tz=timezone.utc)
    assert a.get("page").lastmod == expected
    assert b.get("page").lastmod == expected


def test_lastmod_compares_instants_across_offsets(out_dir):
    c = _creator(out_dir)
    later = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    # 11:30+02:00 is 09:30 UTC, earlier even though it sorts later as text
    earlier = datetime(2024, 1, 1, 11, 30, tzinfo=timezone(timedelta(hours=2)))

    c.add("page", lastmod=later)
    c.add("page", lastmod=earlier)

    assert c.get("page").lastmod == later


def test_frequency_and_deep_link_follow_latest_call(out_dir):
    c = _creator(out_dir)
    c.add("page", 0.9, Frequency.DAILY, 1800000000, deep_linking="com.app/page")
    c.add("page", 0.1, "yearly", 1700000000)

    rec = c.get("page")
    assert rec.frequency == "yearly"
    assert rec.deep_linking is None
    assert rec.priority == 0.9
    assert rec.lastmod == datetime.fromtimestamp(1800000000, tz=timezone.utc)


def test_merge_example(out_dir):
    c = _creator(out_dir)
    c.add("p", 0.9, "daily", 1700000000)
    c.add("p", 0.2, "weekly", 1800000000)

    rec = c.get("p")
    assert rec.priority == 0.9
    assert rec.frequency == "weekly"
    assert format_lastmod(rec.lastmod, timezone.utc) == format_lastmod(
        datetime.fromtimestamp(1800000000, tz=timezone.utc), timezone.utc
    )


def test_single_leading_slash_is_stripped(out_dir):
    c = _creator(out_dir)
    c.add("/about")
    c.add("about")
    c.add("//double")

    assert len(c) == 2
    assert "about" in c
    assert c.get("//double").url == "https://x.test//double"


def test_unknown_frequency_is_passed_through(out_dir):
    c = _creator(out_dir)
    c.add("page", frequency="fortnightly")
    c.generate()

    assert "<changefreq>fortnightly</changefreq>" in _read_chunk(out_dir / "map0.xml.gz")


def test_loc_is_base_url_plus_path(out_dir):
    c = SitemapCreator(out_dir, "https://x.test/")
    c.add("a/b")
    c.generate()

    assert LOC_RE.findall(_read_chunk(out_dir / "map0.xml.gz")) == ["https://x.test/a/b"]


def test_chunk_layout(out_dir):
    c = _creator(out_dir, limit=3)
    paths = [f"p{i:02d}" for i in range(7)]
    for p in reversed(paths):
        c.add(p)
    c.generate()

    chunks = sorted(out_dir.glob("map*.xml.gz"))
    assert [p.name for p in chunks] == ["map0.xml.gz", "map1.xml.gz", "map2.xml.gz"]
    assert c.chunk_count() == 3

    locs = [LOC_RE.findall(_read_chunk(out_dir / f"map{i}.xml.gz")) for i in range(3)]
    assert [len(l) for l in locs] == [3, 3, 1]
    for i, p in enumerate(paths):
        assert locs[i // 3][i % 3] == f"https://x.test/{p}"


def test_chunk_document_format(out_dir):
    c = _creator(out_dir)
    c.add("app", 1.0, Frequency.DAILY, 1700000000, deep_linking="com.example/app")
    c.add("plain", 0.5, Frequency.WEEKLY, 1700000000)
    c.generate()

    assert _read_chunk(out_dir / "map0.xml.gz") == "\n".join([
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" xmlns:xhtml="http://www.w3.org/1999/xhtml">',
        '<url><loc>https://x.test/app</loc>'
        '<xhtml:link rel="alternate" href="android-app://com.example/app" />'
        '<changefreq>daily</changefreq><priority>1</priority>'
        '<lastmod>2023-11-14T22:13:20+00:00</lastmod></url>',
        '<url><loc>https://x.test/plain</loc><changefreq>weekly</changefreq>'
        '<priority>0.5</priority><lastmod>2023-11-14T22:13:20+00:00</lastmod></url>',
        '</urlset>',
    ])


def test_index_lists_every_chunk_with_shared_timestamp(out_dir):
    c = _creator(out_dir, limit=2, index_name="sitemap")
    for i in range(5):
        c.add(f"p{i}")
    c.generate()

    index = (out_dir / "sitemap.xml").read_text(encoding="utf-8")
    assert LOC_RE.findall(index) == [f"https://x.test/map{i}.xml.gz" for i in range(3)]
    stamps = set(re.findall(r"<lastmod>([^<]+)</lastmod>", index))
    assert len(stamps) == 1
    assert index.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<sitemapindex')
    assert index.endswith("</sitemapindex>")


def test_second_smaller_run_removes_stale_chunks(out_dir):
    (out_dir / "robots.txt").write_text("User-agent: *", encoding="utf-8")

    first = _creator(out_dir, limit=2)
    for i in range(7):
        first.add(f"p{i}")
    first.generate()
    assert len(list(out_dir.glob("map*.xml.gz"))) == 4

    (out_dir / "map_notes.txt").write_text("shares the prefix", encoding="utf-8")

    second = _creator(out_dir, limit=2)
    for i in range(3):
        second.add(f"p{i}")
    second.generate()

    names = sorted(p.name for p in out_dir.iterdir())
    assert names == ["idx.xml", "map0.xml.gz", "map1.xml.gz", "robots.txt"]


def test_empty_run_writes_empty_index_and_clears_chunks(out_dir):
    first = _creator(out_dir)
    first.add("page")
    first.generate()
    assert (out_dir / "map0.xml.gz").exists()

    _creator(out_dir).generate()

    assert list(out_dir.glob("map*")) == []
    assert (out_dir / "idx.xml").read_text(encoding="utf-8") == "\n".join([
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        "</sitemapindex>",
    ])


def test_identical_runs_produce_identical_chunks(out_dir):
    c = _creator(out_dir)
    c.add("page", lastmod=1700000000)
    c.generate()
    first = (out_dir / "map0.xml.gz").read_bytes()
    c.generate()

    assert (out_dir / "map0.xml.gz").read_bytes() == first


def test_missing_output_dir_propagates_os_error(tmp_path):
    c = _creator(tmp_path / "missing")
    c.add("page")

    with pytest.raises(OSError):
        c.generate()


def test_invalid_limit_rejected(out_dir):
    with pytest.raises(ValueError):
        SitemapCreator(out_dir, "https://x.test", limit=0)


def test_public_urls_and_paths(out_dir):
    c = SitemapCreator(str(out_dir) + "/", "https://x.test///", index_name="i", map_name="m")

    assert c.index_path == out_dir / "i.xml"
    assert c.index_url == "https://x.test/i.xml"
    assert c.chunk_path(2) == out_dir / "m2.xml.gz"
    assert c.chunk_url(2) == "https://x.test/m2.xml.gz"


def test_render_escapes_markup():
    rec = UrlRecord(url="https://x.test/a?b=1&c=2", priority=0.25, frequency="daily")
    xml = render_urlset([rec])

    assert "<loc>https://x.test/a?b=1&amp;c=2</loc>" in xml
    assert "<lastmod>" not in xml
    assert "<priority>0.25</priority>" in xml


def test_render_index_empty():
    assert render_index([], "2024-01-01T00:00:00+00:00").count("<sitemap>") == 0


def test_value_helpers():
    assert format_priority(1.0) == "1"
    assert format_priority(0.8) == "0.8"
    assert to_instant(1700000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert to_instant(date(2024, 5, 1)).tzinfo is not None
    assert to_instant(None).tzinfo is not None


def test_computed_priority_renders_without_float_noise(out_dir):
    c = _creator(out_dir)
    c.add("p", 0.1 + 0.2)

    assert "<priority>0.3</priority>" in render_urlset(c.records())
    assert format_priority(0.1 + 0.2) == "0.3"


def test_rewritten_chunk_is_swapped_not_truncated(out_dir):
    c = _creator(out_dir)
    c.add("old", lastmod=1700000000)
    c.generate()
    chunk = out_dir / "map0.xml.gz"
    before = chunk.read_bytes()

    with open(chunk, "rb") as reader:
        c.add("new", lastmod=1700000000)
        c.generate()
        # a reader that opened the old file still sees it whole
        assert reader.read() == before

    assert "https://x.test/new" in _read_chunk(chunk)
    assert sorted(p.name for p in out_dir.iterdir()) == ["idx.xml", "map0.xml.gz"]


def test_failed_swap_leaves_no_temp_files(out_dir, monkeypatch):
    c = _creator(out_dir)
    c.add("page")

    def fail(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", fail)
    with pytest.raises(OSError):
        c.generate()

    assert list(out_dir.iterdir()) == []

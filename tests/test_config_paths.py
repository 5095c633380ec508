from pathlib import Path

import pytest

from config_paths import SITEMAP_DIR, load_settings


def test_defaults():
    s = load_settings({})

    assert s.output_dir == SITEMAP_DIR
    assert s.index_name == "idx"
    assert s.map_name == "map"
    assert s.limit == 50000
    assert s.log_level == "INFO"


def test_environment_overrides(tmp_path):
    s = load_settings({
        "SITEMAP_OUTPUT_DIR": str(tmp_path),
        "SITEMAP_BASE_URL": "https://x.test",
        "SITEMAP_INDEX_NAME": "sitemap",
        "SITEMAP_MAP_NAME": "part",
        "SITEMAP_LIMIT": "10",
        "LOG_LEVEL": "debug",
    })

    assert s.output_dir == Path(tmp_path)
    assert s.base_url == "https://x.test"
    assert (s.index_name, s.map_name, s.limit) == ("sitemap", "part", 10)
    assert s.log_level == "DEBUG"


@pytest.mark.parametrize("raw", ["ten", "0", "-5"])
def test_invalid_limit(raw):
    with pytest.raises(ValueError):
        load_settings({"SITEMAP_LIMIT": raw})

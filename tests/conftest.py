import os
import tempfile

import pytest

# keep log files of the app module out of the source tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="sitemap-logs-"))


@pytest.fixture
def out_dir(tmp_path):
    d = tmp_path / "sitemaps"
    d.mkdir()
    return d

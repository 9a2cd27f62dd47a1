"""
Shared test setup.

Celery is pointed at in-memory transports before the application is imported,
so tests never need a running broker.
"""

import os
import tempfile

os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("TEMP_DIR", os.path.join(tempfile.gettempdir(), "thesis_diff_tests"))
os.environ.setdefault("LOG_FORMAT", "text")

import fitz  # noqa: E402
import pytest  # noqa: E402

from thesis_diff.core.config import get_settings  # noqa: E402


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def make_pdf(tmp_path):
    """Write a PDF with one page per text block and return its path."""

    def _make(name: str, *pages: str):
        path = tmp_path / name
        doc = fitz.open()
        for text in pages:
            page = doc.new_page()
            page.insert_text((72, 72), text, fontsize=11)
        doc.save(str(path))
        doc.close()
        return path

    return _make

"""Shared fixtures for the techblog tests."""

import textwrap
from datetime import datetime, timezone
from pathlib import Path

import pytest

from techblog.config import load_config
from techblog.content import Document


def _write_doc(root: Path, rel: str, front: str, body: str = "Body text.") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{textwrap.dedent(front).strip()}\n---\n{body}\n", encoding="utf-8")
    return path


@pytest.fixture
def write_doc():
    """write_doc(root, 'posts/x.md', 'title: X\\ndate: 2024-01-02', body) -> Path"""
    return _write_doc


@pytest.fixture
def site_dir(tmp_path):
    (tmp_path / "content").mkdir()
    return tmp_path


@pytest.fixture
def content_dir(site_dir):
    return site_dir / "content"


@pytest.fixture
def cfg(site_dir):
    return load_config(site_dir)


@pytest.fixture
def make_doc():
    def make(
        doc_id,
        title=None,
        date=(2024, 1, 1),
        tags=(),
        layout="post",
        series=None,
        series_part=None,
        permalink=None,
        body="Body text.",
    ):
        return Document(
            id=doc_id,
            source=Path(f"/content/{doc_id}.md"),
            layout=layout,
            title=title or doc_id.replace("-", " ").title(),
            date=datetime(*date, tzinfo=timezone.utc),
            tags=tuple(tags),
            permalink=permalink or f"/{doc_id}/",
            body_markdown=body,
            series=series,
            series_part=series_part,
        )

    return make

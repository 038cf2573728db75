"""Tests for front-matter parsing and Document loading."""

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from techblog.content import (
    collect_documents,
    load_document,
    output_path_for,
    parse_date,
    slugify,
    split_front_matter,
)
from techblog.errors import MalformedMetadataError

SRC = Path("post.md")


class TestSplitFrontMatter:
    """Test splitting the metadata header from the Markdown body."""

    def test_valid_header(self):
        meta, body = split_front_matter("---\ntitle: Hello\ntags: [a, b]\n---\n# Body\n", SRC)

        assert meta == {"title": "Hello", "tags": ["a", "b"]}
        assert body == "# Body"

    def test_missing_header(self):
        with pytest.raises(MalformedMetadataError) as exc_info:
            split_front_matter("# Just markdown\n", SRC)

        assert exc_info.value.field == "front matter"
        assert exc_info.value.path == SRC

    def test_unclosed_header(self):
        with pytest.raises(MalformedMetadataError, match="not closed"):
            split_front_matter("---\ntitle: Hello\n# Body\n", SRC)

    def test_invalid_yaml(self):
        with pytest.raises(MalformedMetadataError, match="invalid YAML"):
            split_front_matter("---\ntitle: [unclosed\n---\nbody\n", SRC)

    def test_header_must_be_mapping(self):
        with pytest.raises(MalformedMetadataError, match="mapping"):
            split_front_matter("---\n- a\n- b\n---\nbody\n", SRC)

    def test_empty_header_is_empty_mapping(self):
        meta, body = split_front_matter("---\n---\nbody\n", SRC)

        assert meta == {}
        assert body == "body"


class TestParseDate:
    """Test publish date normalization."""

    def test_yaml_date(self):
        assert parse_date(date(2024, 1, 2), SRC) == datetime(2024, 1, 2, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        dt = parse_date(datetime(2024, 1, 2, 10, 30), SRC)

        assert dt.tzinfo == timezone.utc
        assert dt.hour == 10

    def test_string_with_offset(self):
        dt = parse_date("2024-01-02 10:30:00 +0200", SRC)

        assert dt.utcoffset() == timedelta(hours=2)
        assert dt.minute == 30

    def test_iso_string(self):
        assert parse_date("2024-01-02", SRC) == datetime(2024, 1, 2, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["not a date", "", 42, None])
    def test_unparsable(self, value):
        with pytest.raises(MalformedMetadataError) as exc_info:
            parse_date(value, SRC)

        assert exc_info.value.field == "date"


class TestLoadDocument:
    """Test building a Document from a content file."""

    def test_post_defaults(self, content_dir, cfg, write_doc):
        path = write_doc(
            content_dir,
            "posts/2024-01-02-eks-ingress.md",
            """
            title: EKS Ingress
            date: 2024-01-02
            tags: [Kubernetes, AWS]
            categories: [aws, Cloud]
            author: someone
            """,
            "Load balancer setup.",
        )

        doc = load_document(path, content_dir, cfg)

        assert doc.id == "posts/2024-01-02-eks-ingress"
        assert doc.layout == "post"
        assert doc.title == "EKS Ingress"
        assert doc.permalink == "/2024/01/02/eks-ingress/"
        assert doc.tags == ("Kubernetes", "AWS", "Cloud")
        assert doc.body_markdown == "Load balancer setup."
        assert doc.series is None
        assert doc.extra == {"author": "someone"}

    def test_page_permalink(self, content_dir, cfg, write_doc):
        path = write_doc(content_dir, "about.md", "layout: page\ntitle: About\ndate: 2024-01-01")

        assert load_document(path, content_dir, cfg).permalink == "/about/"

    def test_permalink_override(self, content_dir, cfg, write_doc):
        path = write_doc(content_dir, "x.md", "title: X\ndate: 2024-01-01\npermalink: /custom/path.html")

        doc = load_document(path, content_dir, cfg)

        assert doc.permalink == "/custom/path.html"
        assert doc.output_path == "custom/path.html"

    @pytest.mark.parametrize("permalink", ["relative/", "/a/../b/"])
    def test_bad_permalink(self, content_dir, cfg, write_doc, permalink):
        path = write_doc(content_dir, "x.md", f"title: X\ndate: 2024-01-01\npermalink: {permalink}")

        with pytest.raises(MalformedMetadataError) as exc_info:
            load_document(path, content_dir, cfg)

        assert exc_info.value.field == "permalink"

    def test_comma_separated_tags(self, content_dir, cfg, write_doc):
        path = write_doc(content_dir, "x.md", "title: X\ndate: 2024-01-01\ntags: aws, Security , aws")

        assert load_document(path, content_dir, cfg).tags == ("aws", "Security")

    @pytest.mark.parametrize("missing", ["title", "date"])
    def test_required_fields(self, content_dir, cfg, write_doc, missing):
        fields = {"title": "title: X", "date": "date: 2024-01-01"}
        del fields[missing]
        path = write_doc(content_dir, "x.md", "\n".join(fields.values()))

        with pytest.raises(MalformedMetadataError) as exc_info:
            load_document(path, content_dir, cfg)

        assert exc_info.value.field == missing
        assert exc_info.value.path == path
        assert str(path) in str(exc_info.value)

    def test_blank_title_is_missing(self, content_dir, cfg, write_doc):
        path = write_doc(content_dir, "x.md", "title: '  '\ndate: 2024-01-01")

        with pytest.raises(MalformedMetadataError, match="title"):
            load_document(path, content_dir, cfg)

    def test_series_fields(self, content_dir, cfg, write_doc):
        path = write_doc(content_dir, "x.md", "title: X\ndate: 2024-01-01\nseries: EKS\nseries_part: '1.2'")

        doc = load_document(path, content_dir, cfg)

        assert doc.series == "EKS"
        assert doc.series_part == 1.2

    def test_series_requires_part(self, content_dir, cfg, write_doc):
        path = write_doc(content_dir, "x.md", "title: X\ndate: 2024-01-01\nseries: EKS")

        with pytest.raises(MalformedMetadataError) as exc_info:
            load_document(path, content_dir, cfg)

        assert exc_info.value.field == "series_part"

    @pytest.mark.parametrize("part", ["true", "first", ".nan", ".inf", "'nan'"])
    def test_series_part_must_be_number(self, content_dir, cfg, write_doc, part):
        path = write_doc(content_dir, "x.md", f"title: X\ndate: 2024-01-01\nseries: EKS\nseries_part: {part}")

        with pytest.raises(MalformedMetadataError, match="series_part"):
            load_document(path, content_dir, cfg)


class TestCollectDocuments:
    """Test walking the content directory."""

    def test_drafts_skipped_by_default(self, content_dir, cfg, write_doc):
        write_doc(content_dir, "a.md", "title: A\ndate: 2024-01-01")
        write_doc(content_dir, "b.md", "title: B\ndate: 2024-01-02\ndraft: true")

        assert [d.title for d in collect_documents(content_dir, cfg)] == ["A"]

        cfg["include_drafts"] = True
        assert [d.title for d in collect_documents(content_dir, cfg)] == ["A", "B"]

    def test_quoted_draft_values(self, content_dir, cfg, write_doc):
        write_doc(content_dir, "a.md", "title: A\ndate: 2024-01-01\ndraft: \"false\"")
        write_doc(content_dir, "b.md", "title: B\ndate: 2024-01-02\ndraft: \"no\"")
        write_doc(content_dir, "c.md", "title: C\ndate: 2024-01-03\ndraft: \"yes\"")

        assert [d.title for d in collect_documents(content_dir, cfg)] == ["A", "B"]

    def test_unrecognized_draft_value(self, content_dir, cfg, write_doc):
        write_doc(content_dir, "a.md", "title: A\ndate: 2024-01-01\ndraft: maybe")

        with pytest.raises(MalformedMetadataError) as exc_info:
            collect_documents(content_dir, cfg)

        assert exc_info.value.field == "draft"

    def test_hidden_paths_ignored(self, content_dir, cfg, write_doc):
        write_doc(content_dir, "a.md", "title: A\ndate: 2024-01-01")
        write_doc(content_dir, ".drafts/b.md", "title: B\ndate: 2024-01-02")
        (content_dir / "notes.txt").write_text("not markdown", encoding="utf-8")

        assert [d.title for d in collect_documents(content_dir, cfg)] == ["A"]

    def test_malformed_file_aborts(self, content_dir, cfg, write_doc):
        write_doc(content_dir, "a.md", "title: A\ndate: 2024-01-01")
        write_doc(content_dir, "b.md", "date: 2024-01-02")

        with pytest.raises(MalformedMetadataError):
            collect_documents(content_dir, cfg)


class TestPaths:
    """Test slug and output path helpers."""

    @pytest.mark.parametrize(
        "permalink, expected",
        [
            ("/", "index.html"),
            ("/a/b/", "a/b/index.html"),
            ("/a/b.html", "a/b.html"),
            ("/a/b", "a/b/index.html"),
        ],
    )
    def test_output_path_for(self, permalink, expected):
        assert output_path_for(permalink) == expected

    def test_slugify(self):
        assert slugify("Outdoor Trips") == "outdoor-trips"
        assert slugify("C++ & Rust!") == "c-rust"
        assert slugify("!!!") == "untitled"

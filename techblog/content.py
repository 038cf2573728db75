import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

import yaml

from .errors import MalformedMetadataError

FRONT_MATTER_DELIMITER = "---"

# Jekyll-style post filenames: 2024-01-02-some-slug.md
DATED_FILENAME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-(.+)$")

DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


@dataclass(frozen=True)
class Document:
    id: str
    source: Path
    layout: str
    title: str
    date: datetime
    tags: Tuple[str, ...]
    permalink: str
    body_markdown: str
    series: Optional[str] = None
    series_part: Optional[float] = None
    draft: bool = False
    # Filled in by the indexer once the body has been rendered.
    excerpt: str = ""
    extra: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def output_path(self) -> str:
        return output_path_for(self.permalink)


# -----------------------
# Front matter
# -----------------------

def split_front_matter(raw: str, path: Path) -> Tuple[dict, str]:
    """
    Split a content file into (metadata, markdown body).

    The header must open on the first line with '---' and close with a
    second '---' line. Anything that is not a YAML mapping is malformed.
    """
    lines = raw.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        raise MalformedMetadataError(path, "front matter", "file must start with '---'")

    end_index = None
    for idx in range(1, len(lines)):
        if lines[idx].strip() == FRONT_MATTER_DELIMITER:
            end_index = idx
            break

    if end_index is None:
        raise MalformedMetadataError(path, "front matter", "not closed with '---'")

    header = "\n".join(lines[1:end_index])
    try:
        metadata = yaml.safe_load(header) or {}
    except yaml.YAMLError as exc:
        raise MalformedMetadataError(path, "front matter", f"invalid YAML ({exc})") from exc

    if not isinstance(metadata, dict):
        raise MalformedMetadataError(path, "front matter", "must be a key/value mapping")

    body = "\n".join(lines[end_index + 1:]).strip("\n")
    return metadata, body


def parse_date(value, path: Path) -> datetime:
    """Accept YAML dates/datetimes and common string forms; naive means UTC."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        dt = None
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            for fmt in DATE_FORMATS:
                try:
                    dt = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if dt is None:
            raise MalformedMetadataError(path, "date", f"cannot parse {value!r}")
    else:
        raise MalformedMetadataError(path, "date", f"cannot parse {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _split_tag_value(value, path: Path, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, (list, tuple)):
        return [str(t).strip() for t in value if str(t).strip()]
    raise MalformedMetadataError(path, field_name, "must be a list of strings")


def normalize_tags(metadata: dict, path: Path) -> Tuple[str, ...]:
    """
    Merge `tags` and the legacy `categories` field.

    Duplicates are dropped case-insensitively; the first spelling seen is
    the one displayed.
    """
    seen = {}
    for field_name in ("tags", "categories"):
        for tag in _split_tag_value(metadata.get(field_name), path, field_name):
            key = tag_key(tag)
            if key not in seen:
                seen[key] = tag
    return tuple(seen.values())


def tag_key(tag: str) -> str:
    return tag.strip().lower()


def slugify(text: str) -> str:
    """
    Convert 'Outdoor Trips' into a URL-friendly slug: 'outdoor-trips'.
    """
    s = text.strip().lower()
    s = re.sub(r"[\s_]+", "-", s)
    s = re.sub(r"[^a-z0-9-]", "", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    return s or "untitled"


def _series_part(metadata: dict, path: Path) -> Optional[float]:
    value = metadata.get("series_part")
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedMetadataError(path, "series_part", "must be a number")
    if isinstance(value, (int, float)):
        part = float(value)
    else:
        try:
            part = float(str(value).strip())
        except ValueError:
            raise MalformedMetadataError(path, "series_part", f"must be a number, got {value!r}") from None
    # NaN and infinities have no place in a total order.
    if not math.isfinite(part):
        raise MalformedMetadataError(path, "series_part", f"must be a finite number, got {value!r}")
    return part


DRAFT_TRUE = ("true", "yes", "1", "y", "on")
DRAFT_FALSE = ("false", "no", "0", "n", "off", "")


def _draft(metadata: dict, path: Path) -> bool:
    value = metadata.get("draft", False)
    if value is None or isinstance(value, bool):
        return bool(value)
    val = str(value).strip().lower()
    if val in DRAFT_TRUE:
        return True
    if val in DRAFT_FALSE:
        return False
    raise MalformedMetadataError(path, "draft", f"must be true or false, got {value!r}")


# -----------------------
# Permalinks
# -----------------------

def document_slug(path: Path) -> str:
    stem = path.stem
    m = DATED_FILENAME_RE.match(stem)
    if m:
        stem = m.group(4)
    return slugify(stem)


def expand_permalink(pattern: str, dt: datetime, slug: str) -> str:
    return (
        pattern.replace(":year", f"{dt.year:04d}")
        .replace(":month", f"{dt.month:02d}")
        .replace(":day", f"{dt.day:02d}")
        .replace(":slug", slug)
    )


def validate_permalink(permalink: str, path: Path) -> str:
    if not permalink.startswith("/"):
        raise MalformedMetadataError(path, "permalink", f"must start with '/', got {permalink!r}")
    parts = PurePosixPath(permalink).parts
    if ".." in parts or "." in parts:
        raise MalformedMetadataError(path, "permalink", f"may not contain relative segments: {permalink!r}")
    return permalink


def output_path_for(permalink: str) -> str:
    """
    Map a permalink to a file path relative to the output directory:

      /a/b/      -> a/b/index.html
      /a/b.html  -> a/b.html
      /a/b       -> a/b/index.html
    """
    rel = permalink.lstrip("/")
    if not rel:
        return "index.html"
    if rel.endswith("/"):
        return rel + "index.html"
    if PurePosixPath(rel).suffix:
        return rel
    return rel + "/index.html"


# -----------------------
# Loading documents
# -----------------------

def load_document(path: Path, content_root: Path, cfg: dict) -> Document:
    """
    Parse one content file into a Document. The excerpt is left empty.
    """
    metadata, body = split_front_matter(path.read_text(encoding="utf-8"), path)

    title = metadata.get("title")
    if title is None or not str(title).strip():
        raise MalformedMetadataError(path, "title")

    if metadata.get("date") is None:
        raise MalformedMetadataError(path, "date")
    dt = parse_date(metadata["date"], path)

    layout = str(metadata.get("layout") or cfg["default_layout"]).strip()

    series = metadata.get("series")
    series = str(series).strip() if series is not None else None
    series = series or None
    series_part = _series_part(metadata, path)
    if series and series_part is None:
        raise MalformedMetadataError(path, "series_part", "required when series is set")

    slug = document_slug(path)
    if metadata.get("permalink"):
        permalink = str(metadata["permalink"]).strip()
    elif layout == "page":
        permalink = f"/{slug}/"
    else:
        permalink = expand_permalink(cfg["permalink_pattern"], dt, slug)
    permalink = validate_permalink(permalink, path)

    known = {"layout", "title", "date", "tags", "categories", "series",
             "series_part", "permalink", "draft"}
    extra = {k: v for k, v in metadata.items() if k not in known}

    return Document(
        id=path.relative_to(content_root).with_suffix("").as_posix(),
        source=path,
        layout=layout,
        title=str(title).strip(),
        date=dt,
        tags=normalize_tags(metadata, path),
        permalink=permalink,
        body_markdown=body,
        series=series,
        series_part=series_part if series else None,
        draft=_draft(metadata, path),
        extra=extra,
    )


def iter_content_files(content_root: Path) -> List[Path]:
    files = []
    for path in sorted(content_root.rglob("*.md")):
        rel_parts = path.relative_to(content_root).parts
        if any(part.startswith(".") for part in rel_parts):
            continue
        if path.is_file():
            files.append(path)
    return files


def collect_documents(content_root: Path, cfg: dict) -> List[Document]:
    """
    Load every content file under content_root.

    Draft documents are skipped unless cfg["include_drafts"] is set. Any
    malformed file aborts the whole collection.
    """
    documents = []
    for path in iter_content_files(content_root):
        doc = load_document(path, content_root, cfg)
        if doc.draft and not cfg["include_drafts"]:
            print(f"Skipping draft {path}")
            continue
        documents.append(doc)
    return documents

"""
Metadata indexer: turns loaded documents into the read-only Site context
that the renderer and the search index emitter consume.
"""
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from .content import Document, output_path_for, slugify, tag_key
from .errors import DuplicatePermalinkError, DuplicateSeriesPartError
from .markup import excerpt, render_markdown

LAYOUTS = ("post", "page")


@dataclass(frozen=True)
class TagGroup:
    key: str
    name: str
    slug: str
    documents: Tuple[Document, ...]

    @property
    def permalink(self) -> str:
        return f"/tag/{self.slug}/"


@dataclass(frozen=True)
class Series:
    name: str
    slug: str
    documents: Tuple[Document, ...]

    @property
    def permalink(self) -> str:
        return f"/series/{self.slug}/"


@dataclass(frozen=True)
class SeriesNav:
    series: Series
    position: int
    previous: Optional[Document]
    next: Optional[Document]

    @property
    def total(self) -> int:
        return len(self.series.documents)


@dataclass(frozen=True)
class RenderedBody:
    html: str
    toc: str


@dataclass(frozen=True)
class Site:
    cfg: dict
    documents: Tuple[Document, ...]
    series: Dict[str, Series]
    tags: Dict[str, TagGroup]
    bodies: Dict[str, RenderedBody]

    @property
    def posts(self) -> Tuple[Document, ...]:
        return tuple(d for d in self.documents if d.layout == "post")

    @property
    def pages(self) -> Tuple[Document, ...]:
        return tuple(d for d in self.documents if d.layout == "page")

    @property
    def tag_names(self) -> List[str]:
        """Union of all tags across the site, one display name per tag."""
        return sorted((g.name for g in self.tags.values()), key=str.lower)

    def tag_group(self, tag: str) -> TagGroup:
        return self.tags[tag_key(tag)]

    def body(self, doc: Document) -> RenderedBody:
        return self.bodies[doc.id]

    def series_navigation(self, doc: Document) -> Optional[SeriesNav]:
        if not doc.series:
            return None
        series = self.series[doc.series]
        ids = [d.id for d in series.documents]
        position = ids.index(doc.id)
        previous = series.documents[position - 1] if position > 0 else None
        nxt = series.documents[position + 1] if position + 1 < len(ids) else None
        return SeriesNav(series=series, position=position + 1, previous=previous, next=nxt)


def newest_first(documents: Iterable[Document]) -> List[Document]:
    # Ties on date fall back to permalink so ordering never depends on
    # filesystem order.
    ordered = sorted(documents, key=lambda d: d.permalink)
    return sorted(ordered, key=lambda d: d.date, reverse=True)


def render_bodies(documents: Iterable[Document], excerpt_length: int):
    """
    Render each Markdown body once and derive its plain-text excerpt.

    Returns (documents with excerpts, {doc.id: RenderedBody}).
    """
    with_excerpts = []
    bodies = {}
    for doc in documents:
        html, toc = render_markdown(doc.body_markdown)
        bodies[doc.id] = RenderedBody(html=html, toc=toc)
        with_excerpts.append(replace(doc, excerpt=excerpt(html, excerpt_length)))
    return with_excerpts, bodies


def build_series(documents: Iterable[Document]) -> Dict[str, Series]:
    """
    Group documents by series name and order each group by series_part.
    Two documents claiming the same part of one series is fatal.
    """
    groups: Dict[str, List[Document]] = {}
    for doc in documents:
        if doc.series:
            groups.setdefault(doc.series, []).append(doc)

    series = {}
    for name in sorted(groups):
        members = sorted(groups[name], key=lambda d: d.series_part)
        for before, after in zip(members, members[1:]):
            if before.series_part == after.series_part:
                raise DuplicateSeriesPartError(name, after.series_part, before.source, after.source)
        series[name] = Series(name=name, slug=slugify(name), documents=tuple(members))
    return series


def build_tag_index(documents: Iterable[Document]) -> Dict[str, TagGroup]:
    """
    Returns { tag key: TagGroup }.

    Keys are lowercased tags; the display name is the first spelling seen
    in newest-first order. Documents per tag are newest first.
    """
    names: Dict[str, str] = {}
    members: Dict[str, List[Document]] = {}

    for doc in newest_first(documents):
        for tag in doc.tags:
            key = tag_key(tag)
            names.setdefault(key, tag)
            members.setdefault(key, []).append(doc)

    return {
        key: TagGroup(key=key, name=names[key], slug=slugify(key), documents=tuple(members[key]))
        for key in sorted(members)
    }


def generated_permalinks(cfg: dict, series: Dict[str, Series], tags: Dict[str, TagGroup]):
    """Yield (permalink, label) for every page the build generates itself."""
    yield "/", "home page"
    yield "/tags/", "tag index"
    for group in tags.values():
        yield group.permalink, f"tag page for {group.name!r}"
    for s in series.values():
        yield s.permalink, f"series page for {s.name!r}"
    if cfg["enable_feed"]:
        yield "/feed.xml", "feed"
    if cfg["enable_search"]:
        yield "/" + cfg["search_index_path"], "search index"


def check_permalinks(documents: Iterable[Document], generated: Iterable[Tuple[str, str]]):
    """
    Every output file must be claimed exactly once. Permalinks are compared
    by the file they map to, so '/a' and '/a/' collide.
    """
    claimed: Dict[str, Tuple[str, str]] = {}

    def claim(permalink: str, label: str):
        out = output_path_for(permalink)
        if out in claimed:
            raise DuplicatePermalinkError(permalink, claimed[out][1], label)
        claimed[out] = (permalink, label)

    for permalink, label in generated:
        claim(permalink, label)
    for doc in documents:
        claim(doc.permalink, str(doc.source))


def build_site(documents: Iterable[Document], cfg: dict) -> Site:
    """
    Derive the full Site context from a fresh set of documents.

    Nothing is cached between builds; calling this twice on the same input
    gives equal results.
    """
    documents, bodies = render_bodies(documents, cfg["excerpt_length"])
    ordered = newest_first(documents)

    series = build_series(ordered)
    tags = build_tag_index(ordered)
    check_permalinks(ordered, generated_permalinks(cfg, series, tags))

    return Site(
        cfg=cfg,
        documents=tuple(ordered),
        series=series,
        tags=tags,
        bodies=bodies,
    )

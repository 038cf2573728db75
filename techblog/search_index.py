import json
from typing import Iterable, List

from .content import Document
from .indexer import Site, newest_first

# The only document fields shipped to the browser.
SEARCH_ENTRY_FIELDS = ("title", "url", "tags", "excerpt", "date")


def search_entry(doc: Document, base_url: str = "") -> dict:
    """Project a Document onto the client-visible search entry."""
    return {
        "title": doc.title,
        "url": f"{base_url}{doc.permalink}",
        "tags": list(doc.tags),
        "excerpt": doc.excerpt,
        "date": doc.date.isoformat(),
    }


def build_search_entries(documents: Iterable[Document], base_url: str = "") -> List[dict]:
    return [search_entry(doc, base_url) for doc in newest_first(documents)]


def dumps_search_index(entries: List[dict]) -> str:
    return json.dumps(entries, ensure_ascii=False, indent=2) + "\n"


def render_search_index(site: Site) -> str:
    """
    Serialize every document's search entry into one JSON array, newest
    first. Raw Markdown and rendered bodies never appear in the output.
    """
    return dumps_search_index(build_search_entries(site.documents, site.cfg["base_url"]))

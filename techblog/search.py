r"""
Keyword search over the generated JSON index.

This is the reference behaviour of the browser widget (assets.SEARCH_JS
mirrors it line for line) and backs the `techblog search` command.

Widget states:

  IDLE -> LOADING -> READY -> QUERYING -> SHOWING_RESULTS | SHOWING_EMPTY
                  \-> ERRORED

The index is fetched at most once; an empty query drops back to READY
without fetching again. A failed fetch leaves the widget ERRORED, where
every query quietly returns nothing.
"""
import json
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

DEFAULT_MAX_RESULTS = 10

RANK_TITLE = 0
RANK_TAG = 1
RANK_EXCERPT = 2


class SearchIndexFetchError(Exception):
    """The search index could not be loaded or is not a JSON array of entries."""


class WidgetState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    QUERYING = "querying"
    SHOWING_RESULTS = "showing-results"
    SHOWING_EMPTY = "showing-empty"
    ERRORED = "errored"


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().lower()


def match_rank(entry: dict, needle: str) -> Optional[int]:
    """
    Rank an entry against a normalized, non-empty query, or None if it does
    not match. Title hits outrank tag hits, which outrank excerpt hits.
    """
    if needle in str(entry.get("title") or "").lower():
        return RANK_TITLE
    if any(needle in str(tag).lower() for tag in entry.get("tags") or []):
        return RANK_TAG
    if needle in str(entry.get("excerpt") or "").lower():
        return RANK_EXCERPT
    return None


def search_entries(entries: List[dict], query: str, max_results: int = DEFAULT_MAX_RESULTS) -> List[dict]:
    """
    Substring search over title, tags and excerpt.

    Matches keep index order (newest first) within each rank, and the
    result list is capped at max_results.
    """
    needle = normalize_query(query)
    if not needle:
        return []

    ranked = []
    for position, entry in enumerate(entries):
        rank = match_rank(entry, needle)
        if rank is not None:
            ranked.append((rank, position, entry))
    ranked.sort(key=lambda item: (item[0], item[1]))
    return [entry for _, _, entry in ranked[:max_results]]


def parse_search_index(text: str) -> List[dict]:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise SearchIndexFetchError(f"search index is not valid JSON: {exc}") from exc
    if not isinstance(data, list) or not all(isinstance(e, dict) for e in data):
        raise SearchIndexFetchError("search index must be a JSON array of objects")
    return data


def file_loader(path: Path) -> Callable[[], List[dict]]:
    """Return a fetch callable that reads a built search index from disk."""
    def fetch() -> List[dict]:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise SearchIndexFetchError(f"cannot read search index {path}: {exc}") from exc
        return parse_search_index(text)

    return fetch


class SearchWidget:
    def __init__(
        self,
        fetch: Callable[[], List[dict]],
        max_results: int = DEFAULT_MAX_RESULTS,
        shortcut: str = "/",
    ):
        self._fetch = fetch
        self.max_results = max_results
        self.shortcut = shortcut
        self.state = WidgetState.IDLE
        self.entries: Optional[List[dict]] = None
        self.results: List[dict] = []
        self.error: Optional[Exception] = None
        self._torn_down = False

    @property
    def available(self) -> bool:
        return self.state is not WidgetState.ERRORED

    def handle_key(self, key: str) -> bool:
        """Activate on the focus shortcut. Returns True if the key was consumed."""
        if key != self.shortcut:
            return False
        self.activate()
        return True

    def activate(self):
        """Load the index on first use; later calls reuse the cached copy."""
        if self._torn_down or self.state is not WidgetState.IDLE:
            return

        self.state = WidgetState.LOADING
        try:
            entries = self._fetch()
        except Exception as exc:
            entries = None
            error = exc
        else:
            error = None

        if self._torn_down:
            # Page went away while the fetch was in flight: drop the result.
            return

        if error is not None:
            self.error = error
            self.state = WidgetState.ERRORED
            return

        self.entries = entries
        self.state = WidgetState.READY

    def query(self, text: str) -> List[dict]:
        if self.state is WidgetState.IDLE:
            self.activate()
        if self.state is WidgetState.ERRORED or self.entries is None:
            self.results = []
            return self.results

        if not normalize_query(text):
            self.results = []
            self.state = WidgetState.READY
            return self.results

        self.state = WidgetState.QUERYING
        self.results = search_entries(self.entries, text, self.max_results)
        self.state = WidgetState.SHOWING_RESULTS if self.results else WidgetState.SHOWING_EMPTY
        return self.results

    def teardown(self):
        self._torn_down = True
        self.entries = None
        self.results = []
        if self.state is not WidgetState.ERRORED:
            self.state = WidgetState.IDLE

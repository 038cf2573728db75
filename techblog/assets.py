import shutil
from pathlib import Path
from typing import Dict

SEARCH_JS_PATH = "assets/search.js"

# Browser rendition of techblog/search.py. Keep the ranking and the state
# names in sync with SearchWidget.
SEARCH_JS = r"""
(function () {
  var RANK_TITLE = 0, RANK_TAG = 1, RANK_EXCERPT = 2;

  function normalize(q) {
    return (q || '').trim().toLowerCase();
  }

  function matchRank(entry, needle) {
    if (String(entry.title || '').toLowerCase().indexOf(needle) !== -1) return RANK_TITLE;
    var tags = entry.tags || [];
    for (var i = 0; i < tags.length; i++) {
      if (String(tags[i]).toLowerCase().indexOf(needle) !== -1) return RANK_TAG;
    }
    if (String(entry.excerpt || '').toLowerCase().indexOf(needle) !== -1) return RANK_EXCERPT;
    return null;
  }

  function searchEntries(entries, query, maxResults) {
    var needle = normalize(query);
    if (!needle) return [];
    var ranked = [];
    for (var i = 0; i < entries.length; i++) {
      var rank = matchRank(entries[i], needle);
      if (rank !== null) ranked.push({ rank: rank, pos: i, entry: entries[i] });
    }
    ranked.sort(function (a, b) { return (a.rank - b.rank) || (a.pos - b.pos); });
    return ranked.slice(0, maxResults).map(function (r) { return r.entry; });
  }

  function initSearch() {
    var form = document.querySelector('.search-form');
    if (!form) return;
    var input = form.querySelector('.search-input');
    var box = form.querySelector('.search-results');
    if (!input || !box) return;

    var indexUrl = form.getAttribute('data-index-url');
    var maxResults = parseInt(form.getAttribute('data-max-results'), 10) || 10;
    var shortcut = form.getAttribute('data-shortcut') || '/';

    var state = 'idle';
    var entries = null;
    var pending = null;
    var controller = null;

    function show(html) {
      box.innerHTML = html;
      box.hidden = !html;
    }

    function escapeHtml(s) {
      var div = document.createElement('div');
      div.textContent = s;
      return div.innerHTML;
    }

    function render(results) {
      if (!results.length) {
        state = 'showing-empty';
        show('<p class="search-empty">No matching posts.</p>');
        return;
      }
      state = 'showing-results';
      show('<ul class="search-result-list">' + results.map(function (e) {
        return '<li class="search-result"><a href="' + escapeHtml(e.url) + '">' +
          escapeHtml(e.title) + '</a><p class="search-result-excerpt">' +
          escapeHtml(e.excerpt || '') + '</p></li>';
      }).join('') + '</ul>');
    }

    function activate() {
      if (state !== 'idle') return pending || Promise.resolve();
      state = 'loading';
      controller = window.AbortController ? new AbortController() : null;
      pending = fetch(indexUrl, controller ? { signal: controller.signal } : {})
        .then(function (resp) {
          if (!resp.ok) throw new Error('HTTP ' + resp.status);
          return resp.json();
        })
        .then(function (data) {
          if (!Array.isArray(data)) throw new Error('index is not an array');
          entries = data;
          state = 'ready';
        })
        .catch(function () {
          if (state === 'torn-down') return;
          state = 'errored';
          input.disabled = true;
          input.placeholder = 'Search unavailable';
          show('<p class="search-error">Search unavailable.</p>');
        });
      return pending;
    }

    function query() {
      if (state === 'errored' || entries === null) return;
      if (!normalize(input.value)) {
        state = 'ready';
        show('');
        return;
      }
      state = 'querying';
      render(searchEntries(entries, input.value, maxResults));
    }

    input.addEventListener('focus', activate);
    input.addEventListener('input', function () {
      activate().then(query);
    });

    document.addEventListener('keydown', function (ev) {
      if (ev.key !== shortcut) return;
      var target = ev.target;
      if (target && (target.tagName === 'INPUT' || target.tagName === 'TEXTAREA' || target.isContentEditable)) return;
      ev.preventDefault();
      input.focus();
    });

    window.addEventListener('pagehide', function () {
      if (controller && state === 'loading') controller.abort();
      state = 'torn-down';
    });

    // Restored from the back/forward cache: resume, refetching if the load was cut off.
    window.addEventListener('pageshow', function () {
      if (state !== 'torn-down') return;
      if (entries !== null) {
        state = 'ready';
      } else {
        state = 'idle';
        pending = null;
        controller = null;
      }
    });
  }

  if (document.readyState === 'loading') {
    document.addEventListener('DOMContentLoaded', initSearch);
  } else {
    initSearch();
  }
})();
""".strip() + "\n"


def client_assets(cfg: dict) -> Dict[str, str]:
    """Generated client files, keyed by path relative to the output dir."""
    if not cfg["enable_search"]:
        return {}
    return {SEARCH_JS_PATH: SEARCH_JS}


def copy_static_dir(static_dir: Path, output_dir: Path):
    """Copy the site's static directory (CSS, images, ...) into the output."""
    if not static_dir.is_dir():
        return
    shutil.copytree(static_dir, output_dir, dirs_exist_ok=True)
    print(f"Copied static files from {static_dir}")

import html
from email.utils import formatdate
from typing import Dict

from .assets import SEARCH_JS_PATH
from .content import Document
from .errors import UnknownLayoutError
from .indexer import Series, SeriesNav, Site, TagGroup


def url_for(site: Site, permalink: str) -> str:
    return f'{site.cfg["base_url"]}{permalink}'


def display_date(doc: Document) -> str:
    return doc.date.strftime("%Y-%m-%d")


# -----------------------
# HTML helpers
# -----------------------

def build_common_head_and_footer(cfg: dict):
    """Return extra_head_html, extra_footer_html strings."""
    extra_head_html = ""
    if cfg.get("extra_head"):
        extra_head_html = "\n  " + "\n  ".join(cfg["extra_head"])

    extra_footer_html = ""
    if cfg.get("extra_footer"):
        extra_footer_html = "\n  " + "\n  ".join(cfg["extra_footer"])

    return extra_head_html, extra_footer_html


def search_ui_html(site: Site) -> str:
    cfg = site.cfg
    if not cfg["enable_search"]:
        return ""
    index_url = html.escape(url_for(site, "/" + cfg["search_index_path"]))
    shortcut = html.escape(cfg["search_shortcut"])
    return f"""
    <form class="search-form" role="search" onsubmit="return false;"
          data-index-url="{index_url}" data-max-results="{cfg["search_max_results"]}" data-shortcut="{shortcut}">
      <label for="search-input" class="search-label">Search posts</label>
      <input id="search-input" class="search-input" type="search" autocomplete="off"
             placeholder="Search (press {shortcut})">
      <div id="search-results" class="search-results" aria-live="polite" hidden></div>
    </form>"""


def search_scripts_html(site: Site) -> str:
    if not site.cfg["enable_search"]:
        return ""
    src = html.escape(url_for(site, "/" + SEARCH_JS_PATH))
    return f'\n<script src="{src}" defer></script>'


def tag_list_html(doc: Document, site: Site) -> str:
    if not doc.tags:
        return ""
    pills = []
    for tag in doc.tags:
        group = site.tag_group(tag)
        href = html.escape(url_for(site, group.permalink))
        pills.append(f'<li><a href="{href}" class="post-tag">{html.escape(tag)}</a></li>')
    return f'<ul class="post-tags">{"".join(pills)}</ul>'


def post_list_html(documents, site: Site) -> str:
    """Short listing used on the home, tag and series pages."""
    if not documents:
        return "<p>Nothing here yet.</p>"
    items = []
    for doc in documents:
        href = html.escape(url_for(site, doc.permalink))
        items.append(f"""  <li class="post-list-item">
    <time datetime="{doc.date.isoformat()}">{display_date(doc)}</time>
    <a href="{href}" class="post-list-link">{html.escape(doc.title)}</a>
    <p class="post-list-excerpt">{html.escape(doc.excerpt)}</p>
  </li>""")
    return '<ul class="post-list">\n' + "\n".join(items) + "\n</ul>"


def series_nav_html(nav: SeriesNav, site: Site) -> str:
    """
    Series box: position, full ordered list of parts, and previous/next links.
    First and last parts simply omit the missing link.
    """
    series = nav.series
    series_href = html.escape(url_for(site, series.permalink))

    parts = []
    for idx, doc in enumerate(series.documents, start=1):
        label = html.escape(doc.title)
        if idx == nav.position:
            parts.append(f'<li class="series-part current">{label}</li>')
        else:
            href = html.escape(url_for(site, doc.permalink))
            parts.append(f'<li class="series-part"><a href="{href}">{label}</a></li>')

    links = []
    if nav.previous is not None:
        href = html.escape(url_for(site, nav.previous.permalink))
        links.append(f'<a class="series-prev" rel="prev" href="{href}">&larr; {html.escape(nav.previous.title)}</a>')
    if nav.next is not None:
        href = html.escape(url_for(site, nav.next.permalink))
        links.append(f'<a class="series-next" rel="next" href="{href}">{html.escape(nav.next.title)} &rarr;</a>')

    return f"""<nav class="series-nav" aria-label="Series">
  <p class="series-title">Part {nav.position} of {nav.total} in <a href="{series_href}">{html.escape(series.name)}</a></p>
  <ol class="series-parts">{"".join(parts)}</ol>
  <div class="series-links">{"".join(links)}</div>
</nav>"""


def page_shell(site: Site, page_title: str, main_html: str) -> str:
    cfg = site.cfg
    site_title = html.escape(cfg["site_title"])
    full_title = site_title if not page_title else f"{html.escape(page_title)} – {site_title}"
    extra_head_html, extra_footer_html = build_common_head_and_footer(cfg)

    feed_link = ""
    if cfg["enable_feed"]:
        feed_href = html.escape(url_for(site, "/feed.xml"))
        feed_link = f'\n  <link rel="alternate" type="application/rss+xml" title="{site_title}" href="{feed_href}">'

    home = html.escape(url_for(site, "/"))
    tags = html.escape(url_for(site, "/tags/"))

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{full_title}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">{feed_link}{extra_head_html}
</head>
<body>
<header class="site-header">
  <h1 class="site-title"><a href="{home}">{site_title}</a></h1>
  <p class="site-tagline">{html.escape(cfg["site_tagline"])}</p>
  <nav class="site-nav"><a href="{home}">Posts</a> <a href="{tags}">Tags</a></nav>{search_ui_html(site)}
</header>

<main class="content">
{main_html}
</main>

<footer class="site-footer">{extra_footer_html}
</footer>{search_scripts_html(site)}
</body>
</html>
"""


# -----------------------
# Layouts
# -----------------------

def render_post(doc: Document, site: Site) -> str:
    body = site.body(doc)

    toc_html = ""
    if body.toc:
        toc_html = f'\n  <aside class="post-toc">\n  <h2 class="post-toc-title">Contents</h2>\n  {body.toc}\n  </aside>'

    nav = site.series_navigation(doc)
    series_html = f"\n  {series_nav_html(nav, site)}" if nav else ""

    main_html = f"""<article class="post">
  <header class="post-header">
    <h1 class="post-title">{html.escape(doc.title)}</h1>
    <time class="post-date" datetime="{doc.date.isoformat()}">{display_date(doc)}</time>
    {tag_list_html(doc, site)}
  </header>{series_html}{toc_html}
  <div class="post-body">
{body.html}
  </div>
</article>"""
    return page_shell(site, doc.title, main_html)


def render_page(doc: Document, site: Site) -> str:
    nav = site.series_navigation(doc)
    series_html = f"\n  {series_nav_html(nav, site)}" if nav else ""

    main_html = f"""<article class="page">
  <h1 class="page-title">{html.escape(doc.title)}</h1>{series_html}
  <div class="page-body">
{site.body(doc).html}
  </div>
</article>"""
    return page_shell(site, doc.title, main_html)


LAYOUT_RENDERERS = {
    "post": render_post,
    "page": render_page,
}


def render_document(doc: Document, site: Site) -> str:
    renderer = LAYOUT_RENDERERS.get(doc.layout)
    if renderer is None:
        raise UnknownLayoutError(doc.source, doc.layout)
    return renderer(doc, site)


# -----------------------
# Generated pages
# -----------------------

def render_home_page(site: Site) -> str:
    main_html = f"""<h2 class="listing-title">Latest posts</h2>
{post_list_html(site.posts, site)}"""
    return page_shell(site, "", main_html)


def render_tag_page(group: TagGroup, site: Site) -> str:
    main_html = f"""<h2 class="listing-title">Tag: {html.escape(group.name)}</h2>
{post_list_html(group.documents, site)}"""
    return page_shell(site, f"Tag: {group.name}", main_html)


def render_tag_index_page(site: Site) -> str:
    if site.tags:
        items = []
        for group in sorted(site.tags.values(), key=lambda g: g.name.lower()):
            href = html.escape(url_for(site, group.permalink))
            items.append(
                f'<li class="tag-index-item">'
                f'<a href="{href}" class="tag-index-link">{html.escape(group.name)}</a> '
                f'<span class="tag-index-count">({len(group.documents)})</span>'
                f'</li>'
            )
        tags_html = '<ul class="tag-index-list">' + "".join(items) + "</ul>"
    else:
        tags_html = "<p>No tags yet.</p>"

    main_html = f"""<h2 class="listing-title">Tags</h2>
{tags_html}"""
    return page_shell(site, "Tags", main_html)


def render_series_page(series: Series, site: Site) -> str:
    items = []
    for doc in series.documents:
        href = html.escape(url_for(site, doc.permalink))
        items.append(f'<li class="series-part"><a href="{href}">{html.escape(doc.title)}</a></li>')
    main_html = f"""<h2 class="listing-title">Series: {html.escape(series.name)}</h2>
<ol class="series-parts">{"".join(items)}</ol>"""
    return page_shell(site, f"Series: {series.name}", main_html)


def render_feed(site: Site) -> str:
    """
    RSS 2.0 feed of the newest posts. lastBuildDate is the newest post's
    date so unchanged input gives an identical feed.
    """
    cfg = site.cfg
    site_title = html.escape(cfg["site_title"])
    posts = site.posts[: cfg["feed_items"]]

    def absolute(permalink: str) -> str:
        return html.escape(f'{cfg["site_url"]}{url_for(site, permalink)}')

    items_xml = []
    for doc in posts:
        link = absolute(doc.permalink)
        # A literal "]]>" in the body would close the section early.
        body_html = site.body(doc).html.replace("]]>", "]]]]><![CDATA[>")
        description_cdata = f"<![CDATA[{body_html}]]>"
        items_xml.append(f"""  <item>
    <title>{html.escape(doc.title)}</title>
    <link>{link}</link>
    <guid>{link}</guid>
    <pubDate>{formatdate(doc.date.timestamp())}</pubDate>
    <description>{description_cdata}</description>
  </item>""")

    last_build = f"\n  <lastBuildDate>{formatdate(posts[0].date.timestamp())}</lastBuildDate>" if posts else ""

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
  <title>{site_title}</title>
  <link>{absolute("/")}</link>
  <description>{html.escape(cfg["site_tagline"])}</description>{last_build}
{chr(10).join(items_xml)}
</channel>
</rss>
"""


def render_site(site: Site) -> Dict[str, str]:
    """
    Render every page of the site in memory.

    Returns { output path relative to the site root: file contents }.
    Raises on the first document that cannot be rendered.
    """
    pages = {}

    for doc in site.documents:
        pages[doc.output_path] = render_document(doc, site)

    pages["index.html"] = render_home_page(site)
    pages["tags/index.html"] = render_tag_index_page(site)
    for group in site.tags.values():
        pages[f"tag/{group.slug}/index.html"] = render_tag_page(group, site)
    for series in site.series.values():
        pages[f"series/{series.slug}/index.html"] = render_series_page(series, site)

    if site.cfg["enable_feed"]:
        pages["feed.xml"] = render_feed(site)

    return pages

import re
from typing import Tuple

import markdown
from bs4 import BeautifulSoup

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc"]

WHITESPACE_RE = re.compile(r"\s+")


def wrap_images_with_figures(html_fragment: str) -> str:
    """
    Wrap <img> tags in <figure> with a <figcaption> built from the alt text.
    """
    soup = BeautifulSoup(html_fragment, "html.parser")

    for img in soup.find_all("img"):
        if img.find_parent("figure"):
            continue

        alt = img.get("alt", "").strip()
        figure = soup.new_tag("figure")
        figure["class"] = "post-figure"

        # A lone image in a paragraph replaces the paragraph itself.
        parent = img.parent
        if parent is not None and parent.name == "p" and len(parent.contents) == 1:
            parent.replace_with(figure)
        else:
            img.replace_with(figure)
        figure.append(img)

        if alt:
            caption = soup.new_tag("figcaption")
            caption.string = alt
            figure.append(caption)

    return str(soup)


def render_markdown(text: str) -> Tuple[str, str]:
    """
    Convert a Markdown body to HTML.

    Returns (body_html, toc_html). toc_html is empty when the body has no
    headings.
    """
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
    body_html = wrap_images_with_figures(md.convert(text))
    toc_html = md.toc if getattr(md, "toc_tokens", None) else ""
    return body_html, toc_html


def plain_text(html_fragment: str) -> str:
    """Strip tags and collapse whitespace."""
    text = BeautifulSoup(html_fragment, "html.parser").get_text(" ", strip=True)
    return WHITESPACE_RE.sub(" ", text).strip()


def excerpt(html_fragment: str, length: int) -> str:
    return plain_text(html_fragment)[:length].rstrip()

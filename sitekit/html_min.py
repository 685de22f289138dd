"""HTML minification built on BeautifulSoup and htmlmin."""

from __future__ import annotations

import logging

import htmlmin
import rcssmin
import rjsmin
from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

JS_TYPES = {
    "",
    "module",
    "text/javascript",
    "application/javascript",
    "application/ecmascript",
    "text/ecmascript",
}
EMPTY_REMOVABLE = {"class", "id", "style", "title", "lang", "dir"}

# (tag, attribute, value) triples whose presence changes nothing.
REDUNDANT_ATTRIBUTES = (
    ("script", "type", "text/javascript"),
    ("script", "language", "javascript"),
    ("style", "type", "text/css"),
    ("link", "type", "text/css"),
    ("form", "method", "get"),
    ("input", "type", "text"),
)

# Inline scripts and styles are minified before htmlmin runs; htmlmin must then
# leave their content alone, as it must for structured-data blocks.
PRESERVED_TAGS = ("pre", "textarea", "script", "style")


def _script_type(tag: Tag) -> str:
    return str(tag.get("type", "")).strip().lower()


def _remove_empty_attributes(tag: Tag) -> None:
    for name in list(tag.attrs):
        value = tag.attrs[name]
        if isinstance(value, list):
            value = " ".join(value)
        if value is None or str(value).strip():
            continue
        if name in EMPTY_REMOVABLE or name.startswith("on"):
            del tag[name]


def _remove_redundant_attributes(tag: Tag) -> None:
    for tag_name, attr, value in REDUNDANT_ATTRIBUTES:
        if tag.name != tag_name or attr not in tag.attrs:
            continue
        if str(tag[attr]).strip().lower() == value:
            del tag[attr]


def _minify_inline_code(soup: BeautifulSoup) -> None:
    for style in soup.find_all("style"):
        if style.string:
            style.string = rcssmin.cssmin(style.string)

    for script in soup.find_all("script"):
        # Anything that is not JavaScript, such as application/ld+json, stays as written.
        if script.get("src") or _script_type(script) not in JS_TYPES:
            continue
        if script.string:
            script.string = rjsmin.jsmin(script.string)


def normalize_html(html: str) -> str:
    """Drop empty and redundant attributes and minify inline code."""

    soup = BeautifulSoup(html, "html.parser")
    _minify_inline_code(soup)
    for tag in soup.find_all(True):
        _remove_empty_attributes(tag)
        _remove_redundant_attributes(tag)
    return str(soup)


def minify_html(html: str) -> str:
    """Strip comments, collapse whitespace and drop redundant markup."""

    normalized = normalize_html(html)
    return htmlmin.minify(
        normalized,
        remove_comments=True,
        remove_empty_space=True,
        reduce_empty_attributes=True,
        reduce_boolean_attributes=True,
        remove_optional_attribute_quotes=False,
        pre_tags=PRESERVED_TAGS,
    )


__all__ = ["PRESERVED_TAGS", "minify_html", "normalize_html"]

"""Rewrite asset references in HTML to point at minified outputs.

Matching is textual: each known original name is substituted inside a small
set of attribute patterns. The HTML is never parsed, so references with extra
whitespace, additional attribute content or mismatched quotes are left as
they are.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

QUOTE = "[\"']"

# Prefixes under which a JSON file may be referenced from a src attribute.
JSON_PREFIXES = ("", "./", "./../", "/")


@dataclass
class RewriteStats:
    """Number of substitutions performed per asset class."""

    css: int = 0
    js: int = 0
    json: int = 0
    applied: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.css + self.js + self.json


def _attr_pattern(attr: str, path: str) -> re.Pattern[str]:
    # The closing quote must match the opening one.
    return re.compile(f"{attr}=({QUOTE}){re.escape(path)}\\1")


def _substitute(html: str, pattern: re.Pattern[str], replacement: str) -> tuple[str, int]:
    # A function replacement keeps backslashes in file names literal.
    return pattern.subn(lambda _match: replacement, html)


def rewrite_css_references(html: str, css_map: Mapping[str, str], stats: RewriteStats) -> str:
    for original, minified in css_map.items():
        html, count = _substitute(
            html, _attr_pattern("href", f"css/{original}"), f'href="css/{minified}"'
        )
        if count:
            stats.css += count
            stats.applied.append(original)
            logger.info("Updated CSS reference: %s -> %s", original, minified)
    return html


def rewrite_js_references(html: str, js_map: Mapping[str, str], stats: RewriteStats) -> str:
    for original, minified in js_map.items():
        html, count = _substitute(
            html, _attr_pattern("src", f"js/{original}"), f'src="js/{minified}"'
        )
        if count:
            stats.js += count
            stats.applied.append(original)
            logger.info("Updated JS reference: %s -> %s", original, minified)
    return html


def rewrite_json_references(html: str, json_map: Mapping[str, str], stats: RewriteStats) -> str:
    for original, minified in json_map.items():
        replaced = 0
        for prefix in JSON_PREFIXES:
            html, count = _substitute(
                html, _attr_pattern("src", f"{prefix}{original}"), f'src="{minified}"'
            )
            replaced += count
        if replaced:
            stats.json += replaced
            stats.applied.append(original)
            logger.info("Updated JSON reference: %s -> %s", original, minified)
    return html


def rewrite_references(
    html: str,
    css_map: Optional[Mapping[str, str]] = None,
    js_map: Optional[Mapping[str, str]] = None,
    json_map: Optional[Mapping[str, str]] = None,
    *,
    stats: Optional[RewriteStats] = None,
) -> str:
    """Return ``html`` with CSS, JS and JSON references replaced by mapped names."""

    stats = stats if stats is not None else RewriteStats()
    html = rewrite_css_references(html, css_map or {}, stats)
    html = rewrite_js_references(html, js_map or {}, stats)
    html = rewrite_json_references(html, json_map or {}, stats)
    return html


__all__ = [
    "JSON_PREFIXES",
    "RewriteStats",
    "rewrite_css_references",
    "rewrite_js_references",
    "rewrite_json_references",
    "rewrite_references",
]

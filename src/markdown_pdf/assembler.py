"""Wrap an HTML fragment into a standalone, styled HTML document."""

from __future__ import annotations

import math
from functools import lru_cache
from importlib import resources

from pygments.util import ClassNotFound

from .errors import InvalidOptionError
from .parser import highlight_css
from .utils import format_number

GITHUB_CSS = "github-markdown.css"
PRINT_CSS = "print.css"

HEADING_SCALE: dict[str, float] = {
    "h1": 2.0,
    "h2": 1.5,
    "h3": 1.25,
    "h4": 1.1,
    "h5": 1.0,
    "h6": 0.9,
}
CODE_SCALE = 0.9

_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<style>
{css}
</style>
</head>
<body class="markdown-body">
{body}
</body>
</html>
"""


@lru_cache(maxsize=None)
def read_stylesheet(name: str) -> str:
    return resources.files("markdown_pdf").joinpath("styles").joinpath(name).read_text(encoding="utf-8")


def compute_font_sizes(font_size_px: float) -> dict[str, float]:
    """Font sizes in pixels for the body, each heading level and code."""

    sizes: dict[str, float] = {"base": font_size_px}
    for tag, factor in HEADING_SCALE.items():
        sizes[tag] = font_size_px * factor
    sizes["code"] = math.floor(font_size_px * CODE_SCALE)
    return sizes


def font_override_css(font_size_px: float) -> str:
    sizes = compute_font_sizes(font_size_px)
    rules = [
        f".markdown-body {{ font-size: {format_number(sizes['base'])}px !important; }}",
        ".markdown-body pre,\n.markdown-body code "
        f"{{ font-size: {format_number(sizes['code'])}px !important; }}",
    ]
    for tag in HEADING_SCALE:
        rules.append(f".markdown-body {tag} {{ font-size: {format_number(sizes[tag])}px !important; }}")
    return "\n".join(rules)


def stylesheet_sources(highlight_style: str = "default") -> list[str]:
    """The CSS layers in cascade order: theme, highlighting, print layout."""

    try:
        highlighting = highlight_css(highlight_style)
    except ClassNotFound as exc:
        raise InvalidOptionError("highlight_style", f"Unknown highlight style: {highlight_style}") from exc
    return [read_stylesheet(GITHUB_CSS), highlighting, read_stylesheet(PRINT_CSS)]


def assemble_document(fragment: str, font_size_px: float, highlight_style: str = "default") -> str:
    css = "\n".join([*stylesheet_sources(highlight_style), font_override_css(font_size_px)])
    return _DOCUMENT_TEMPLATE.format(css=css, body=fragment)


__all__ = [
    "CODE_SCALE",
    "HEADING_SCALE",
    "assemble_document",
    "compute_font_sizes",
    "font_override_css",
    "stylesheet_sources",
]

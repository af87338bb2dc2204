import math

import pytest

from markdown_pdf.assembler import (
    assemble_document,
    compute_font_sizes,
    font_override_css,
    read_stylesheet,
)
from markdown_pdf.errors import InvalidOptionError
from markdown_pdf.parser import highlight_css


@pytest.mark.parametrize("font_size", range(1, 73))
def test_font_sizes_follow_fixed_ratios(font_size: int) -> None:
    sizes = compute_font_sizes(font_size)
    assert sizes["base"] == font_size
    assert sizes["h1"] == 2 * font_size
    assert sizes["h2"] == 1.5 * font_size
    assert sizes["h3"] == 1.25 * font_size
    assert sizes["h4"] == 1.1 * font_size
    assert sizes["h5"] == font_size
    assert sizes["h6"] == 0.9 * font_size
    assert sizes["code"] == math.floor(0.9 * font_size)


def test_font_override_css_for_default_size() -> None:
    css = font_override_css(16)
    assert ".markdown-body { font-size: 16px !important; }" in css
    assert "font-size: 14px !important;" in css
    assert ".markdown-body h1 { font-size: 32px !important; }" in css
    assert ".markdown-body h2 { font-size: 24px !important; }" in css
    assert ".markdown-body h3 { font-size: 20px !important; }" in css
    assert ".markdown-body h4 { font-size: 17.6px !important; }" in css
    assert ".markdown-body h5 { font-size: 16px !important; }" in css
    assert ".markdown-body h6 { font-size: 14.4px !important; }" in css


def test_document_skeleton() -> None:
    document = assemble_document("<p>Hello</p>", 16)
    assert document.startswith("<!DOCTYPE html>")
    assert '<meta charset="utf-8">' in document
    assert '<meta name="viewport" content="width=device-width, initial-scale=1">' in document
    assert document.count("<style>") == 1
    assert '<body class="markdown-body">\n<p>Hello</p>\n</body>' in document


def test_stylesheets_are_ordered_theme_highlight_print_overrides() -> None:
    document = assemble_document("<p>x</p>", 12)
    positions = [
        document.index(read_stylesheet("github-markdown.css")),
        document.index(highlight_css("default")),
        document.index(read_stylesheet("print.css")),
        document.index(font_override_css(12)),
    ]
    assert positions == sorted(positions)


def test_print_rules_are_scoped_to_print_media() -> None:
    print_css = read_stylesheet("print.css")
    media_start = print_css.index("@media print")
    assert print_css.index("page-break-before: always") > media_start
    assert print_css.index("h1:first-of-type") > media_start


def test_document_has_no_external_references() -> None:
    document = assemble_document("<p>offline</p>", 16)
    assert "<link" not in document
    assert "<script" not in document
    assert "@import" not in document


def test_unknown_highlight_style_is_an_invalid_option() -> None:
    with pytest.raises(InvalidOptionError) as exc:
        assemble_document("<p>x</p>", 16, highlight_style="no-such-style")
    assert exc.value.option == "highlight_style"

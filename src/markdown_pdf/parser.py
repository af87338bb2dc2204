"""GitHub-flavored Markdown rendering with server-side Pygments highlighting."""

from __future__ import annotations

import html

from markdown_it import MarkdownIt
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

HIGHLIGHT_CLASS = "highlight"


def _lexer_for(lang: str) -> Lexer:
    if not lang:
        return TextLexer()
    try:
        return get_lexer_by_name(lang)
    except ClassNotFound:
        return TextLexer()


def highlight_code(code: str, lang: str) -> str:
    highlighted = highlight(code, _lexer_for(lang), HtmlFormatter(nowrap=True))
    class_attr = f' class="language-{html.escape(lang, quote=True)}"' if lang else ""
    return f'<pre class="{HIGHLIGHT_CLASS}"><code{class_attr}>{highlighted}</code></pre>\n'


def _render_fence(self, tokens, idx, options, env):  # type: ignore[no-untyped-def]
    token = tokens[idx]
    info = token.info.strip() if token.info else ""
    lang = info.split()[0] if info else ""
    return highlight_code(token.content, lang)


def build_parser() -> MarkdownIt:
    md = MarkdownIt("gfm-like", {"html": True, "breaks": True})
    md.use(anchors_plugin, min_level=1, max_level=6)
    md.use(footnote_plugin)
    md.use(tasklists_plugin, enabled=False)
    md.add_render_rule("fence", _render_fence)
    return md


def render_markdown(text: str) -> str:
    """Convert Markdown *text* into an HTML fragment."""

    return build_parser().render(text)


def highlight_css(style: str = "default") -> str:
    """Return the Pygments rules for *style*, scoped to highlighted blocks."""

    return HtmlFormatter(style=style).get_style_defs(f".{HIGHLIGHT_CLASS}")


__all__ = ["build_parser", "highlight_code", "highlight_css", "render_markdown"]

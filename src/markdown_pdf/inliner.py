"""Embed local images referenced by an HTML fragment as data URLs."""

from __future__ import annotations

import base64
import html
import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote, unquote, urlparse

_IMG_SRC_RE = re.compile(
    r"""(?P<prefix><img\b[^>]*?(?<![\w-])src\s*=\s*)(?P<quote>["'])(?P<src>[^"']+)(?P=quote)""",
    re.IGNORECASE,
)
_REMOTE_PREFIXES = ("http://", "https://", "data:")
# Characters left unescaped by JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


class ImageInlineError(RuntimeError):
    """Raised when a single image cannot be embedded."""


@dataclass(slots=True)
class InlineResult:
    html: str
    warnings: list[str] = field(default_factory=list)
    inlined: list[str] = field(default_factory=list)


def is_local_source(src: str) -> bool:
    return not src.lower().startswith(_REMOTE_PREFIXES)


def resolve_source(src: str, base_dir: Path) -> Path:
    """Map an ``img`` ``src`` value onto a filesystem path."""

    raw = html.unescape(src)
    try:
        if raw.lower().startswith("file:"):
            return Path(unquote(urlparse(raw).path))
        return (base_dir / unquote(raw)).resolve()
    except (OSError, ValueError) as exc:
        raise ImageInlineError(f"invalid image path: {exc}") from exc


def svg_data_url(path: Path) -> str:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, ValueError) as exc:
        raise ImageInlineError(f"could not read SVG: {exc}") from exc
    if "<svg" not in content:
        raise ImageInlineError("not a valid SVG file")
    return f"data:image/svg+xml;utf8,{quote(content, safe=_URI_COMPONENT_SAFE)}"


def mime_type_for(path: Path) -> str:
    extension = path.suffix.lower().lstrip(".")
    if not extension:
        raise ImageInlineError("unsupported image format (no file extension)")
    return f"image/{'jpeg' if extension == 'jpg' else extension}"


def raster_data_url(path: Path) -> str:
    mime_type = mime_type_for(path)
    try:
        payload = path.read_bytes()
    except (OSError, ValueError) as exc:
        raise ImageInlineError(f"could not read image: {exc}") from exc
    return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"


def image_to_data_url(path: Path) -> str:
    if path.suffix.lower() == ".svg":
        return svg_data_url(path)
    return raster_data_url(path)


def inline_local_images(fragment: str, base_dir: Path) -> InlineResult:
    """Rewrite local ``<img>`` sources in *fragment* to data URLs.

    Remote (``http``/``https``) and ``data:`` sources are left alone. A source
    that cannot be embedded produces a warning and keeps its original value.
    """

    result = InlineResult(html=fragment)
    resolved: dict[str, str | None] = {}

    def _embed(src: str) -> str | None:
        if src in resolved:
            return resolved[src]
        data_url: str | None = None
        try:
            data_url = image_to_data_url(resolve_source(src, base_dir))
        except ImageInlineError as exc:
            result.warnings.append(f"IMAGE_INLINE_FAILED: {src}: {exc}")
        else:
            result.inlined.append(src)
        resolved[src] = data_url
        return data_url

    def _replace(match: re.Match[str]) -> str:
        src = match.group("src")
        if not is_local_source(src):
            return match.group(0)
        data_url = _embed(src)
        if data_url is None:
            return match.group(0)
        quote_char = match.group("quote")
        if quote_char == "'":
            data_url = data_url.replace("'", "%27")
        return f"{match.group('prefix')}{quote_char}{data_url}{quote_char}"

    result.html = _IMG_SRC_RE.sub(_replace, fragment)
    return result


__all__ = [
    "ImageInlineError",
    "InlineResult",
    "image_to_data_url",
    "inline_local_images",
    "is_local_source",
    "resolve_source",
]

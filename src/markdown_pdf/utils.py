from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path


SAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def atomic_write(path: Path, data: str | bytes, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, bytes):
        handle = tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent, suffix=".tmp")
    else:
        handle = tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, suffix=".tmp", encoding=encoding)
    tmp_path = Path(handle.name)
    try:
        with handle as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def size_within_limit(size_bytes: int, max_mb: int) -> bool:
    return size_bytes <= max_mb * 1024 * 1024


def format_number(value: float) -> str:
    """Render *value* without a trailing ``.0`` for integral numbers."""

    if float(value).is_integer():
        return str(int(value))
    return f"{round(value, 4):g}"


def slugify(value: str, max_length: int = 120) -> str:
    normalized = SAFE_FILENAME_RE.sub("-", value.strip())
    normalized = re.sub("-+", "-", normalized)
    normalized = normalized.replace("-.", ".")
    normalized = normalized.strip("-._")
    if not normalized:
        normalized = "document"
    if len(normalized) > max_length:
        normalized = normalized[:max_length]
    return normalized

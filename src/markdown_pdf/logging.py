from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .utils import atomic_write


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


@dataclass(slots=True)
class StageTimings:
    read_ms: float = 0.0
    parse_ms: float = 0.0
    inline_ms: float = 0.0
    assemble_ms: float = 0.0
    render_ms: float = 0.0
    write_ms: float = 0.0


@dataclass(slots=True)
class RunLogEntry:
    source: str
    status: str
    warnings: list[str]
    error_code: str | None
    timings: StageTimings
    output_path: str
    options: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["timings"] = asdict(self.timings)
        return payload


class RunLogger:
    def __init__(self, log_file: Path) -> None:
        self._log_file = log_file

    def append(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(
            {"timestamp": _timestamp(), "message": message, "data": data or {}},
            ensure_ascii=False,
        )
        with self._log_file.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")


class DebugRecorder:
    """Persists intermediate conversion artifacts for inspection.

    One recorder belongs to one conversion; nothing here is process-wide, so
    concurrent conversions can each write to their own directory.
    """

    def __init__(self, debug_dir: Path, log_file: str = "log.jsonl") -> None:
        self._debug_dir = debug_dir
        self._logger = RunLogger(debug_dir / log_file)

    def log(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._logger.append(message, data)

    def write_artifact(self, name: str, content: str) -> Path:
        path = self._debug_dir / name
        atomic_write(path, content)
        return path


class NullRecorder:
    """Recorder used when debugging is off."""

    def log(self, message: str, data: dict[str, Any] | None = None) -> None:
        return None

    def write_artifact(self, name: str, content: str) -> Path | None:
        return None


__all__ = ["DebugRecorder", "NullRecorder", "RunLogEntry", "RunLogger", "StageTimings"]

"""Domain models for Markdown to PDF conversion."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path

from .config import DEFAULT_FONT_SIZE_PX, DEFAULT_SCALE, STANDARD_MARGIN_MM
from .errors import InvalidOptionError
from .logging import StageTimings

MARGIN_SIDES = ("top", "right", "bottom", "left")


@dataclass(frozen=True, slots=True)
class Margins:
    """Page margins in millimetres."""

    top: float = STANDARD_MARGIN_MM
    right: float = STANDARD_MARGIN_MM
    bottom: float = STANDARD_MARGIN_MM
    left: float = STANDARD_MARGIN_MM

    @classmethod
    def uniform(cls, value: float) -> Margins:
        return cls(top=value, right=value, bottom=value, left=value)

    def as_dict(self) -> dict[str, float]:
        return {side: getattr(self, side) for side in MARGIN_SIDES}


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    """Everything needed to convert one Markdown file."""

    input_path: Path
    scale: float = DEFAULT_SCALE
    font_size_px: int = DEFAULT_FONT_SIZE_PX
    margins: Margins = field(default_factory=Margins)

    @property
    def output_path(self) -> Path:
        return self.input_path.with_suffix(".pdf")

    def validate(self) -> None:
        check_option("scale", self.scale)
        check_option("font_size", self.font_size_px)
        for side, value in self.margins.as_dict().items():
            check_option(f"margin_{side}", value)


@dataclass(slots=True)
class RenderResult:
    pdf: bytes
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ConversionResult:
    """Result metadata for an individual conversion."""

    request: ConversionRequest
    output_path: Path
    warnings: list[str]
    summary: str
    timings: StageTimings


def _is_finite(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


_POSITIVE_OPTIONS = {
    "scale": "Scale factor must be a positive number",
    "font_size": "Font size must be a positive number",
}


def check_option(option: str, value: object) -> None:
    """Validate one option value; scale and font size must be positive, margins non-negative."""

    message = _POSITIVE_OPTIONS.get(option)
    if message is not None:
        if not _is_finite(value) or value <= 0:  # type: ignore[operator]
            raise InvalidOptionError(option, message)
        return
    if not _is_finite(value) or value < 0:  # type: ignore[operator]
        raise InvalidOptionError(option, f"{option.replace('_', ' ')} must be a non-negative number")


def validate_options(**options: float | None) -> None:
    """Validate explicitly supplied options, skipping the ones left unset."""

    for option, value in options.items():
        if value is not None:
            check_option(option, value)


__all__ = [
    "MARGIN_SIDES",
    "ConversionRequest",
    "ConversionResult",
    "Margins",
    "RenderResult",
    "check_option",
    "validate_options",
]

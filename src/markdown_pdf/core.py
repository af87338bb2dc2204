from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .assembler import assemble_document
from .config import AppConfig
from .errors import ConversionError, InvalidOptionError
from .inliner import inline_local_images
from .logging import DebugRecorder, NullRecorder, RunLogEntry, StageTimings
from .models import ConversionRequest, ConversionResult, Margins, RenderResult, validate_options
from .parser import render_markdown
from .renderer import PdfRenderer
from .utils import atomic_write


class Renderer(Protocol):
    def render(self, document: str, scale: float, margins: Margins) -> RenderResult:  # pragma: no cover - interface
        ...


Recorder = DebugRecorder | NullRecorder


@dataclass(slots=True)
class _ConversionContext:
    request: ConversionRequest
    recorder: Recorder
    timings: StageTimings
    warnings: list[str]


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class ConversionService:
    def __init__(self, config: AppConfig, *, renderer: Renderer | None = None) -> None:
        self._config = config
        self._renderer = renderer or PdfRenderer.from_config(config.runtime)

    def build_request(
        self,
        input_path: Path,
        *,
        scale: float | None = None,
        font_size: int | None = None,
        margin: float | None = None,
        margin_top: float | None = None,
        margin_right: float | None = None,
        margin_bottom: float | None = None,
        margin_left: float | None = None,
    ) -> ConversionRequest:
        """Fill unset options from configured defaults and validate the result."""

        validate_options(
            scale=scale,
            font_size=font_size,
            margin=margin,
            margin_top=margin_top,
            margin_right=margin_right,
            margin_bottom=margin_bottom,
            margin_left=margin_left,
        )
        defaults = self._config.defaults
        uniform = defaults.margin if margin is None else margin
        request = ConversionRequest(
            input_path=input_path,
            scale=defaults.scale if scale is None else scale,
            font_size_px=defaults.font_size if font_size is None else font_size,
            margins=Margins(
                top=uniform if margin_top is None else margin_top,
                right=uniform if margin_right is None else margin_right,
                bottom=uniform if margin_bottom is None else margin_bottom,
                left=uniform if margin_left is None else margin_left,
            ),
        )
        request.validate()
        return request

    def convert(self, request: ConversionRequest) -> ConversionResult:
        request.validate()
        context = _ConversionContext(
            request=request,
            recorder=self._build_recorder(),
            timings=StageTimings(),
            warnings=[],
        )
        start = time.perf_counter()
        try:
            self._convert_internal(context)
        except ConversionError as exc:
            self._log_outcome(context, "failure", exc.code)
            raise
        self._log_outcome(context, "success", None)
        elapsed = time.perf_counter() - start
        summary = f"Converted {request.input_path.name} -> {request.output_path} in {elapsed:.2f}s"
        return ConversionResult(
            request=request,
            output_path=request.output_path,
            warnings=context.warnings,
            summary=summary,
            timings=context.timings,
        )

    def _convert_internal(self, context: _ConversionContext) -> None:
        request = context.request
        recorder = context.recorder
        timings = context.timings

        stage = time.perf_counter()
        markdown = self._read_source(request.input_path)
        timings.read_ms = _elapsed_ms(stage)
        recorder.write_artifact("input.md", markdown)
        recorder.log("Input Markdown", {"path": str(request.input_path), "characters": len(markdown)})

        stage = time.perf_counter()
        fragment = render_markdown(markdown)
        timings.parse_ms = _elapsed_ms(stage)
        recorder.write_artifact("markdown.html", fragment)

        stage = time.perf_counter()
        inlined = inline_local_images(fragment, request.input_path.parent)
        timings.inline_ms = _elapsed_ms(stage)
        context.warnings.extend(inlined.warnings)
        recorder.log("HTML with processed images", {"inlined": inlined.inlined, "warnings": inlined.warnings})

        stage = time.perf_counter()
        document = assemble_document(inlined.html, request.font_size_px, self._config.style.highlight_style)
        timings.assemble_ms = _elapsed_ms(stage)
        recorder.write_artifact("final.html", document)

        stage = time.perf_counter()
        rendered = self._renderer.render(document, request.scale, request.margins)
        timings.render_ms = _elapsed_ms(stage)
        context.warnings.extend(rendered.warnings)

        stage = time.perf_counter()
        self._write_output(request.output_path, rendered.pdf)
        timings.write_ms = _elapsed_ms(stage)

    def _build_recorder(self) -> Recorder:
        runtime = self._config.runtime
        if not runtime.debug:
            return NullRecorder()
        return DebugRecorder(runtime.debug_dir, runtime.log_file)

    def _read_source(self, path: Path) -> str:
        if not path.is_file():
            raise ConversionError("INPUT_NOT_FOUND", f'Input file "{path}" does not exist')
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConversionError("INPUT_NOT_FOUND", f'Input file "{path}" could not be read: {exc}') from exc

    def _write_output(self, output_path: Path, pdf: bytes) -> None:
        try:
            atomic_write(output_path, pdf)
        except OSError as exc:
            raise ConversionError("PDF_WRITE_FAILED", f"Could not write {output_path}: {exc}") from exc

    def _log_outcome(self, context: _ConversionContext, status: str, error_code: str | None) -> None:
        request = context.request
        context.recorder.log(
            "PDF Generation",
            RunLogEntry(
                source=str(request.input_path),
                status=status,
                warnings=context.warnings,
                error_code=error_code,
                timings=context.timings,
                output_path=str(request.output_path),
                options={
                    "scale": request.scale,
                    "font_size": request.font_size_px,
                    "margins": request.margins.as_dict(),
                },
            ).to_dict(),
        )


__all__ = [
    "ConversionError",
    "ConversionService",
    "InvalidOptionError",
    "Renderer",
]

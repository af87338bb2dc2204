from __future__ import annotations

import asyncio
import json
import tempfile
from pathlib import Path

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from . import __version__
from .config import apply_settings, load_config
from .core import ConversionError, ConversionService, InvalidOptionError, Renderer
from .schemas import HealthStatus, OptionError
from .settings import get_settings
from .utils import size_within_limit, slugify


def _source_name(filename: str | None) -> str:
    name = slugify(Path(filename or "document.md").name)
    if not name.lower().endswith((".md", ".markdown")):
        name = f"{name}.md"
    return name


def create_app(
    config_path: Path | None = None,
    *,
    require_enabled: bool = True,
    renderer: Renderer | None = None,
) -> FastAPI:
    settings = get_settings()
    config = apply_settings(load_config(config_path or settings.config_path), settings)
    if require_enabled and not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via config.runtime.enable_local_api")
    service = ConversionService(config, renderer=renderer)
    app = FastAPI(title="Markdown PDF Converter", version=__version__)

    @app.get("/health", summary="Health check")
    def health() -> HealthStatus:
        return HealthStatus(status="ok", version=__version__)

    @app.post("/convert", summary="Convert a Markdown document to PDF", response_class=Response)
    async def convert(
        file: UploadFile = File(...),
        scale: float | None = Form(None),
        font_size: int | None = Form(None),
        margin: float | None = Form(None),
        margin_top: float | None = Form(None),
        margin_right: float | None = Form(None),
        margin_bottom: float | None = Form(None),
        margin_left: float | None = Form(None),
    ) -> Response:
        content = await file.read()
        if not size_within_limit(len(content), config.runtime.max_file_size_mb):
            raise HTTPException(status_code=413, detail="SIZE_LIMIT")
        with tempfile.TemporaryDirectory(prefix="markdown-pdf-") as workdir:
            source = Path(workdir) / _source_name(file.filename)
            source.write_bytes(content)
            try:
                request = service.build_request(
                    source,
                    scale=scale,
                    font_size=font_size,
                    margin=margin,
                    margin_top=margin_top,
                    margin_right=margin_right,
                    margin_bottom=margin_bottom,
                    margin_left=margin_left,
                )
                result = await asyncio.to_thread(service.convert, request)
            except InvalidOptionError as exc:
                detail = OptionError(code=exc.code, option=exc.option, message=str(exc))
                raise HTTPException(status_code=422, detail=detail.model_dump()) from exc
            except ConversionError as exc:
                raise HTTPException(status_code=400, detail=exc.code) from exc
            pdf = result.output_path.read_bytes()
        headers = {"Content-Disposition": f'attachment; filename="{result.output_path.name}"'}
        if result.warnings:
            headers["X-Conversion-Warnings"] = json.dumps(result.warnings)
        return Response(content=pdf, media_type="application/pdf", headers=headers)

    return app


__all__ = ["create_app"]

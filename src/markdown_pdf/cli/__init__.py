from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from ..config import AppConfig, apply_settings, load_config
from ..core import ConversionError, ConversionService, InvalidOptionError
from ..models import ConversionRequest, validate_options
from ..settings import get_settings
from ..utils import format_number

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="Convert Markdown files to paginated A4 PDFs")


def _load_config(path: Path | None, debug: bool) -> AppConfig:
    settings = get_settings()
    config = apply_settings(load_config(path or settings.config_path), settings)
    if debug:
        config.runtime.debug = True
    return config


def describe_settings(request: ConversionRequest) -> str:
    margins = request.margins
    return (
        f"Settings used: scale={format_number(request.scale)}, "
        f"font-size={format_number(request.font_size_px)}px, "
        f"margins: top={format_number(margins.top)}mm, right={format_number(margins.right)}mm, "
        f"bottom={format_number(margins.bottom)}mm, left={format_number(margins.left)}mm"
    )


@app.command()
def convert(
    input_path: Path = typer.Argument(..., metavar="INPUT", help="Markdown file to convert"),
    scale: float | None = typer.Option(None, "--scale", help="Scale factor for the PDF (default: 1.0)"),
    font_size: int | None = typer.Option(None, "--font-size", help="Base font size in pixels (default: 16)"),
    margin: float | None = typer.Option(None, "--margin", help="Margin in mm for all four sides (default: 25.4)"),
    margin_top: float | None = typer.Option(None, "--margin-top", help="Top margin in mm"),
    margin_right: float | None = typer.Option(None, "--margin-right", help="Right margin in mm"),
    margin_bottom: float | None = typer.Option(None, "--margin-bottom", help="Bottom margin in mm"),
    margin_left: float | None = typer.Option(None, "--margin-left", help="Left margin in mm"),
    debug: bool = typer.Option(False, "--debug", help="Write intermediate HTML and a log to the debug directory"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    options = {
        "scale": scale,
        "font_size": font_size,
        "margin": margin,
        "margin_top": margin_top,
        "margin_right": margin_right,
        "margin_bottom": margin_bottom,
        "margin_left": margin_left,
    }
    try:
        # Flag values are rejected before the config file is read.
        validate_options(**options)
        service = ConversionService(_load_config(config, debug))
        request = service.build_request(input_path, **options)
    except InvalidOptionError as exc:
        err_console.print(f"[red]Invalid option {exc.option}[/red]: {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(1) from exc

    try:
        result = service.convert(request)
    except ConversionError as exc:
        err_console.print(f"[red]Conversion failed[/red]: {exc.code} - {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(1) from exc

    for warning in result.warnings:
        err_console.print(f"[yellow]Warning[/yellow]: {escape(warning)}", soft_wrap=True)
    console.print(f"[green]PDF created successfully at[/green]: {escape(str(result.output_path))}", soft_wrap=True)
    console.print(describe_settings(request), soft_wrap=True)


if __name__ == "__main__":
    app()

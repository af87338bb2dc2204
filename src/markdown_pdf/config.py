from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .settings import DEFAULT_CONFIG_PATH, Settings

STANDARD_MARGIN_MM = 25.4
DEFAULT_FONT_SIZE_PX = 16
DEFAULT_SCALE = 1.0


@dataclass(slots=True)
class RuntimeConfig:
    debug: bool = False
    debug_dir: Path = Path("debug")
    log_file: str = "log.jsonl"
    navigation_timeout_s: float = 30.0
    image_poll_interval_ms: int = 100
    headless: bool = True
    browser_channel: str | None = None
    enable_local_api: bool = False
    max_file_size_mb: int = 25


@dataclass(slots=True)
class DefaultsConfig:
    scale: float = DEFAULT_SCALE
    font_size: int = DEFAULT_FONT_SIZE_PX
    margin: float = STANDARD_MARGIN_MM


@dataclass(slots=True)
class StyleConfig:
    highlight_style: str = "default"


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    style: StyleConfig = field(default_factory=StyleConfig)
    api: APIConfig = field(default_factory=APIConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else None


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    channel = str(data.get("browser_channel") or "").strip()
    return RuntimeConfig(
        debug=bool(data.get("debug", False)),
        debug_dir=Path(str(data.get("debug_dir", "debug"))),
        log_file=str(data.get("log_file", "log.jsonl")),
        navigation_timeout_s=float(data.get("navigation_timeout_s", 30.0)),
        image_poll_interval_ms=int(data.get("image_poll_interval_ms", 100)),
        headless=bool(data.get("headless", True)),
        browser_channel=channel or None,
        enable_local_api=bool(data.get("enable_local_api", False)),
        max_file_size_mb=int(data.get("max_file_size_mb", 25)),
    )


def _build_defaults(data: Mapping[str, object] | None) -> DefaultsConfig:
    if not data:
        return DefaultsConfig()
    return DefaultsConfig(
        scale=float(data.get("scale", DEFAULT_SCALE)),
        font_size=int(data.get("font_size", DEFAULT_FONT_SIZE_PX)),
        margin=float(data.get("margin", STANDARD_MARGIN_MM)),
    )


def _build_style(data: Mapping[str, object] | None) -> StyleConfig:
    if not data:
        return StyleConfig()
    return StyleConfig(highlight_style=str(data.get("highlight_style", "default")))


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def load_config(path: Path | None = None) -> AppConfig:
    raw = _read_toml(path or DEFAULT_CONFIG_PATH)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        defaults=_build_defaults(_section(raw, "defaults")),
        style=_build_style(_section(raw, "style")),
        api=_build_api(_section(raw, "api")),
    )


def apply_settings(config: AppConfig, settings: Settings) -> AppConfig:
    """Let environment settings override values read from the config file."""

    if settings.debug is not None:
        config.runtime.debug = settings.debug
    if settings.enable_local_api is not None:
        config.runtime.enable_local_api = settings.enable_local_api
    return config

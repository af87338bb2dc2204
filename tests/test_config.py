from pathlib import Path

import pytest

from markdown_pdf.config import AppConfig, apply_settings, load_config
from markdown_pdf.settings import Settings, get_settings, read_settings


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.toml")
    assert config == AppConfig()
    assert config.defaults.scale == 1.0
    assert config.defaults.font_size == 16
    assert config.defaults.margin == 25.4
    assert config.runtime.navigation_timeout_s == 30.0
    assert config.runtime.enable_local_api is False


def test_config_file_overrides(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                "[runtime]",
                "debug = true",
                'debug_dir = "out/debug"',
                "navigation_timeout_s = 5",
                'browser_channel = "chrome"',
                "[defaults]",
                "font_size = 12",
                "[style]",
                'highlight_style = "monokai"',
                "[api]",
                "port = 9000",
            ]
        ),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.runtime.debug is True
    assert config.runtime.debug_dir == Path("out/debug")
    assert config.runtime.navigation_timeout_s == 5.0
    assert config.runtime.browser_channel == "chrome"
    assert config.defaults.font_size == 12
    assert config.defaults.scale == 1.0
    assert config.style.highlight_style == "monokai"
    assert config.api.port == 9000
    assert config.api.host == "127.0.0.1"


def test_environment_settings_win(tmp_path: Path) -> None:
    config = apply_settings(load_config(tmp_path / "absent.toml"), Settings(debug=True, enable_local_api=True))
    assert config.runtime.debug is True
    assert config.runtime.enable_local_api is True

    untouched = apply_settings(load_config(tmp_path / "absent.toml"), Settings())
    assert untouched.runtime.debug is False


def test_read_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MD2PDF_CONFIG_PATH", "/etc/md2pdf.toml")
    monkeypatch.setenv("MD2PDF_DEBUG", "yes")
    monkeypatch.setenv("MD2PDF_ENABLE_LOCAL_API", "maybe")
    settings = read_settings()
    assert settings.config_path == Path("/etc/md2pdf.toml")
    assert settings.debug is True
    assert settings.enable_local_api is None


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("MD2PDF_DEBUG", "1")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().debug is True

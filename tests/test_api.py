import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from markdown_pdf import __version__
from markdown_pdf.api import create_app
from markdown_pdf.errors import ConversionError

from conftest import FAKE_PDF, FakeRenderer


@pytest.fixture
def client(tmp_path: Path, fake_renderer: FakeRenderer) -> TestClient:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[runtime]\nenable_local_api = true\nmax_file_size_mb = 1\n", encoding="utf-8")
    return TestClient(create_app(config_path, renderer=fake_renderer))


def test_disabled_api_refuses_to_start(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        create_app(tmp_path / "absent.toml", renderer=FakeRenderer())


def test_environment_enables_api(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MD2PDF_ENABLE_LOCAL_API", "true")
    app = create_app(tmp_path / "absent.toml", renderer=FakeRenderer())
    assert TestClient(app).get("/health").status_code == 200


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_convert_returns_pdf(client: TestClient, fake_renderer: FakeRenderer) -> None:
    response = client.post(
        "/convert",
        files={"file": ("My Notes.md", b"# Title\n\nBody\n", "text/markdown")},
        data={"scale": "0.9", "margin": "10"},
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="My-Notes.pdf"' in response.headers["content-disposition"]
    assert response.content == FAKE_PDF
    assert "X-Conversion-Warnings" not in response.headers
    _, scale, margins = fake_renderer.calls[0]
    assert scale == 0.9
    assert margins.top == 10


def test_convert_reports_warnings(client: TestClient) -> None:
    response = client.post("/convert", files={"file": ("doc.md", b"![a](a.png)\n", "text/markdown")})
    assert response.status_code == 200
    warnings = json.loads(response.headers["X-Conversion-Warnings"])
    assert warnings[0].startswith("IMAGE_INLINE_FAILED: a.png")


def test_invalid_option_is_422(client: TestClient) -> None:
    response = client.post("/convert", files={"file": ("doc.md", b"# x\n", "text/markdown")}, data={"scale": "0"})
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "INVALID_OPTION"
    assert detail["option"] == "scale"


def test_render_failure_is_400(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[runtime]\nenable_local_api = true\n", encoding="utf-8")
    renderer = FakeRenderer(error=ConversionError("RENDER_FAILED", "browser crashed"))
    response = TestClient(create_app(config_path, renderer=renderer)).post(
        "/convert", files={"file": ("doc.md", b"# x\n", "text/markdown")}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "RENDER_FAILED"


def test_oversized_upload_is_413(client: TestClient) -> None:
    payload = b"a" * (1024 * 1024 + 1)
    response = client.post("/convert", files={"file": ("big.md", payload, "text/markdown")})
    assert response.status_code == 413
    assert response.json()["detail"] == "SIZE_LIMIT"

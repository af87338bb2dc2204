from __future__ import annotations

import base64
from pathlib import Path

import pytest

from markdown_pdf.models import Margins, RenderResult
from markdown_pdf.settings import get_settings

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
FAKE_PDF = b"%PDF-1.4\n% fake document\n%%EOF\n"


class FakeRenderer:
    def __init__(
        self,
        pdf: bytes = FAKE_PDF,
        warnings: list[str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.pdf = pdf
        self.warnings = warnings or []
        self.error = error
        self.calls: list[tuple[str, float, Margins]] = []

    def render(self, document: str, scale: float, margins: Margins) -> RenderResult:
        self.calls.append((document, scale, margins))
        if self.error is not None:
            raise self.error
        return RenderResult(pdf=self.pdf, warnings=list(self.warnings))


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    for name in ("MD2PDF_CONFIG_PATH", "MD2PDF_DEBUG", "MD2PDF_ENABLE_LOCAL_API"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def sample_doc(tmp_path: Path) -> Path:
    (tmp_path / "pixel.png").write_bytes(PNG_1X1)
    source = tmp_path / "doc.md"
    source.write_text("# Heading\n\nA paragraph of text.\n\n![pixel](pixel.png)\n", encoding="utf-8")
    return source

"""Headless Chromium rendering and A4 pagination.

The page is only printed once three independent completion signals agree:
Playwright's load states (``load``, ``domcontentloaded`` and ``networkidle``),
an in-page check that every ``<img>`` has settled, and an explicit set of
in-flight image requests fed by network events. Image request events can fire
after the load states resolve.
"""

from __future__ import annotations

import asyncio
import math
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from functools import partial
from typing import Any, AsyncIterator, Callable

from playwright.async_api import Browser, Page, Request, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import RuntimeConfig
from .errors import ConversionError
from .models import Margins, RenderResult
from .utils import format_number

A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297
CSS_PIXELS_PER_INCH = 96
MM_PER_INCH = 25.4

HEADER_TEMPLATE = "<div></div>"
FOOTER_TEMPLATE = (
    '<div style="font-size: 10px; text-align: center; width: 100%; margin: 0 50px;">'
    '<span class="pageNumber"></span> / <span class="totalPages"></span>'
    "</div>"
)

_WAIT_FOR_IMAGES_SCRIPT = """
async () => {
  const failed = [];
  const images = Array.from(document.getElementsByTagName("img"));
  await Promise.all(images.map((img) => {
    if (img.complete) {
      if (img.naturalWidth === 0) failed.push(img.currentSrc || img.src);
      return Promise.resolve();
    }
    return new Promise((resolve) => {
      img.addEventListener("load", () => resolve(), { once: true });
      img.addEventListener("error", () => {
        failed.push(img.currentSrc || img.src);
        resolve();
      }, { once: true });
    });
  }));
  return failed;
}
"""

_APPLY_SCALE_SCRIPT = """
(scale) => {
  document.body.style.transform = `scale(${scale})`;
  document.body.style.transformOrigin = "top left";
}
"""

BrowserLauncher = Callable[[], AbstractAsyncContextManager[Browser]]


def mm_to_pixels(mm: float) -> int:
    return math.floor(mm * CSS_PIXELS_PER_INCH / MM_PER_INCH)


def a4_viewport() -> dict[str, int]:
    return {"width": mm_to_pixels(A4_WIDTH_MM), "height": mm_to_pixels(A4_HEIGHT_MM)}


def pdf_options(margins: Margins) -> dict[str, Any]:
    return {
        "format": "A4",
        "margin": {side: f"{format_number(value)}mm" for side, value in margins.as_dict().items()},
        "print_background": True,
        "display_header_footer": True,
        "header_template": HEADER_TEMPLATE,
        "footer_template": FOOTER_TEMPLATE,
        "prefer_css_page_size": True,
    }


def _describe(url: str, limit: int = 80) -> str:
    return url if len(url) <= limit else url[: limit - 3] + "..."


class PendingImageSet:
    """Image request URLs that have started but not yet finished or failed."""

    def __init__(self) -> None:
        self._urls: set[str] = set()

    def add(self, url: str) -> None:
        self._urls.add(url)

    def discard(self, url: str) -> None:
        self._urls.discard(url)

    def __len__(self) -> int:
        return len(self._urls)

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    async def wait_until_empty(self, interval_s: float, timeout_s: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_s
        while self._urls:
            if loop.time() >= deadline:
                raise ConversionError(
                    "RENDER_TIMEOUT",
                    f"Timed out waiting for {len(self._urls)} image request(s) to finish",
                )
            await asyncio.sleep(interval_s)


def track_image_requests(page: Page, pending: PendingImageSet, warnings: list[str]) -> None:
    def _on_request(request: Request) -> None:
        if request.resource_type == "image":
            pending.add(request.url)

    def _on_finished(request: Request) -> None:
        if request.resource_type == "image":
            pending.discard(request.url)

    def _on_failed(request: Request) -> None:
        if request.resource_type == "image":
            warnings.append(f"IMAGE_LOAD_FAILED: {_describe(request.url)}: {request.failure}")
            pending.discard(request.url)

    page.on("request", _on_request)
    page.on("requestfinished", _on_finished)
    page.on("requestfailed", _on_failed)


@asynccontextmanager
async def launch_chromium(headless: bool = True, channel: str | None = None) -> AsyncIterator[Browser]:
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless, channel=channel)
        try:
            yield browser
        finally:
            await browser.close()


class PdfRenderer:
    def __init__(
        self,
        *,
        timeout_s: float = 30.0,
        poll_interval_ms: int = 100,
        launcher: BrowserLauncher | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_ms / 1000
        self._launcher = launcher or launch_chromium

    @classmethod
    def from_config(cls, runtime: RuntimeConfig) -> PdfRenderer:
        return cls(
            timeout_s=runtime.navigation_timeout_s,
            poll_interval_ms=runtime.image_poll_interval_ms,
            launcher=partial(launch_chromium, headless=runtime.headless, channel=runtime.browser_channel),
        )

    def render(self, document: str, scale: float, margins: Margins) -> RenderResult:
        return asyncio.run(self.render_async(document, scale, margins))

    async def render_async(self, document: str, scale: float, margins: Margins) -> RenderResult:
        warnings: list[str] = []
        try:
            async with self._launcher() as browser:
                page = await browser.new_page(viewport=a4_viewport(), device_scale_factor=1)
                pdf = await self._print_page(page, document, scale, margins, warnings)
        except PlaywrightTimeoutError as exc:
            raise ConversionError("RENDER_TIMEOUT", f"Rendering timed out: {exc}") from exc
        except PlaywrightError as exc:
            raise ConversionError("RENDER_FAILED", f"Rendering failed: {exc}") from exc
        return RenderResult(pdf=pdf, warnings=warnings)

    async def _print_page(
        self,
        page: Page,
        document: str,
        scale: float,
        margins: Margins,
        warnings: list[str],
    ) -> bytes:
        timeout_ms = self._timeout_s * 1000
        page.set_default_navigation_timeout(timeout_ms)
        page.set_default_timeout(timeout_ms)

        pending = PendingImageSet()
        track_image_requests(page, pending, warnings)

        await page.emulate_media(media="print")
        await self._load(page, document)

        failed: list[str] = await page.evaluate(_WAIT_FOR_IMAGES_SCRIPT)
        for src in failed:
            warnings.append(f"IMAGE_LOAD_FAILED: {_describe(src)}")

        await pending.wait_until_empty(self._poll_interval_s, self._timeout_s)

        if scale != 1.0:
            await page.evaluate(_APPLY_SCALE_SCRIPT, scale)

        return await page.pdf(**pdf_options(margins))

    async def _load(self, page: Page, document: str) -> None:
        await page.set_content(document, wait_until="load")
        await page.wait_for_load_state("domcontentloaded")
        await page.wait_for_load_state("networkidle")


__all__ = [
    "FOOTER_TEMPLATE",
    "HEADER_TEMPLATE",
    "PdfRenderer",
    "PendingImageSet",
    "a4_viewport",
    "launch_chromium",
    "mm_to_pixels",
    "pdf_options",
    "track_image_requests",
]

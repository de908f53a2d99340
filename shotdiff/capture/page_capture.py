"""Page capture: takes normalized screenshots from a Playwright page.

The caller owns the browser, context and page; this class only reads
viewport metadata, scrolls and screenshots.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from PIL import Image

from shotdiff.capture.codec import decode_image
from shotdiff.capture.normalizer import normalize_capture
from shotdiff.capture.region import extract_region
from shotdiff.errors import ElementNotFoundError, MissingViewportMetadataError
from shotdiff.models.capture import ElementGeometry, ViewportMetadata
from shotdiff.models.config import ShotdiffConfig

logger = logging.getLogger(__name__)

Hook = Callable[[], None]

_VIEWPORT_SCRIPT = "() => ({ dpr: window.devicePixelRatio || 1, innerHeight: window.innerHeight })"
_SCROLL_SCRIPT = (
    "() => { const doc = document.documentElement;"
    " return (window.pageYOffset || doc.scrollTop) - (doc.clientTop || 0); }"
)
_PAGE_RECT_SCRIPT = (
    "e => { const r = e.getBoundingClientRect();"
    " return { x: r.left + window.pageXOffset, y: r.top + window.pageYOffset,"
    " width: r.width, height: r.height }; }"
)


class PageCapture:
    """Captures viewport and element screenshots in logical pixels."""

    def __init__(
        self,
        page: Page,
        vertical_offset: int = 0,
        timeout_ms: int = 5000,
        on_before_screenshot: Optional[Hook] = None,
        on_after_screenshot: Optional[Hook] = None,
    ):
        self.page = page
        self.vertical_offset = vertical_offset
        self.timeout_ms = timeout_ms
        self.on_before_screenshot = on_before_screenshot
        self.on_after_screenshot = on_after_screenshot

    @classmethod
    def from_config(cls, page: Page, config: ShotdiffConfig, **hooks: Optional[Hook]) -> "PageCapture":
        return cls(page, vertical_offset=config.vertical_offset, timeout_ms=config.element_timeout_ms, **hooks)

    async def get_scroll_position(self) -> int:
        """Return the current vertical scroll offset."""
        return int(await self.page.evaluate("() => window.pageYOffset"))

    async def get_viewport_metadata(self) -> ViewportMetadata:
        try:
            values = await self.page.evaluate(_VIEWPORT_SCRIPT)
        except PlaywrightError as e:
            raise MissingViewportMetadataError(f"Viewport query failed: {e}") from e
        if not values:
            raise MissingViewportMetadataError("Viewport query returned nothing")
        return ViewportMetadata.from_values({
            "device_pixel_ratio": values.get("dpr"),
            "vertical_offset": self.vertical_offset,
            "inner_viewport_height": values.get("innerHeight"),
        })

    async def normalized_screenshot(self) -> Image.Image:
        """Screenshot the viewport and normalize it to logical pixels."""
        metadata = await self.get_viewport_metadata()
        raw = decode_image(await self.page.screenshot())
        return normalize_capture(raw, metadata)

    async def element_screenshot(self, selector: str | None) -> Image.Image:
        """Screenshot a single element, or the whole viewport when selector is None."""
        if selector is None:
            return await self.normalized_screenshot()

        if self.on_before_screenshot:
            self.on_before_screenshot()

        element = await self._find_element(selector)
        geometry = await self._element_geometry(selector, element)

        await self.page.evaluate(f"() => window.scroll(0, {geometry.y})")
        scroll_offset = int(await self.page.evaluate(_SCROLL_SCRIPT))
        image = await self.normalized_screenshot()

        if self.on_after_screenshot:
            self.on_after_screenshot()

        logger.debug("Element '%s' at %s, scrolled to %d", selector, geometry, scroll_offset)
        return extract_region(image, geometry, scroll_offset)

    async def save_screenshot(self, path: str | Path) -> Path | None:
        """Save a raw PNG screenshot. Returns None if the capture failed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            await self.page.screenshot(path=str(path), full_page=False)
            return path
        except PlaywrightError as e:
            logger.warning("Screenshot failed: %s", e)
            return None

    async def _find_element(self, selector: str) -> ElementHandle:
        try:
            element = await self.page.wait_for_selector(selector, timeout=self.timeout_ms, state="attached")
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(selector, self.timeout_ms) from e
        if element is None:
            raise ElementNotFoundError(selector, self.timeout_ms)
        return element

    async def _element_geometry(self, selector: str, element: ElementHandle) -> ElementGeometry:
        """Page coordinates of the element, or its on-screen box once scrolled into view."""
        try:
            rect = await element.evaluate(_PAGE_RECT_SCRIPT)
        except PlaywrightError as e:
            logger.debug("Page rect query failed (%s), using on-screen location", e)
            await element.scroll_into_view_if_needed(timeout=self.timeout_ms)
            rect = await element.bounding_box()
            if rect is None:
                raise ElementNotFoundError(selector, self.timeout_ms) from e
        return ElementGeometry(
            x=round(rect["x"]),
            y=round(rect["y"]),
            width=round(rect["width"]),
            height=round(rect["height"]),
        )

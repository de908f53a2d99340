"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Page
from PIL import Image

from shotdiff.comparator.comparator import BACKGROUND_COLOR
from shotdiff.models.capture import ElementGeometry
from shotdiff.models.config import ComparisonConfig


# ============================================================================
# Image Helpers
# ============================================================================


def solid_image(width: int, height: int, color=BACKGROUND_COLOR, mode: str = "RGBA") -> Image.Image:
    """Create a solid image; defaults to the page background colour."""
    if mode == "RGB":
        color = color[:3]
    return Image.new(mode, (width, height), color)


def gradient_image(width: int, height: int) -> Image.Image:
    """Create an image where every pixel is distinct content."""
    img = Image.new("RGBA", (width, height))
    px = img.load()
    for x in range(width):
        for y in range(height):
            px[x, y] = (x % 256, y % 256, (x * y) % 256, 255)
    return img


def recolour(image: Image.Image, pixels: list[tuple[int, int]], color=(0, 0, 0, 255)) -> Image.Image:
    """Return a copy of image with the given coordinates recoloured."""
    copy = image.copy()
    for xy in pixels:
        copy.putpixel(xy, color if copy.mode == "RGBA" else color[:3])
    return copy


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_image():
    """Factory for solid images."""
    return solid_image


@pytest.fixture
def make_gradient():
    """Factory for all-content gradient images."""
    return gradient_image


@pytest.fixture
def with_pixels():
    """Copy an image with some pixels recoloured (black by default)."""
    return recolour


@pytest.fixture
def png_bytes():
    """Encode an image as PNG bytes, as a browser screenshot returns them."""
    return encode_png


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def comparison_config(tmp_path: Path) -> ComparisonConfig:
    """Comparison config writing its heatmap into a temp dir."""
    return ComparisonConfig(heatmap_path=str(tmp_path / "heatmap.jpg"))


@pytest.fixture
def element_geometry() -> ElementGeometry:
    return ElementGeometry(x=10, y=400, width=50, height=30)


# ============================================================================
# Playwright Fixtures
# ============================================================================


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = "https://example.com"
    page.screenshot = AsyncMock()
    page.evaluate = AsyncMock()
    page.wait_for_selector = AsyncMock()
    return page


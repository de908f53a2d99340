"""Decoding of captured pixel data into Pillow images."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from shotdiff.errors import DecodeError

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes (PNG, JPEG, ...) into a fully loaded image."""
    if not data:
        raise DecodeError("No image data")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Cannot decode image data: {e}") from e
    logger.debug("Decoded %s image %dx%d", img.format, img.width, img.height)
    return img


def load_image(path: str | Path) -> Image.Image:
    """Read and decode an image file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    try:
        return decode_image(path.read_bytes())
    except DecodeError as e:
        raise DecodeError(f"{path}: {e}") from e


def image_from_buffer(data: bytes, width: int, height: int, mode: str = "RGBA") -> Image.Image:
    """Wrap a raw, uncompressed pixel buffer of known dimensions."""
    if width < 0 or height < 0:
        raise DecodeError(f"Invalid dimensions {width}x{height}")
    try:
        return Image.frombytes(mode, (width, height), data)
    except ValueError as e:
        raise DecodeError(f"Malformed {mode} buffer for {width}x{height}: {e}") from e

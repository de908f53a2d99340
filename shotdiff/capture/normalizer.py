"""Normalization of raw captures into logical viewport images.

A raw screenshot is taken at physical resolution and may include browser
chrome above the page. Normalizing scales it back to logical pixels and
keeps only the inner viewport.
"""

from __future__ import annotations

import logging

from PIL import Image

from shotdiff.errors import MissingViewportMetadataError
from shotdiff.models.capture import ViewportMetadata

logger = logging.getLogger(__name__)

RATIO_EPSILON = 1e-7


def normalize_capture(image: Image.Image, metadata: ViewportMetadata | None) -> Image.Image:
    """Rescale by the device pixel ratio and crop to the inner viewport.

    Always returns a new image; the input is left untouched.
    """
    if metadata is None:
        raise MissingViewportMetadataError("Viewport metadata is required to normalize a capture")

    # Browsers report 0 only when the ratio is unknown; treat it like `devicePixelRatio || 1`
    ratio = metadata.device_pixel_ratio or 1.0
    scaled = image
    if abs(ratio - 1) > RATIO_EPSILON and image.width and image.height:
        # A very large ratio still leaves at least one pixel per axis
        new_width = max(1, round(image.width / ratio))
        new_height = max(1, round(image.height / ratio))
        scaled = image.resize((new_width, new_height), Image.Resampling.BILINEAR)
        logger.debug(
            "Rescaled capture %dx%d -> %dx%d (dpr %.3f)",
            image.width, image.height, new_width, new_height, ratio,
        )

    offset = min(max(metadata.vertical_offset, 0), scaled.height)
    height = max(0, min(metadata.inner_viewport_height, scaled.height - offset))
    return scaled.crop((0, offset, scaled.width, offset + height))

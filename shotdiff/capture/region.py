"""Element region extraction from a normalized capture."""

from __future__ import annotations

import logging

from PIL import Image

from shotdiff.models.capture import ElementGeometry

logger = logging.getLogger(__name__)


def extract_region(image: Image.Image, geometry: ElementGeometry, scroll_offset: int) -> Image.Image:
    """Crop a normalized viewport image down to one element.

    geometry is the element's page position as it was before scrolling;
    scroll_offset is the vertical offset the page actually settled at, which
    can differ from the requested one near the end of the document.
    """
    crop_x = geometry.x
    crop_y = geometry.y - scroll_offset
    crop_height = max(0, min(geometry.height, image.height - crop_y))
    if scroll_offset != geometry.y:
        logger.debug("Scroll drift: element at y=%d, viewport settled at %d", geometry.y, scroll_offset)
    return image.crop((crop_x, crop_y, crop_x + geometry.width, crop_y + crop_height))

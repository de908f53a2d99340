"""Data handed over by the capturing browser session."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from shotdiff.errors import MissingViewportMetadataError


class ViewportMetadata(BaseModel):
    """How a raw capture maps onto logical viewport pixels."""
    device_pixel_ratio: float = Field(ge=0)
    vertical_offset: int = 0
    inner_viewport_height: int

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "ViewportMetadata":
        """Build metadata from loosely typed driver values.

        Raises MissingViewportMetadataError when a value is absent or not numeric.
        """
        try:
            return cls(
                device_pixel_ratio=float(values["device_pixel_ratio"]),
                vertical_offset=int(values.get("vertical_offset") or 0),
                inner_viewport_height=int(values["inner_viewport_height"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MissingViewportMetadataError(f"Unreadable viewport metadata: {e}") from e


class ElementGeometry(BaseModel):
    """Element bounding box in logical page coordinates."""
    x: int
    y: int
    width: int
    height: int

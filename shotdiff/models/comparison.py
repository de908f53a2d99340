"""Comparison result data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel


class ComparisonResult(BaseModel):
    equal: bool
    total_pixels: int
    differing_pixels: int
    non_background_pixels: int
    spot_count: int
    deviation_percent: float
    max_allowed_diff: int = 0
    heatmap_path: Optional[str] = None  # set only when an artifact was written
    render_error: Optional[str] = None


@dataclass
class DiffTrace:
    """Per-pixel trace of one scan, in scan order."""
    differing: list[tuple[int, int]] = field(default_factory=list)
    spots: list[tuple[int, int]] = field(default_factory=list)
    non_background_pixels: int = 0
    size_mismatch: bool = False

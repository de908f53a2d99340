"""Configuration models for the comparison engine."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ComparisonConfig(BaseModel):
    # Heatmap artifact
    render_heatmap: bool = True
    heatmap_path: str = "./heatmap.jpg"

    # Per-mille tolerance numerator, see comparator.max_allowed_diff
    accuracy: int = Field(default=1000, ge=0, le=1000)

    # Marker styling
    marker_color: tuple[int, int, int] = (255, 0, 0)
    ring_alpha: int = Field(default=128, ge=0, le=255)  # spot rings
    dot_alpha: int = Field(default=2, ge=0, le=255)  # per-pixel dots

    @field_validator("marker_color")
    @classmethod
    def check_channels(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(c < 0 or c > 255 for c in v):
            raise ValueError(f"marker_color channels must be within 0-255, got {v}")
        return v


class ShotdiffConfig(BaseModel):
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)

    # Storage
    baselines_dir: str = "./.shotdiff/baselines"
    report_output_dir: str = "./shotdiff-reports"

    # Capture
    vertical_offset: int = 0  # browser chrome height reported by the driver
    element_timeout_ms: int = 5000

    @classmethod
    def load(cls, path: str | Path) -> "ShotdiffConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

"""Visual baseline registry data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BaselineEntry(BaseModel):
    name: str
    viewport_name: str
    width: int
    height: int
    image_path: str  # relative to baselines_dir
    captured_at: str  # ISO timestamp
    image_hash: str  # SHA-256 hex digest


class VisualBaselineRegistry(BaseModel):
    last_updated: str = ""
    baselines: dict[str, BaselineEntry] = Field(default_factory=dict)
    # key format: "{name}__{viewport_name}"

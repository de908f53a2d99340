"""Baseline registry: approved reference images and their JSON index."""

from __future__ import annotations

import hashlib
import logging
import time
from pathlib import Path

from PIL import Image

from shotdiff.capture.codec import decode_image
from shotdiff.errors import BaselineIntegrityError, DecodeError
from shotdiff.models.visual_baseline import BaselineEntry, VisualBaselineRegistry

logger = logging.getLogger(__name__)


def baseline_key(name: str, viewport_name: str) -> str:
    """Registry key of one baseline, also used to name its artifacts."""
    return f"{name}__{viewport_name}"


class VisualBaselineRegistryManager:
    """Stores approved baseline images under baselines_dir, indexed by registry.json.

    Each image is hashed when stored, and the hash is checked again before the
    image is handed to a comparison.
    """

    def __init__(self, baselines_dir: Path):
        self.baselines_dir = Path(baselines_dir)
        self.registry_path = self.baselines_dir / "registry.json"

    def load(self) -> VisualBaselineRegistry:
        """Read the registry; an unreadable or invalid file starts an empty one."""
        if not self.registry_path.exists():
            return VisualBaselineRegistry()
        try:
            registry = VisualBaselineRegistry.model_validate_json(self.registry_path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable baseline registry %s: %s", self.registry_path, e)
            return VisualBaselineRegistry()
        logger.debug("Loaded %d baselines from %s", len(registry.baselines), self.registry_path)
        return registry

    def save(self, registry: VisualBaselineRegistry) -> None:
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        registry.last_updated = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        self.registry_path.write_text(registry.model_dump_json(indent=2))

    def get_baseline(self, registry: VisualBaselineRegistry, name: str, viewport_name: str) -> BaselineEntry | None:
        """Registered entry for name/viewport, or None when there is nothing to compare against."""
        entry = registry.baselines.get(baseline_key(name, viewport_name))
        if entry is None or not self.get_baseline_image_path(entry).exists():
            return None
        return entry

    def get_baseline_image_path(self, entry: BaselineEntry) -> Path:
        return self.baselines_dir / entry.image_path

    def load_baseline_image(self, entry: BaselineEntry) -> Image.Image:
        """Decode a stored baseline after checking it is the image that was approved.

        Raises BaselineIntegrityError when the file was replaced or edited
        since it was stored.
        """
        key = baseline_key(entry.name, entry.viewport_name)
        data = self.get_baseline_image_path(entry).read_bytes()
        if hashlib.sha256(data).hexdigest() != entry.image_hash:
            raise BaselineIntegrityError(key, "image hash does not match the registry")
        try:
            image = decode_image(data)
        except DecodeError as e:
            raise BaselineIntegrityError(key, str(e)) from e
        if image.size != (entry.width, entry.height):
            raise BaselineIntegrityError(
                key, f"stored as {entry.width}x{entry.height}, file is {image.width}x{image.height}"
            )
        return image

    def store_baseline(
        self,
        registry: VisualBaselineRegistry,
        name: str,
        viewport_name: str,
        image: Image.Image,
    ) -> BaselineEntry:
        """Write an image as the approved baseline and register it.

        Stored as PNG so the baseline survives without compression loss.
        """
        dest = self.baselines_dir / "images" / name / f"{viewport_name}.png"
        dest.parent.mkdir(parents=True, exist_ok=True)
        image.save(dest, format="PNG")

        entry = BaselineEntry(
            name=name,
            viewport_name=viewport_name,
            width=image.width,
            height=image.height,
            image_path=str(dest.relative_to(self.baselines_dir)),
            captured_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            image_hash=hashlib.sha256(dest.read_bytes()).hexdigest(),
        )

        key = baseline_key(name, viewport_name)
        registry.baselines[key] = entry
        logger.info("Stored baseline for %s (%dx%d)", key, image.width, image.height)
        return entry

"""Exceptions raised by the comparison pipeline."""

from __future__ import annotations


class ShotdiffError(Exception):
    """Base class for all shotdiff errors."""


class DecodeError(ShotdiffError):
    """Pixel data could not be decoded into an image."""


class MissingViewportMetadataError(ShotdiffError):
    """Device pixel ratio, vertical offset or viewport height is unavailable."""


class ArtifactWriteError(ShotdiffError):
    """The heatmap artifact could not be written."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to write heatmap to {path}: {reason}")
        self.path = path
        self.reason = reason


class ElementNotFoundError(ShotdiffError):
    """An element lookup timed out before the element appeared."""

    def __init__(self, selector: str, timeout_ms: int):
        super().__init__(f"Element '{selector}' not found within {timeout_ms}ms")
        self.selector = selector
        self.timeout_ms = timeout_ms


class BaselineIntegrityError(ShotdiffError):
    """A stored baseline image no longer matches its registry entry."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Baseline {key} is not usable: {reason}")
        self.key = key
        self.reason = reason

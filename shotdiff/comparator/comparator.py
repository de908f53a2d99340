"""Image comparator: pixel-exact scan with background-aware tolerance.

Pixels are compared as RGBA values. The scan walks columns in the outer
loop and rows in the inner loop; spot clustering depends on that order, so
the order is part of the result and must not change.
"""

from __future__ import annotations

import logging

from PIL import Image

from shotdiff.models.comparison import ComparisonResult, DiffTrace
from shotdiff.models.config import ComparisonConfig

logger = logging.getLogger(__name__)

# Opaque near-white treated as page background, excluded from the tolerance base
BACKGROUND_COLOR = (254, 254, 254, 255)

# Minimum distance on either axis between two recorded spot anchors
SPOT_DISTANCE = 20


def scan_images(baseline: Image.Image, candidate: Image.Image) -> DiffTrace:
    """Walk both images and record every differing pixel and spot anchor.

    Images of different size are not scanned; the trace is flagged as a
    size mismatch instead.
    """
    if baseline.size != candidate.size:
        logger.debug("Size mismatch: baseline %s vs candidate %s", baseline.size, candidate.size)
        return DiffTrace(size_mismatch=True)

    base_px = baseline.convert("RGBA").load()
    cand_px = candidate.convert("RGBA").load()
    width, height = baseline.size

    trace = DiffTrace()
    last_x, last_y = -SPOT_DISTANCE - 1, -SPOT_DISTANCE - 1
    for x in range(width):
        for y in range(height):
            base = base_px[x, y]
            if base != BACKGROUND_COLOR:
                trace.non_background_pixels += 1
            if base != cand_px[x, y]:
                trace.differing.append((x, y))
                if last_x < x - SPOT_DISTANCE or last_y < y - SPOT_DISTANCE:
                    trace.spots.append((x, y))
                    last_x, last_y = x, y

    logger.debug(
        "Scanned %dx%d: %d differing, %d spots",
        width, height, len(trace.differing), len(trace.spots),
    )
    return trace


def max_allowed_diff(non_background_pixels: int, accuracy: int) -> int:
    """Number of differing pixels still tolerated for a given content size."""
    return abs(non_background_pixels - (non_background_pixels // 1000) * accuracy) // 100


def evaluate(trace: DiffTrace, total_pixels: int, accuracy: int) -> ComparisonResult:
    """Turn a scan trace into a verdict."""
    if trace.size_mismatch:
        differing = total_pixels
        spots = 1
    else:
        differing = len(trace.differing)
        spots = len(trace.spots)

    allowed = max_allowed_diff(trace.non_background_pixels, accuracy)
    deviation = differing * 100 / total_pixels if total_pixels else 0.0
    return ComparisonResult(
        equal=differing <= allowed,
        total_pixels=total_pixels,
        differing_pixels=differing,
        non_background_pixels=trace.non_background_pixels,
        spot_count=spots,
        deviation_percent=deviation,
        max_allowed_diff=allowed,
    )


def compare_images(
    baseline: Image.Image,
    candidate: Image.Image,
    config: ComparisonConfig | None = None,
) -> tuple[ComparisonResult, DiffTrace]:
    """Compare two images without side effects.

    Returns the result together with the trace the heatmap renderer needs.
    """
    config = config or ComparisonConfig()
    trace = scan_images(baseline, candidate)
    result = evaluate(trace, baseline.width * baseline.height, config.accuracy)
    return result, trace

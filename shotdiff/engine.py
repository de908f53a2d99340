"""Comparison entry point: scan, decide, then render a heatmap on mismatch."""

from __future__ import annotations

import logging

from PIL import Image

from shotdiff.comparator.comparator import compare_images
from shotdiff.comparator.heatmap import render_heatmap
from shotdiff.errors import ArtifactWriteError
from shotdiff.models.comparison import ComparisonResult
from shotdiff.models.config import ComparisonConfig

logger = logging.getLogger(__name__)


def compare(
    baseline: Image.Image,
    candidate: Image.Image,
    config: ComparisonConfig | None = None,
) -> ComparisonResult:
    """Compare a candidate against its baseline.

    Writes a heatmap when rendering is enabled and the images differ. A
    failed write is recorded on the result; it never changes the verdict.
    """
    config = config or ComparisonConfig()
    result, trace = compare_images(baseline, candidate, config)

    if result.equal:
        logger.info(
            "Images equal: %d/%d differing pixels (allowed %d)",
            result.differing_pixels, result.total_pixels, result.max_allowed_diff,
        )
        return result

    logger.info(
        "Images differ: %d differing pixels (%.3f%%), %d spots",
        result.differing_pixels, result.deviation_percent, result.spot_count,
    )
    if not config.render_heatmap:
        return result

    try:
        path = render_heatmap(candidate, trace, result, config)
        result.heatmap_path = str(path)
    except ArtifactWriteError as e:
        logger.warning("Heatmap not written: %s", e)
        result.render_error = str(e)
    return result

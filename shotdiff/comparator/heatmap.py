"""Heatmap renderer: burns diff markers and metadata into a copy of the candidate."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

from PIL import Image, ImageDraw

from shotdiff.errors import ArtifactWriteError
from shotdiff.models.comparison import ComparisonResult, DiffTrace
from shotdiff.models.config import ComparisonConfig

logger = logging.getLogger(__name__)

RING_RADIUS = 10
RING_WIDTH = 3
DOT_RADII = (5, 3)

# Windows XP EXIF text tags, stored as UTF-16LE
XP_TITLE = 0x9C9B  # 40091
XP_COMMENT = 0x9C9C  # 40092
XP_SUBJECT = 0x9C9F  # 40095


def _disc_offsets(radius: int) -> list[tuple[int, int]]:
    """Pixel offsets covered by a filled circle, rasterized the way ImageDraw does it."""
    size = 2 * radius + 1
    stamp = Image.new("L", (size, size), 0)
    ImageDraw.Draw(stamp).ellipse([0, 0, size - 1, size - 1], fill=255)
    px = stamp.load()
    return [
        (dx - radius, dy - radius)
        for dx in range(size)
        for dy in range(size)
        if px[dx, dy]
    ]


# Both dots of one differing pixel; a pixel inside both is covered twice
DOT_OFFSETS = [offset for radius in DOT_RADII for offset in _disc_offsets(radius)]


def format_deviation(percent: float) -> str:
    """Format a percentage with up to three decimals, trimming trailing zeros.

    Halves round away from zero, so 0.0625 becomes "0.063".
    """
    rounded = Decimal(percent).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    text = format(rounded, "f").rstrip("0").rstrip(".")
    return f"{text}% deviation"


def build_metadata(result: ComparisonResult) -> dict[int, str]:
    return {
        XP_COMMENT: f"A total of {result.differing_pixels} different pixels found",
        XP_TITLE: format_deviation(result.deviation_percent),
        XP_SUBJECT: f"{result.spot_count} spots found",
    }


def dot_coverage_mask(size: tuple[int, int], trace: DiffTrace, dot_alpha: int) -> Image.Image:
    """Build the opacity mask of all per-pixel dots stacked on top of each other.

    Each pixel counts how many dots cover it. n dots of opacity a compose to
    1 - (1 - a) ** n, computed in floating point and quantized once, so dense
    regions reach the full marker colour instead of stalling on 8-bit rounding.
    """
    width, height = size
    counts = [0] * (width * height)
    for x, y in trace.differing:
        for dx, dy in DOT_OFFSETS:
            px, py = x + dx, y + dy
            if 0 <= px < width and 0 <= py < height:
                counts[py * width + px] += 1

    if not counts:
        return Image.new("L", size, 0)
    keep = 1 - dot_alpha / 255
    levels = [round(255 * (1 - keep**n)) for n in range(max(counts) + 1)]
    return Image.frombytes("L", size, bytes(levels[n] for n in counts))


def draw_markers(
    candidate: Image.Image,
    trace: DiffTrace,
    config: ComparisonConfig,
) -> Image.Image:
    """Return an RGB copy of candidate with rings at spots and dots at every diff.

    Rings are alpha-blended directly. Dots are low-alpha and stack, so they are
    accumulated into one coverage mask and composited in a single pass; a
    lone diff stays faint while dense regions saturate to the marker colour.
    """
    heatmap = candidate.convert("RGB")
    draw = ImageDraw.Draw(heatmap, "RGBA")
    ring_color = (*config.marker_color, config.ring_alpha)
    for x, y in trace.spots:
        draw.ellipse(
            [x - RING_RADIUS, y - RING_RADIUS, x + RING_RADIUS, y + RING_RADIUS],
            outline=ring_color,
            width=RING_WIDTH,
        )

    if not trace.differing or config.dot_alpha == 0:
        return heatmap
    mask = dot_coverage_mask(heatmap.size, trace, config.dot_alpha)
    marker = Image.new("RGB", heatmap.size, config.marker_color)
    return Image.composite(marker, heatmap, mask)


def render_heatmap(
    candidate: Image.Image,
    trace: DiffTrace,
    result: ComparisonResult,
    config: ComparisonConfig,
) -> Path:
    """Draw the diff heatmap and save it as JPEG to config.heatmap_path."""
    heatmap = draw_markers(candidate, trace, config)

    exif = Image.Exif()
    for tag, text in build_metadata(result).items():
        exif[tag] = (text + "\x00").encode("utf-16-le")

    path = Path(config.heatmap_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        heatmap.save(path, format="JPEG", exif=exif)
    except (OSError, ValueError) as e:
        raise ArtifactWriteError(str(path), str(e)) from e

    logger.info("Saved heatmap to %s (%d spots)", path, result.spot_count)
    return path

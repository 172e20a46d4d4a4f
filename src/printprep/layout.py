"""Shared unit conversion and page-box math for print geometry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

MM_TO_PT = 2.83465

_VALID_ROTATIONS = {0, 90, 180, 270}
_DUPLEX_ALIASES = {
    "long": "long",
    "long-edge": "long",
    "long_edge": "long",
    "short": "short",
    "short-edge": "short",
    "short_edge": "short",
}
_GRAY_ALIASES = {"gray", "grey", "grayscale", "greyscale", "monochrome", "mono"}


def mm_to_pt(value_mm: float | int | None) -> float:
    """Convert millimeters to PDF points; ``None`` counts as zero."""
    return float(value_mm or 0) * MM_TO_PT


def normalize_rotation(value: object) -> int:
    try:
        rotation = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    rotation %= 360
    return rotation if rotation in _VALID_ROTATIONS else 0


def orientation_for_rotation(rotation: object) -> str:
    return "landscape" if normalize_rotation(rotation) in (90, 270) else "portrait"


def normalize_duplex(value: str | None) -> str:
    duplex = (value or "").strip().lower()
    return _DUPLEX_ALIASES.get(duplex, "none")


def normalize_color(value: str | None) -> str:
    color = (value or "").strip().lower()
    return "gray" if color in _GRAY_ALIASES else "color"


def normalize_copies(value: object) -> int:
    try:
        copies = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return copies if copies >= 1 else 1


@dataclass(frozen=True)
class CropBox:
    """Crop region in points, PDF user space (origin at bottom-left)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def y1(self) -> float:
        return self.y + self.height


def compute_crop_box(
    page_width: float,
    page_height: float,
    top: float,
    right: float,
    bottom: float,
    left: float,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
) -> Optional[CropBox]:
    """
    Return the clamped crop box for a page, all arguments in points.

    The offset moves the crop window, not the content. Returns ``None`` when
    the clamped box has no area, in which case the page must stay untouched.
    """
    x = max(0.0, left + offset_x)
    y = max(0.0, bottom + offset_y)
    width = min(page_width - x, page_width - left - right)
    height = min(page_height - y, page_height - top - bottom)
    if width <= 0 or height <= 0:
        return None
    return CropBox(x=x, y=y, width=width, height=height)

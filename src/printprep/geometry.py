"""Margin crop and feed-offset compensation for PDF page boxes."""

from __future__ import annotations

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import fitz

from .base_driver import PrintSettings
from .errors import GeometryError
from .layout import CropBox, compute_crop_box, mm_to_pt
from .products import Margins, PaperProduct

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransformResult:
    """Document to print, plus the temp artifact to delete afterwards."""

    path: str
    temp_path: Optional[str] = None
    modified_pages: int = 0

    @property
    def rewritten(self) -> bool:
        return self.temp_path is not None

    def cleanup(self) -> None:
        """Delete the temp artifact; failures are logged, never raised."""
        if not self.temp_path:
            return
        try:
            Path(self.temp_path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete temp print file %s: %s", self.temp_path, exc)
        else:
            logger.debug("Removed temp print file %s", self.temp_path)
        self.temp_path = None


def resolve_margins(product: Optional[PaperProduct]) -> Margins:
    if product is None:
        return Margins.zero()
    return product.effective_margins()


def _make_temp_path(temp_dir: Optional[str]) -> str:
    fd, path = tempfile.mkstemp(
        prefix=f"print_job_{time.time_ns()}_",
        suffix=".pdf",
        dir=temp_dir,
    )
    os.close(fd)
    return path


def set_page_boxes(page: fitz.Page, box: CropBox) -> None:
    """Set CropBox, TrimBox and BleedBox to ``box`` (PDF user space)."""
    mb = page.mediabox
    x0 = mb.x0 + box.x
    x1 = min(x0 + box.width, mb.x1)
    y0 = mb.y0 + box.y
    y1 = min(y0 + box.height, mb.y1)
    # PyMuPDF page boxes are given top-down relative to the MediaBox.
    rect = fitz.Rect(x0, mb.y1 - y1, x1, mb.y1 - y0)
    page.set_cropbox(rect)
    page.set_trimbox(rect)
    page.set_bleedbox(rect)


def apply_margins(
    pdf_path: str,
    settings: PrintSettings,
    product: Optional[PaperProduct] = None,
    temp_dir: Optional[str] = None,
) -> TransformResult:
    """
    Crop every page by the product margins, shifted by the job's offsets.

    Cropping keeps the artwork at 100% scale; the offset moves the crop
    window to emulate feed-edge compensation. Returns the original path when
    no page could be cropped. Any load/rewrite/save failure raises
    ``GeometryError`` so that an unverified file is never printed.
    """
    margins = resolve_margins(product)
    top = mm_to_pt(margins.top)
    right = mm_to_pt(margins.right)
    bottom = mm_to_pt(margins.bottom)
    left = mm_to_pt(margins.left)
    offset_x = mm_to_pt(settings.offset_x)
    offset_y = mm_to_pt(settings.offset_y)

    try:
        doc = fitz.open(pdf_path)
    except Exception as exc:
        raise GeometryError(f"Cannot open PDF {pdf_path!r}: {exc}") from exc

    temp_path: Optional[str] = None
    try:
        if not doc.is_pdf:
            raise GeometryError(f"{pdf_path!r} is not a PDF document.")

        modified = 0
        for page in doc:
            mediabox = page.mediabox
            box = compute_crop_box(
                mediabox.width,
                mediabox.height,
                top=top,
                right=right,
                bottom=bottom,
                left=left,
                offset_x=offset_x,
                offset_y=offset_y,
            )
            if box is None:
                logger.warning(
                    "Page %s left uncropped: margins leave no printable area", page.number + 1
                )
                continue
            set_page_boxes(page, box)
            modified += 1

        if not modified:
            return TransformResult(path=pdf_path)

        temp_path = _make_temp_path(temp_dir)
        doc.save(temp_path)
        logger.info("Created cropped PDF at %s (%s pages)", temp_path, modified)
        return TransformResult(path=temp_path, temp_path=temp_path, modified_pages=modified)
    except Exception as exc:
        if temp_path is not None:
            TransformResult(path=pdf_path, temp_path=temp_path).cleanup()
        if isinstance(exc, GeometryError):
            raise
        raise GeometryError(f"Failed to apply margins to {pdf_path!r}: {exc}") from exc
    finally:
        doc.close()

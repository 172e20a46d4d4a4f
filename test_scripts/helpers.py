# test_scripts/helpers.py

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import fitz

from printprep.errors import CommandError
from printprep.layout import MM_TO_PT
from printprep.shell import CommandResult


def make_pdf(path: Path, pages: int = 1, width_mm: float = 210, height_mm: float = 297) -> Path:
    doc = fitz.open()
    try:
        for idx in range(pages):
            page = doc.new_page(width=width_mm * MM_TO_PT, height=height_mm * MM_TO_PT)
            page.insert_text((72, 72), f"Page {idx + 1}", fontsize=12, fontname="helv")
        doc.save(path)
    finally:
        doc.close()
    return path


def pdf_box(page: fitz.Page, key: str = "CropBox") -> tuple[float, float, float, float]:
    """Return a page box as (x, y, width, height) in PDF user space."""
    mb = page.mediabox
    rect = {"CropBox": page.cropbox, "TrimBox": page.trimbox, "BleedBox": page.bleedbox}[key]
    return rect.x0, mb.y1 - rect.y1, rect.width, rect.height


class FakeRunner:
    """Stands in for ``run_command``; ``handler(argv)`` returns stdout or raises."""

    def __init__(self, handler: Callable[[List[str]], str]):
        self.handler = handler
        self.calls: List[List[str]] = []

    async def __call__(self, args, timeout=None, check=True) -> CommandResult:
        argv = [str(a) for a in args]
        self.calls.append(argv)
        return CommandResult(returncode=0, stdout=self.handler(argv), stderr="")


def command_missing(argv: List[str]) -> str:
    raise CommandError(f"{argv[0]} could not be started: not found")

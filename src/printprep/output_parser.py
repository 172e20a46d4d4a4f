"""
Parse raw printing-command output into structured capability data.

Two shapes are handled:
- sentinel-delimited sections (``TRAYS_START`` ... ``TRAYS_END``) plus
  ``KEY:value`` flags, as written by the Windows capability script;
- ``Keyword/Label: *Default Other ...`` option listings from ``lpoptions -l``.

Nothing here raises on malformed input; missing sections read as absent data.
"""

from __future__ import annotations

import csv
import io
import re
from typing import Dict, List, Optional, Tuple

from .base_driver import PrinterCapabilities

_SECTION_MARKERS: Dict[str, Tuple[str, bool]] = {
    "TRAYS_START": ("trays", True),
    "TRAYS_END": ("trays", False),
    "DUPLEX_MODES_START": ("duplex_modes", True),
    "DUPLEX_MODES_END": ("duplex_modes", False),
    "PAPER_SIZES_START": ("paper_sizes", True),
    "PAPER_SIZES_END": ("paper_sizes", False),
}

_GRAY_VALUES = {
    "gray",
    "grey",
    "grayscale",
    "greyscale",
    "kgray",
    "black",
    "mono",
    "monochrome",
    "auto-monochrome",
    "process-monochrome",
}
_TRAY_KEYWORDS = {"inputslot", "mediasource"}
_PAPER_KEYWORDS = {"pagesize", "media"}
_COLOR_KEYWORDS = {"colormodel", "print-color-mode", "colormode"}
_LONG_EDGE_VALUES = {"duplexnotumble", "two-sided-long-edge", "longedge"}
_SHORT_EDGE_VALUES = {"duplextumble", "two-sided-short-edge", "shortedge"}

_DEFAULT_DEST_RE = re.compile(r"system default destination:\s*(.+)", re.IGNORECASE)


def clean_lines(text: str | bytes | None) -> List[str]:
    """Split shell output into trimmed non-blank lines, dropping BOMs."""
    if text is None:
        return []
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    lines = []
    for raw in text.replace("\ufeff", "").splitlines():
        line = raw.strip()
        if line:
            lines.append(line)
    return lines


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"true", "1", "yes"}


def parse_capability_sections(
    text: str | bytes | None,
    paper_size_limit: Optional[int] = None,
    default_color: bool = True,
) -> PrinterCapabilities:
    sections: Dict[str, List[str]] = {"trays": [], "duplex_modes": [], "paper_sizes": []}
    can_duplex = False
    supports_color = default_color
    current: Optional[str] = None

    for line in clean_lines(text):
        marker = _SECTION_MARKERS.get(line.upper())
        if marker is not None:
            section, opens = marker
            current = section if opens else None
            continue
        key, sep, value = line.partition(":")
        if sep and key.strip().upper() == "DUPLEX":
            can_duplex = _parse_bool(value)
            continue
        if sep and key.strip().upper() == "COLOR":
            supports_color = _parse_bool(value)
            continue
        if current is not None:
            sections[current].append(line)

    paper_sizes = _dedupe(sections["paper_sizes"])
    if paper_size_limit is not None:
        paper_sizes = paper_sizes[:paper_size_limit]
    duplex_modes = _dedupe([m.lower() for m in sections["duplex_modes"]]) if can_duplex else []
    return PrinterCapabilities(
        trays=_dedupe(sections["trays"]),
        can_duplex=can_duplex,
        duplex_modes=duplex_modes,
        supports_color=supports_color,
        paper_sizes=paper_sizes,
    )


def _split_option_line(line: str) -> Optional[Tuple[str, List[str]]]:
    head, sep, tail = line.partition(":")
    if not sep:
        return None
    keyword = head.split("/", 1)[0].strip()
    if not keyword:
        return None
    values = [v.lstrip("*") for v in tail.split()]
    return keyword, [v for v in values if v]


def parse_option_listing(
    text: str | bytes | None,
    paper_size_limit: Optional[int] = None,
) -> PrinterCapabilities:
    """Parse ``lpoptions -p NAME -l`` output."""
    trays: List[str] = []
    paper_sizes: List[str] = []
    duplex_values: List[str] = []
    can_duplex = False
    color_values: Optional[List[str]] = None

    for line in clean_lines(text):
        parsed = _split_option_line(line)
        if parsed is None:
            continue
        keyword, values = parsed
        lowered = keyword.lower()
        if lowered in _TRAY_KEYWORDS:
            trays.extend(values)
        elif lowered in _PAPER_KEYWORDS:
            paper_sizes.extend(values)
        elif "duplex" in lowered:
            can_duplex = True
            duplex_values.extend(v.lower() for v in values)
        elif lowered == "sides":
            if any(v.lower().startswith("two-sided") for v in values):
                can_duplex = True
                duplex_values.extend(v.lower() for v in values)
        elif lowered in _COLOR_KEYWORDS:
            color_values = (color_values or []) + [v.lower() for v in values]

    duplex_modes: List[str] = []
    if can_duplex:
        if any(v in _LONG_EDGE_VALUES for v in duplex_values):
            duplex_modes.append("long")
        if any(v in _SHORT_EDGE_VALUES for v in duplex_values):
            duplex_modes.append("short")
        if not duplex_modes:
            duplex_modes = ["long", "short"]

    if color_values is None:
        supports_color = True
    else:
        supports_color = any(v not in _GRAY_VALUES for v in color_values)

    paper_sizes = _dedupe(paper_sizes)
    if paper_size_limit is not None:
        paper_sizes = paper_sizes[:paper_size_limit]
    return PrinterCapabilities(
        trays=_dedupe(trays),
        can_duplex=can_duplex,
        duplex_modes=duplex_modes,
        supports_color=supports_color,
        paper_sizes=paper_sizes,
    )


def parse_printer_csv(text: str | bytes | None) -> List[Tuple[str, str]]:
    """Parse ``ConvertTo-Csv`` output of ``Name, PrinterStatus`` rows."""
    lines = clean_lines(text)
    if not lines:
        return []
    rows: List[Tuple[str, str]] = []
    try:
        reader = csv.reader(io.StringIO("\n".join(lines)))
        for index, row in enumerate(reader):
            if index == 0 and row and row[0].strip().lower() == "name":
                continue
            if len(row) < 2 or not row[0].strip():
                continue
            rows.append((row[0].strip(), row[1].strip()))
    except csv.Error:
        return rows
    return rows


def parse_lpstat_printers(text: str | bytes | None) -> List[Tuple[str, str]]:
    """
    Parse ``lpstat -p`` lines into ``(name, status)`` pairs.

    Sample: ``printer HP_LaserJet is idle.  enabled since ...``
    """
    printers: List[Tuple[str, str]] = []
    for line in clean_lines(text):
        parts = line.split()
        if len(parts) < 2 or parts[0] != "printer":
            continue
        lowered = line.lower()
        if "disabled" in lowered:
            status = "disabled"
        elif "offline" in lowered:
            status = "offline"
        elif "now printing" in lowered:
            status = "printing"
        elif "idle" in lowered:
            status = "ready"
        else:
            status = "unknown"
        printers.append((parts[1], status))
    return printers


def parse_default_destination(text: str | bytes | None) -> Optional[str]:
    """Parse ``lpstat -d``; sample: ``system default destination: HP_LaserJet``."""
    for line in clean_lines(text):
        match = _DEFAULT_DEST_RE.search(line)
        if match:
            return match.group(1).strip() or None
    return None


def first_line(text: str | bytes | None) -> Optional[str]:
    lines = clean_lines(text)
    return lines[0] if lines else None

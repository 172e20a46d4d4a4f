"""Tray recommendation from configured paper sizes."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


def _round_mm(value: float) -> int:
    # Half up, so 304.5 -> 305 regardless of parity.
    return int(math.floor(float(value) + 0.5))


def size_key(width_mm: float, height_mm: float) -> str:
    return f"{_round_mm(width_mm)}x{_round_mm(height_mm)}"


class TrayRecommender:
    """Map a paper size in millimeters to a preconfigured tray name."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        self._mapping: Dict[str, str] = dict(mapping or {})

    def update(self, mapping: Optional[Mapping[str, str]]) -> None:
        """Replace the mapping, e.g. after the config store reloads."""
        self._mapping = dict(mapping or {})

    def recommend(self, width_mm: float, height_mm: float) -> Optional[str]:
        try:
            as_given = size_key(width_mm, height_mm)
            rotated = size_key(height_mm, width_mm)
        except (TypeError, ValueError, OverflowError):
            logger.debug("No tray for non-numeric size %r x %r", width_mm, height_mm)
            return None
        return self._mapping.get(as_given) or self._mapping.get(rotated) or None

    def all_trays(self) -> List[str]:
        """Distinct mapped tray names, first-seen order."""
        return list(dict.fromkeys(self._mapping.values()))

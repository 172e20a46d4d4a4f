"""Paper product records and the read-only catalog the pipeline consumes."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

from .layout import normalize_color, normalize_copies, normalize_duplex

logger = logging.getLogger(__name__)


def _as_float(value: object, default: float = 0.0) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Margins:
    """Custom margins in millimeters."""

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @classmethod
    def zero(cls) -> "Margins":
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Margins":
        return cls(
            top=_as_float(data.get("top")),
            right=_as_float(data.get("right")),
            bottom=_as_float(data.get("bottom")),
            left=_as_float(data.get("left")),
        )


@dataclass(frozen=True)
class PaperProduct:
    """A configured paper product; immutable for the duration of a print."""

    key: str
    name: str = ""
    width_mm: float = 0.0
    height_mm: float = 0.0
    orientation: str = "portrait"  # portrait | landscape
    printer_name: Optional[str] = None
    tray: Optional[str] = None
    media_type: Optional[str] = None
    copies: int = 1
    duplex: str = "none"  # none | long | short
    color: str = "color"  # color | gray
    offset_x_mm: float = 0.0
    offset_y_mm: float = 0.0
    custom_margins: Optional[Margins] = None
    is_custom: bool = False

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, object]) -> "PaperProduct":
        """Build from a config-store record; accepts camelCase and snake_case keys."""

        def pick(*names: str, default: object = None) -> object:
            for name in names:
                if name in data and data[name] is not None:
                    return data[name]
            return default

        margins_raw = pick("customMargins", "custom_margins")
        orientation = str(pick("orientation", default="portrait")).strip().lower()
        return cls(
            key=key,
            name=str(pick("name", "displayName", default=key)),
            width_mm=_as_float(pick("width", "width_mm")),
            height_mm=_as_float(pick("height", "height_mm")),
            orientation="landscape" if orientation == "landscape" else "portrait",
            printer_name=pick("printer", "printerName", "printer_name"),  # type: ignore[arg-type]
            tray=pick("tray"),  # type: ignore[arg-type]
            media_type=pick("mediaType", "media_type"),  # type: ignore[arg-type]
            copies=normalize_copies(pick("copies", default=1)),
            duplex=normalize_duplex(pick("duplex", default="")),  # type: ignore[arg-type]
            color=normalize_color(pick("color", default="color")),  # type: ignore[arg-type]
            offset_x_mm=_as_float(pick("offsetX", "offset_x")),
            offset_y_mm=_as_float(pick("offsetY", "offset_y")),
            custom_margins=Margins.from_dict(margins_raw) if isinstance(margins_raw, Mapping) else None,
            is_custom=bool(pick("isCustom", "is_custom", default=False)),
        )

    def effective_margins(self) -> Margins:
        return self.custom_margins or Margins.zero()


class ProductLookup(Protocol):
    def get(self, key: str | None) -> Optional[PaperProduct]:
        ...


class ProductCatalog:
    """
    Read-only view over the product configuration.

    The data shape matches the config store: ``{"paperSizes": {key: {...}},
    "defaultTrayMapping": {"210x297": "Tray 1"}}``. Merging and persistence
    belong to the store, this class only looks things up.
    """

    def __init__(
        self,
        products: Optional[Mapping[str, PaperProduct]] = None,
        tray_mapping: Optional[Mapping[str, str]] = None,
    ):
        self._products: Dict[str, PaperProduct] = dict(products or {})
        self._tray_mapping: Dict[str, str] = dict(tray_mapping or {})

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "ProductCatalog":
        products: Dict[str, PaperProduct] = {}
        raw_products = data.get("paperSizes") or {}
        if isinstance(raw_products, Mapping):
            for key, record in raw_products.items():
                if not isinstance(record, Mapping):
                    logger.warning("Skipping malformed product record %r", key)
                    continue
                products[str(key)] = PaperProduct.from_dict(str(key), record)
        raw_mapping = data.get("defaultTrayMapping") or {}
        mapping = (
            {str(k): str(v) for k, v in raw_mapping.items()}
            if isinstance(raw_mapping, Mapping)
            else {}
        )
        return cls(products, mapping)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ProductCatalog":
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, Mapping):
            raise ValueError(f"Product config {path} is not a JSON object.")
        catalog = cls.from_mapping(raw)
        logger.info("Loaded %s products from %s", len(catalog), path)
        return catalog

    def get(self, key: str | None) -> Optional[PaperProduct]:
        if not key:
            return None
        return self._products.get(key)

    @property
    def tray_mapping(self) -> Dict[str, str]:
        return dict(self._tray_mapping)

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, key: object) -> bool:
        return key in self._products

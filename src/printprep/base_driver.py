"""Abstract printer backend contract and shared records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional

from .config import AUTO_TRAY_LABEL, PipelineConfig
from .layout import (
    normalize_color,
    normalize_copies,
    normalize_duplex,
    normalize_rotation,
)


@dataclass(slots=True)
class PrinterDevice:
    """System printer snapshot; fetched fresh on every query."""

    name: str
    status: str = "unknown"
    is_default: bool = False
    duplex_supported: bool = False
    color_supported: bool = False
    trays: List[str] = field(default_factory=list)
    paper_sizes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "status": self.status,
            "duplexSupported": self.duplex_supported,
        }


@dataclass(slots=True)
class PrinterCapabilities:
    """Physical capabilities of one printer."""

    trays: List[str] = field(default_factory=list)
    can_duplex: bool = False
    duplex_modes: List[str] = field(default_factory=list)
    supports_color: bool = False
    paper_sizes: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "PrinterCapabilities":
        """Degraded descriptor used when the OS query fails."""
        return cls()

    def to_dict(self) -> Dict[str, object]:
        return {
            "trays": list(self.trays),
            "canDuplex": self.can_duplex,
            "duplexModes": list(self.duplex_modes),
            "supportsColor": self.supports_color,
            "paperSizes": list(self.paper_sizes),
        }


@dataclass(slots=True)
class PrintSettings:
    """Per-request print options supplied by the UI layer."""

    printer_name: Optional[str] = None
    tray: Optional[str] = None
    copies: object = 1
    rotation: object = 0  # 0 | 90 | 180 | 270
    duplex: str = ""  # '' | none | long | short
    color: str = "color"  # color | gray
    media_type: Optional[str] = None
    offset_x: float = 0.0  # mm
    offset_y: float = 0.0  # mm
    product_key: Optional[str] = None
    pages: Optional[str] = None
    job_name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "PrintSettings":
        """Build from the UI payload (``printerName``, ``offsetX``, ...)."""

        def text(key: str) -> Optional[str]:
            value = payload.get(key)
            return None if value is None else str(value)

        def number(key: str) -> float:
            try:
                return float(payload.get(key) or 0)  # type: ignore[arg-type]
            except (TypeError, ValueError):
                return 0.0

        return cls(
            printer_name=text("printerName"),
            tray=text("tray"),
            copies=payload.get("copies", 1),
            rotation=payload.get("rotation", 0),
            duplex=text("duplex") or "",
            color=text("color") or "color",
            media_type=text("mediaType"),
            offset_x=number("offsetX"),
            offset_y=number("offsetY"),
            product_key=text("productKey"),
            pages=text("pages"),
            job_name=text("jobName"),
        )

    def normalized(self, auto_tray_label: str = AUTO_TRAY_LABEL) -> "PrintSettings":
        """Return a normalized copy used by backends."""
        tray = (self.tray or "").strip()
        if tray == auto_tray_label:
            tray = ""
        return replace(
            self,
            printer_name=(self.printer_name or "").strip() or None,
            tray=tray or None,
            copies=normalize_copies(self.copies),
            rotation=normalize_rotation(self.rotation),
            duplex=normalize_duplex(self.duplex),
            color=normalize_color(self.color),
            media_type=(self.media_type or "").strip() or None,
            offset_x=float(self.offset_x or 0),
            offset_y=float(self.offset_y or 0),
            product_key=(self.product_key or "").strip() or None,
            pages=(self.pages or "").strip() or None,
            job_name=(self.job_name or "").strip() or None,
        )


@dataclass(slots=True)
class PrintJobResult:
    """Outcome of one print request."""

    success: bool
    route: str
    message: str = ""
    error: Optional[str] = None
    job_id: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        result: Dict[str, object] = {"success": self.success}
        if self.error:
            result["error"] = self.error
        return result


class PrinterDriver(ABC):
    """Abstract base class for platform-specific printer backends."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend display name."""

    @abstractmethod
    async def list_printers(self) -> List[PrinterDevice]:
        """Enumerate usable printers; ``[]`` when the OS query fails."""

    @abstractmethod
    async def get_default_printer(self) -> Optional[str]:
        """Return the default printer name, ``None`` if unset or unknown."""

    @abstractmethod
    async def get_capabilities(self, printer_name: str) -> PrinterCapabilities:
        """Query trays, duplex, color and paper sizes for one printer."""

    async def get_printer_trays(self, printer_name: str) -> List[str]:
        capabilities = await self.get_capabilities(printer_name)
        return list(capabilities.trays)

    @abstractmethod
    def build_command(self, pdf_path: str, settings: PrintSettings) -> List[str]:
        """Return the argv that submits ``pdf_path`` with ``settings``."""

    @abstractmethod
    async def submit(self, pdf_path: str, settings: PrintSettings) -> PrintJobResult:
        """Submit the job; raise ``PrintJobSubmissionError`` on rejection."""

"""Printer capability discovery and print-geometry pipeline."""

from .base_driver import (
    PrintJobResult,
    PrinterCapabilities,
    PrinterDevice,
    PrinterDriver,
    PrintSettings,
)
from .config import PipelineConfig
from .dispatcher import PrintDispatcher, get_printer_driver
from .errors import (
    CommandError,
    CommandTimeoutError,
    GeometryError,
    PrintJobSubmissionError,
    PrinterUnavailableError,
    PrintingError,
)
from .geometry import TransformResult, apply_margins
from .layout import MM_TO_PT, CropBox, compute_crop_box, mm_to_pt
from .products import Margins, PaperProduct, ProductCatalog
from .tray_mapping import TrayRecommender

__all__ = [
    "PrintDispatcher",
    "PrintSettings",
    "PrintJobResult",
    "PrinterCapabilities",
    "PrinterDevice",
    "PrinterDriver",
    "PipelineConfig",
    "get_printer_driver",
    "PaperProduct",
    "Margins",
    "ProductCatalog",
    "TrayRecommender",
    "TransformResult",
    "apply_margins",
    "CropBox",
    "compute_crop_box",
    "mm_to_pt",
    "MM_TO_PT",
    "PrintingError",
    "PrinterUnavailableError",
    "PrintJobSubmissionError",
    "GeometryError",
    "CommandError",
    "CommandTimeoutError",
]

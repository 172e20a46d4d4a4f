"""Print dispatcher service and backend factory."""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .base_driver import (
    PrintJobResult,
    PrinterCapabilities,
    PrinterDevice,
    PrinterDriver,
    PrintSettings,
)
from .config import PipelineConfig
from .errors import GeometryError, PrintingError
from .geometry import apply_margins
from .platforms.unix_driver import UnixPrinterDriver
from .platforms.win_driver import WindowsPrinterDriver
from .products import PaperProduct, ProductCatalog, ProductLookup
from .tray_mapping import TrayRecommender

logger = logging.getLogger(__name__)


def get_printer_driver(config: Optional[PipelineConfig] = None) -> PrinterDriver:
    """Factory for the platform-specific backend."""
    if platform.system().lower() == "windows":
        return WindowsPrinterDriver(config)
    return UnixPrinterDriver(config)


class PrintDispatcher:
    """
    Facade used by the UI layer for discovery and printing.

    Construct one per process and pass it to consumers. Every discovery call
    queries the OS again; nothing is cached between calls.
    """

    def __init__(
        self,
        driver: Optional[PrinterDriver] = None,
        products: Optional[ProductLookup] = None,
        tray_recommender: Optional[TrayRecommender] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.config = config or (driver.config if driver is not None else PipelineConfig())
        self.driver = driver or get_printer_driver(self.config)
        self.products: ProductLookup = products if products is not None else ProductCatalog()
        if tray_recommender is None:
            mapping = products.tray_mapping if isinstance(products, ProductCatalog) else {}
            tray_recommender = TrayRecommender(mapping)
        self.tray_recommender = tray_recommender

    async def list_printers(self) -> List[PrinterDevice]:
        return await self.driver.list_printers()

    async def get_default_printer(self) -> Optional[str]:
        return await self.driver.get_default_printer()

    async def get_capabilities(self, printer_name: str) -> PrinterCapabilities:
        return await self.driver.get_capabilities(printer_name)

    async def get_printer_trays(self, printer_name: str) -> List[str]:
        return await self.driver.get_printer_trays(printer_name)

    def recommend_tray(self, width_mm: float, height_mm: float) -> Optional[str]:
        return self.tray_recommender.recommend(width_mm, height_mm)

    def resolve_product(self, settings: PrintSettings) -> Optional[PaperProduct]:
        product = self.products.get(settings.product_key)
        if settings.product_key and product is None:
            logger.warning("Unknown product %r; printing without custom margins", settings.product_key)
        return product

    async def print_pdf(self, pdf_path: str, settings: PrintSettings) -> PrintJobResult:
        """
        Crop, submit and clean up one job.

        Geometry and submission failures come back as ``success=False`` with
        the underlying message; the temp document is removed on every path.
        """
        normalized = settings.normalized(self.config.auto_tray_label)
        if not Path(pdf_path).is_file():
            return PrintJobResult(
                success=False,
                route="none",
                error=f"Print file does not exist: {pdf_path}",
            )

        product = self.resolve_product(normalized)
        try:
            # PyMuPDF is not thread-safe; the rewrite stays on the loop thread.
            transform = apply_margins(pdf_path, normalized, product, self.config.temp_dir)
        except GeometryError as exc:
            logger.error("Print aborted, geometry failed: %s", exc)
            return PrintJobResult(success=False, route="none", error=str(exc))

        try:
            result = await self.driver.submit(transform.path, normalized)
        except PrintingError as exc:
            logger.error("Print failed: %s", exc)
            return PrintJobResult(success=False, route=self.driver.name, error=str(exc))
        finally:
            transform.cleanup()

        logger.info("Print submitted via %s: %s", result.route, result.message)
        return result

    async def print_payload(self, file_path: str, payload: Mapping[str, object]) -> Dict[str, object]:
        """UI boundary: ``{printerName, tray, ...}`` in, ``{success, error?}`` out."""
        result = await self.print_pdf(file_path, PrintSettings.from_payload(payload))
        return result.to_dict()

"""CUPS printer backend for Linux and macOS (pycups binding, lp tools fallback)."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, List, Optional, Tuple

from ..base_driver import (
    PrintJobResult,
    PrinterCapabilities,
    PrinterDevice,
    PrinterDriver,
    PrintSettings,
)
from ..errors import (
    CommandError,
    PrintJobSubmissionError,
    PrinterUnavailableError,
    PrintingError,
)
from ..layout import orientation_for_rotation
from ..output_parser import (
    parse_default_destination,
    parse_lpstat_printers,
    parse_option_listing,
)
from ..shell import run_command

try:
    import cups  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    cups = None

logger = logging.getLogger(__name__)

# printer-state from IPP: 3 idle, 4 processing, 5 stopped.
_CUPS_STATES = {3: "ready", 4: "printing", 5: "stopped"}
_UNUSABLE_STATUSES = {"disabled", "offline", "stopped"}
_REQUEST_ID_RE = re.compile(r"request id is (\S+)")

JobOption = Tuple[str, Optional[str]]


def job_options(settings: PrintSettings) -> List[JobOption]:
    """
    CUPS ``-o`` options for a normalized request, in submission order.

    Duplex and color are always explicit and use several spellings, since
    drivers disagree on which keyword they honor.
    """
    options: List[JobOption] = [("fit-to-page", "false"), ("scaling", "100")]
    if settings.tray:
        options.append(("InputSlot", settings.tray))

    if settings.duplex == "long":
        options += [("sides", "two-sided-long-edge"), ("Duplex", "DuplexNoTumble"), ("duplex", "on")]
    elif settings.duplex == "short":
        options += [("sides", "two-sided-short-edge"), ("Duplex", "DuplexTumble"), ("duplex", "on")]
    else:
        options += [("sides", "one-sided"), ("Duplex", "None"), ("duplex", "off")]

    if settings.color == "gray":
        options += [
            ("ColorModel", "Gray"),
            ("ColorModel", "Grayscale"),
            ("print-color-mode", "monochrome"),
        ]
    else:
        options += [("ColorModel", "CMYK"), ("print-color-mode", "color")]

    options.append(("print-quality", "5"))
    if settings.media_type:
        options.append(("MediaType", settings.media_type))

    if orientation_for_rotation(settings.rotation) == "landscape":
        options += [("landscape", None), ("orientation-requested", "4")]
    else:
        options.append(("orientation-requested", "3"))
    return options


class UnixPrinterDriver(PrinterDriver):
    """CUPS backend; pycups when importable, otherwise lpstat/lpoptions/lp."""

    @property
    def name(self) -> str:
        return "unix_cups"

    def _cups_connection(self):
        if cups is None:
            return None
        try:
            return cups.Connection()
        except Exception as exc:
            logger.debug("CUPS connection unavailable: %s", exc)
            return None

    async def _printer_names(self) -> List[Tuple[str, str]]:
        conn = await asyncio.to_thread(self._cups_connection)
        if conn is not None:
            try:
                info = await asyncio.to_thread(conn.getPrinters)
                return [
                    (name, _CUPS_STATES.get(int(attrs.get("printer-state", 0)), "unknown"))
                    for name, attrs in info.items()
                ]
            except Exception as exc:
                logger.warning("CUPS printer query failed, falling back to lpstat: %s", exc)

        result = await run_command(
            [self.config.lpstat_path, "-p"], timeout=self.config.command_timeout
        )
        return parse_lpstat_printers(result.stdout)

    async def list_printers(self) -> List[PrinterDevice]:
        try:
            entries = await self._printer_names()
        except PrintingError as exc:
            logger.warning("Printer enumeration failed: %s", exc)
            return []

        default_name = await self.get_default_printer()
        devices: List[PrinterDevice] = []
        for name, status in entries:
            if status in _UNUSABLE_STATUSES:
                logger.debug("Skipping printer %s (%s)", name, status)
                continue
            capabilities = await self.get_capabilities(name)
            devices.append(
                PrinterDevice(
                    name=name,
                    status=status,
                    is_default=(name == default_name),
                    duplex_supported=capabilities.can_duplex,
                    color_supported=capabilities.supports_color,
                    trays=capabilities.trays,
                    paper_sizes=capabilities.paper_sizes,
                )
            )
        return devices

    async def get_default_printer(self) -> Optional[str]:
        conn = await asyncio.to_thread(self._cups_connection)
        if conn is not None:
            try:
                return (await asyncio.to_thread(conn.getDefault)) or None
            except Exception as exc:
                logger.warning("CUPS default printer query failed: %s", exc)
                return None

        try:
            result = await run_command(
                [self.config.lpstat_path, "-d"], timeout=self.config.command_timeout
            )
        except PrintingError as exc:
            logger.warning("Default printer query failed: %s", exc)
            return None
        return parse_default_destination(result.stdout)

    async def get_capabilities(self, printer_name: str) -> PrinterCapabilities:
        try:
            result = await run_command(
                [self.config.lpoptions_path, "-p", printer_name, "-l"],
                timeout=self.config.command_timeout,
            )
        except PrintingError as exc:
            logger.warning("Capability query for %s failed: %s", printer_name, exc)
            return PrinterCapabilities.empty()
        return parse_option_listing(result.stdout, self.config.paper_size_limit)

    def build_command(self, pdf_path: str, settings: PrintSettings) -> List[str]:
        normalized = settings.normalized(self.config.auto_tray_label)
        cmd = [self.config.lp_path]
        if normalized.printer_name:
            cmd.extend(["-d", normalized.printer_name])
        cmd.extend(["-n", str(normalized.copies)])
        cmd.extend(["-t", normalized.job_name or self.config.job_name])
        if normalized.pages:
            cmd.extend(["-P", normalized.pages])
        for key, value in job_options(normalized):
            cmd.extend(["-o", key if value is None else f"{key}={value}"])
        cmd.append(pdf_path)
        return cmd

    @staticmethod
    def to_cups_options(settings: PrintSettings) -> Dict[str, str]:
        """pycups option dict; the first spelling of a repeated keyword wins."""
        cups_options: Dict[str, str] = {"copies": str(settings.copies)}
        if settings.pages:
            cups_options["page-ranges"] = settings.pages
        for key, value in job_options(settings):
            cups_options.setdefault(key, "true" if value is None else value)
        return cups_options

    def _submit_via_cups(self, conn, pdf_path: str, settings: PrintSettings) -> PrintJobResult:
        printer_name = settings.printer_name or conn.getDefault()
        if not printer_name:
            raise PrinterUnavailableError("No printer selected and no default printer.")
        job_id = conn.printFile(
            printer_name,
            pdf_path,
            settings.job_name or self.config.job_name,
            self.to_cups_options(settings),
        )
        return PrintJobResult(
            success=True,
            route="cups",
            message=f"Submitted print job to CUPS printer '{printer_name}'.",
            job_id=str(job_id),
        )

    async def submit(self, pdf_path: str, settings: PrintSettings) -> PrintJobResult:
        normalized = settings.normalized(self.config.auto_tray_label)

        conn = await asyncio.to_thread(self._cups_connection)
        if conn is not None:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self._submit_via_cups, conn, pdf_path, normalized),
                    timeout=self.config.submit_timeout,
                )
            except PrintingError:
                raise
            except asyncio.TimeoutError as exc:
                raise PrintJobSubmissionError(
                    f"CUPS did not accept the job within {self.config.submit_timeout:g}s"
                ) from exc
            except Exception as exc:
                raise PrintJobSubmissionError(f"CUPS rejected the job: {exc}") from exc

        cmd = self.build_command(pdf_path, normalized)
        logger.info("Submitting print job: %s", " ".join(cmd))
        try:
            result = await run_command(cmd, timeout=self.config.submit_timeout)
        except CommandError as exc:
            raise PrintJobSubmissionError(str(exc)) from exc

        out = result.stdout.strip()
        match = _REQUEST_ID_RE.search(out)
        return PrintJobResult(
            success=True,
            route="lp",
            message=out or "Submitted print job via lp.",
            job_id=match.group(1) if match else None,
        )

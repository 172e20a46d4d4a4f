"""Windows spooler backend (pywin32 binding, PowerShell fallback, SumatraPDF submission)."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..base_driver import (
    PrintJobResult,
    PrinterCapabilities,
    PrinterDevice,
    PrinterDriver,
    PrintSettings,
)
from ..errors import CommandError, PrintJobSubmissionError, PrintingError
from ..layout import orientation_for_rotation
from ..output_parser import first_line, parse_capability_sections, parse_printer_csv
from ..shell import run_command

try:
    import win32print  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    win32print = None

logger = logging.getLogger(__name__)

_WIN32_STATUS_MAP: Dict[int, str] = {
    0x00000080: "offline",
    0x00000002: "error",
    0x00000020: "out_of_paper",
    0x00000040: "paper_jam",
    0x00000004: "deleting",
    0x00000001: "paused",
}

# Get-Printer PrinterStatus names and the Win32_Printer numeric codes.
_PS_STATUS_MAP: Dict[str, str] = {
    "normal": "ready",
    "idle": "ready",
    "3": "ready",
    "printing": "printing",
    "4": "printing",
    "offline": "offline",
    "7": "offline",
    "error": "error",
}
_UNUSABLE_STATUSES = {"offline", "error"}

# DeviceCapabilities indices from wingdi.h.
_DC_DUPLEX = 7
_DC_BINNAMES = 12
_DC_PAPERNAMES = 16
_DC_COLORDEVICE = 32

_SUMATRA_CANDIDATES = (
    r"C:\Program Files\SumatraPDF\SumatraPDF.exe",
    r"C:\Program Files (x86)\SumatraPDF\SumatraPDF.exe",
    os.path.join(os.path.expanduser("~"), "AppData", "Local", "SumatraPDF", "SumatraPDF.exe"),
)

_LIST_PRINTERS_PS = (
    "Get-Printer | Select-Object Name, PrinterStatus | ConvertTo-Csv -NoTypeInformation"
)
_DEFAULT_PRINTER_PS = (
    "Get-CimInstance -ClassName Win32_Printer | "
    "Where-Object { $_.Default -eq $true } | Select-Object -ExpandProperty Name"
)
_CAPABILITIES_PS = """
Add-Type -AssemblyName System.Drawing;
$printer = New-Object System.Drawing.Printing.PrinterSettings;
$printer.PrinterName = '{name}';
if ($printer.IsValid) {{
    Write-Output 'TRAYS_START';
    $printer.PaperSources | ForEach-Object {{ Write-Output $_.SourceName }};
    Write-Output 'TRAYS_END';
    Write-Output "DUPLEX:$($printer.CanDuplex)";
    Write-Output 'DUPLEX_MODES_START';
    if ($printer.CanDuplex) {{ Write-Output 'long'; Write-Output 'short' }};
    Write-Output 'DUPLEX_MODES_END';
    Write-Output "COLOR:$($printer.SupportsColor)";
    Write-Output 'PAPER_SIZES_START';
    $printer.PaperSizes | Select-Object -First {limit} | ForEach-Object {{ Write-Output $_.PaperName }};
    Write-Output 'PAPER_SIZES_END';
}}
"""


def normalize_status(raw: str) -> str:
    value = (raw or "").strip().lower()
    return _PS_STATUS_MAP.get(value, value or "unknown")


def _ps_quote(value: str) -> str:
    return value.replace("'", "''")


def _one_line(script: str) -> str:
    return " ".join(line.strip() for line in script.splitlines() if line.strip())


def print_settings_directives(settings: PrintSettings) -> List[str]:
    """SumatraPDF ``-print-settings`` items for a normalized request."""
    directives: List[str] = []
    if settings.pages:
        directives.append(settings.pages)
    directives.append("noscale")
    directives.append(f"{settings.copies}x")
    if settings.tray:
        directives.append(f"bin={settings.tray}")
    if settings.duplex == "long":
        directives.append("duplexlong")
    elif settings.duplex == "short":
        directives.append("duplexshort")
    else:
        directives.append("simplex")
    directives.append("monochrome" if settings.color == "gray" else "color")
    directives.append(orientation_for_rotation(settings.rotation))
    return directives


class WindowsPrinterDriver(PrinterDriver):
    """Windows backend; spooler API via pywin32 when importable, else PowerShell."""

    @property
    def name(self) -> str:
        return "windows_spooler"

    def _powershell(self, script: str) -> List[str]:
        return [
            self.config.powershell_path,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; " + _one_line(script),
        ]

    # -- pywin32 path -------------------------------------------------------

    @staticmethod
    def _win32_status(status_code: int) -> str:
        if status_code == 0:
            return "ready"
        for bit, text in _WIN32_STATUS_MAP.items():
            if status_code & bit:
                return text
        return "busy"

    def _win32_printer_info(self, printer_name: str) -> Dict[str, object]:
        handle = win32print.OpenPrinter(printer_name)
        try:
            return win32print.GetPrinter(handle, 2)
        finally:
            win32print.ClosePrinter(handle)

    def _win32_printers(self) -> List[Tuple[str, str]]:
        flags = win32print.PRINTER_ENUM_LOCAL | win32print.PRINTER_ENUM_CONNECTIONS
        entries: List[Tuple[str, str]] = []
        for item in win32print.EnumPrinters(flags):
            printer_name = item[2]
            try:
                info = self._win32_printer_info(printer_name)
                status = self._win32_status(int(info.get("Status", 0)))
            except Exception as exc:
                logger.debug("Status query for %s failed: %s", printer_name, exc)
                status = "unknown"
            entries.append((printer_name, status))
        return entries

    def _win32_capabilities(self, printer_name: str) -> PrinterCapabilities:
        port = str(self._win32_printer_info(printer_name).get("pPortName") or "")

        def query(capability: int):
            return win32print.DeviceCapabilities(printer_name, port, capability)

        can_duplex = bool(query(_DC_DUPLEX) == 1)
        trays = [str(t).strip() for t in (query(_DC_BINNAMES) or []) if str(t).strip()]
        papers = [str(p).strip() for p in (query(_DC_PAPERNAMES) or []) if str(p).strip()]
        return PrinterCapabilities(
            trays=list(dict.fromkeys(trays)),
            can_duplex=can_duplex,
            duplex_modes=["long", "short"] if can_duplex else [],
            supports_color=bool(query(_DC_COLORDEVICE) == 1),
            paper_sizes=list(dict.fromkeys(papers))[: self.config.paper_size_limit],
        )

    # -- discovery ----------------------------------------------------------

    async def _printer_entries(self) -> List[Tuple[str, str]]:
        if win32print is not None:
            return await asyncio.to_thread(self._win32_printers)
        result = await run_command(
            self._powershell(_LIST_PRINTERS_PS), timeout=self.config.command_timeout
        )
        return [(name, normalize_status(status)) for name, status in parse_printer_csv(result.stdout)]

    async def list_printers(self) -> List[PrinterDevice]:
        try:
            entries = await self._printer_entries()
        except Exception as exc:
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
        if win32print is not None:
            try:
                return str(await asyncio.to_thread(win32print.GetDefaultPrinter)) or None
            except Exception as exc:
                logger.warning("Default printer query failed: %s", exc)
                return None
        try:
            result = await run_command(
                self._powershell(_DEFAULT_PRINTER_PS), timeout=self.config.command_timeout
            )
        except PrintingError as exc:
            logger.warning("Default printer query failed: %s", exc)
            return None
        return first_line(result.stdout)

    async def get_capabilities(self, printer_name: str) -> PrinterCapabilities:
        if win32print is not None:
            try:
                return await asyncio.to_thread(self._win32_capabilities, printer_name)
            except Exception as exc:
                logger.warning("Spooler capability query for %s failed: %s", printer_name, exc)
                return PrinterCapabilities.empty()

        script = _CAPABILITIES_PS.format(
            name=_ps_quote(printer_name), limit=self.config.paper_size_limit
        )
        try:
            result = await run_command(
                self._powershell(script), timeout=self.config.command_timeout
            )
        except PrintingError as exc:
            logger.warning("Capability query for %s failed: %s", printer_name, exc)
            return PrinterCapabilities.empty()
        return parse_capability_sections(result.stdout, self.config.paper_size_limit)

    # -- submission ---------------------------------------------------------

    def find_sumatra(self) -> Optional[str]:
        if self.config.sumatra_path:
            return self.config.sumatra_path
        found = shutil.which("SumatraPDF") or shutil.which("SumatraPDF.exe")
        if found:
            return found
        for candidate in _SUMATRA_CANDIDATES:
            if Path(candidate).is_file():
                return candidate
        return None

    def build_command(self, pdf_path: str, settings: PrintSettings) -> List[str]:
        normalized = settings.normalized(self.config.auto_tray_label)
        sumatra = self.find_sumatra()
        if sumatra is None:
            raise PrintJobSubmissionError(
                "SumatraPDF not found; set PRINTPREP_SUMATRA to its executable."
            )
        cmd = [sumatra]
        if normalized.printer_name:
            cmd.extend(["-print-to", normalized.printer_name])
        else:
            cmd.append("-print-to-default")
        cmd.extend(["-print-settings", ",".join(print_settings_directives(normalized))])
        cmd.extend(["-silent", pdf_path])
        return cmd

    async def submit(self, pdf_path: str, settings: PrintSettings) -> PrintJobResult:
        normalized = settings.normalized(self.config.auto_tray_label)
        if normalized.media_type:
            logger.debug("Media type %r is left to the driver on Windows", normalized.media_type)
        cmd = self.build_command(pdf_path, normalized)
        logger.info("Submitting print job: %s", " ".join(cmd))
        try:
            await run_command(cmd, timeout=self.config.submit_timeout)
        except CommandError as exc:
            raise PrintJobSubmissionError(str(exc)) from exc
        return PrintJobResult(
            success=True,
            route="sumatra",
            message=f"Submitted print job to '{normalized.printer_name or 'default printer'}'.",
        )

# test_scripts/test_dispatcher.py

import asyncio
import logging
from pathlib import Path
from typing import List

import fitz
import pytest

from helpers import make_pdf, pdf_box
from printprep import dispatcher as dispatcher_module
from printprep.base_driver import (
    PrintJobResult,
    PrinterCapabilities,
    PrinterDevice,
    PrinterDriver,
    PrintSettings,
)
from printprep.config import PipelineConfig
from printprep.dispatcher import PrintDispatcher, get_printer_driver
from printprep.errors import PrintJobSubmissionError
from printprep.platforms.unix_driver import UnixPrinterDriver
from printprep.platforms.win_driver import WindowsPrinterDriver
from printprep.products import ProductCatalog

CONFIG = {
    "paperSizes": {
        "a4-margins": {
            "name": "A4 with margins",
            "width": 210,
            "height": 297,
            "customMargins": {"top": 10, "right": 5, "bottom": 10, "left": 5},
        }
    },
    "defaultTrayMapping": {"210x297": "Tray 1"},
}


class RecordingDriver(PrinterDriver):
    """Captures submitted files and inspects them before cleanup runs."""

    def __init__(self, config: PipelineConfig, fail_with: str | None = None):
        super().__init__(config)
        self.fail_with = fail_with
        self.submitted: List[str] = []
        self.crop_boxes: List[tuple] = []

    @property
    def name(self) -> str:
        return "recording"

    async def list_printers(self) -> List[PrinterDevice]:
        return [PrinterDevice(name="Office", status="ready", duplex_supported=True)]

    async def get_default_printer(self):
        return "Office"

    async def get_capabilities(self, printer_name: str) -> PrinterCapabilities:
        return PrinterCapabilities(trays=["Tray 1", "Tray 2"], can_duplex=True, duplex_modes=["long", "short"])

    def build_command(self, pdf_path: str, settings: PrintSettings) -> List[str]:
        return ["print", pdf_path]

    async def submit(self, pdf_path: str, settings: PrintSettings) -> PrintJobResult:
        self.submitted.append(pdf_path)
        doc = fitz.open(pdf_path)
        try:
            self.crop_boxes.append(pdf_box(doc[0]))
        finally:
            doc.close()
        if self.fail_with:
            raise PrintJobSubmissionError(self.fail_with)
        return PrintJobResult(success=True, route=self.name, message="ok")


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    spool = tmp_path / "spool"
    spool.mkdir()
    return PipelineConfig(temp_dir=str(spool))


def _dispatcher(config, driver=None):
    return PrintDispatcher(
        driver=driver or RecordingDriver(config),
        products=ProductCatalog.from_mapping(CONFIG),
        config=config,
    )


def test_print_crops_submits_and_cleans_up(a4_pdf, config):
    driver = RecordingDriver(config)
    dispatcher = _dispatcher(config, driver)

    result = asyncio.run(dispatcher.print_pdf(str(a4_pdf), PrintSettings(product_key="a4-margins")))

    assert result.success is True
    submitted = Path(driver.submitted[0])
    assert submitted != a4_pdf
    assert submitted.parent == Path(config.temp_dir)
    x, y, w, h = driver.crop_boxes[0]
    assert (x, y, w, h) == pytest.approx((14.17, 28.35, 566.93, 785.20), abs=0.01)
    assert not submitted.exists()
    assert a4_pdf.exists()


def test_submission_failure_is_reported_and_temp_removed(a4_pdf, config):
    driver = RecordingDriver(config, fail_with="lp: printer is not accepting jobs")
    dispatcher = _dispatcher(config, driver)

    outcome = asyncio.run(
        dispatcher.print_payload(str(a4_pdf), {"printerName": "Office", "productKey": "a4-margins"})
    )

    assert outcome == {"success": False, "error": "lp: printer is not accepting jobs"}
    assert driver.submitted
    assert not any(Path(config.temp_dir).iterdir())


def test_geometry_failure_prevents_submission(tmp_path, config):
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf at all")
    driver = RecordingDriver(config)

    result = asyncio.run(_dispatcher(config, driver).print_pdf(str(broken), PrintSettings()))

    assert result.success is False
    assert result.error
    assert driver.submitted == []


def test_missing_file_is_a_failure_outcome(tmp_path, config):
    driver = RecordingDriver(config)
    result = asyncio.run(_dispatcher(config, driver).print_pdf(str(tmp_path / "nope.pdf"), PrintSettings()))
    assert result.success is False
    assert "does not exist" in result.error
    assert driver.submitted == []


def test_unknown_product_prints_without_margins(a4_pdf, config):
    driver = RecordingDriver(config)
    result = asyncio.run(_dispatcher(config, driver).print_pdf(str(a4_pdf), PrintSettings(product_key="missing")))
    assert result.success is True
    x, y, _, _ = driver.crop_boxes[0]
    assert (x, y) == pytest.approx((0, 0), abs=0.01)


def test_offsets_from_payload_move_crop_window(tmp_path, config):
    pdf = make_pdf(tmp_path / "letter.pdf", width_mm=215.9, height_mm=279.4)
    driver = RecordingDriver(config)
    payload = {"productKey": "a4-margins", "offsetX": 3, "offsetY": "-20"}

    outcome = asyncio.run(_dispatcher(config, driver).print_payload(str(pdf), payload))

    assert outcome == {"success": True}
    x, y, _, _ = driver.crop_boxes[0]
    assert x == pytest.approx(8 * 2.83465, abs=0.01)
    assert y == pytest.approx(0, abs=0.01)


def test_discovery_and_tray_recommendation_delegate(config):
    dispatcher = _dispatcher(config)
    assert [p.name for p in asyncio.run(dispatcher.list_printers())] == ["Office"]
    assert asyncio.run(dispatcher.get_default_printer()) == "Office"
    assert asyncio.run(dispatcher.get_printer_trays("Office")) == ["Tray 1", "Tray 2"]
    assert asyncio.run(dispatcher.get_capabilities("Office")).can_duplex is True
    assert dispatcher.recommend_tray(297, 210) == "Tray 1"
    assert dispatcher.recommend_tray(100, 100) is None


def test_concurrent_requests_use_distinct_temp_files(a4_pdf, config):
    driver = RecordingDriver(config)
    dispatcher = _dispatcher(config, driver)

    async def run_both():
        settings = PrintSettings(product_key="a4-margins")
        return await asyncio.gather(
            dispatcher.print_pdf(str(a4_pdf), settings),
            dispatcher.print_pdf(str(a4_pdf), settings),
        )

    results = asyncio.run(run_both())
    assert all(r.success for r in results)
    assert len(set(driver.submitted)) == 2


@pytest.mark.parametrize("system, expected", [("Windows", WindowsPrinterDriver), ("Linux", UnixPrinterDriver), ("Darwin", UnixPrinterDriver)])
def test_backend_selected_by_platform(monkeypatch, system, expected):
    monkeypatch.setattr(dispatcher_module.platform, "system", lambda: system)
    assert isinstance(get_printer_driver(), expected)


def test_locked_temp_file_is_logged_not_fatal(a4_pdf, config, monkeypatch, caplog):
    def locked(self, missing_ok=False):
        raise PermissionError("locked by spooler")

    driver = RecordingDriver(config)
    dispatcher = _dispatcher(config, driver)
    monkeypatch.setattr(Path, "unlink", locked)
    caplog.set_level(logging.WARNING, logger="printprep.geometry")

    result = asyncio.run(dispatcher.print_pdf(str(a4_pdf), PrintSettings(product_key="a4-margins")))

    assert result.success is True
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("Failed to delete temp print file" in w and "locked by spooler" in w for w in warnings)


def test_empty_catalog_is_kept(config):
    catalog = ProductCatalog()
    dispatcher = PrintDispatcher(driver=RecordingDriver(config), products=catalog, config=config)
    assert dispatcher.products is catalog

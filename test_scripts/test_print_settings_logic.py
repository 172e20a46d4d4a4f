# -*- coding: utf-8 -*-
"""Normalization checks for print settings and product records."""

import json

import pytest

from printprep.base_driver import PrintJobResult, PrintSettings
from printprep.config import PipelineConfig
from printprep.layout import orientation_for_rotation
from printprep.products import Margins, PaperProduct, ProductCatalog

CONFIG = {
    "paperSizes": {
        "a4-gloss": {
            "name": "A4 Gloss",
            "width": 210,
            "height": 297,
            "printer": "HP_LaserJet",
            "tray": "Tray 2",
            "mediaType": "Glossy",
            "copies": "2",
            "duplex": "long-edge",
            "color": "grayscale",
            "offsetX": 1.5,
            "customMargins": {"top": 10, "right": 5, "bottom": 10, "left": 5},
        },
        "broken": "not a record",
        "sra3": {"name": "SRA3", "width": 320, "height": 450},
    },
    "defaultTrayMapping": {"210x297": "Tray 2", "320x450": "Bypass"},
}


def test_payload_is_normalized():
    settings = PrintSettings.from_payload(
        {
            "printerName": "  HP_LaserJet ",
            "tray": "Auto-Select",
            "copies": "abc",
            "rotation": 450,
            "duplex": "",
            "color": "gray",
            "mediaType": "",
            "offsetX": "2.5",
            "offsetY": None,
            "productKey": "a4-gloss",
            "pages": " 1-3,5 ",
        }
    ).normalized()
    assert settings.printer_name == "HP_LaserJet"
    assert settings.tray is None
    assert settings.copies == 1
    assert settings.rotation == 90
    assert settings.duplex == "none"
    assert settings.color == "gray"
    assert settings.media_type is None
    assert settings.offset_x == pytest.approx(2.5)
    assert settings.offset_y == 0.0
    assert settings.product_key == "a4-gloss"
    assert settings.pages == "1-3,5"


@pytest.mark.parametrize("copies, expected", [(None, 1), ("", 1), ("3", 3), (0, 1), (-2, 1), (4, 4)])
def test_copies_always_positive(copies, expected):
    assert PrintSettings(copies=copies).normalized().copies == expected


@pytest.mark.parametrize(
    "rotation, orientation",
    [(0, "portrait"), (90, "landscape"), (180, "portrait"), (270, "landscape"), (45, "portrait"), ("x", "portrait")],
)
def test_rotation_maps_to_orientation(rotation, orientation):
    assert orientation_for_rotation(rotation) == orientation


def test_custom_auto_tray_label():
    settings = PrintSettings(tray="Automatic").normalized(auto_tray_label="Automatic")
    assert settings.tray is None
    assert PrintSettings(tray=" Tray 1 ").normalized().tray == "Tray 1"


def test_product_from_config_record():
    catalog = ProductCatalog.from_mapping(CONFIG)
    product = catalog.get("a4-gloss")
    assert product is not None
    assert product.name == "A4 Gloss"
    assert product.copies == 2
    assert product.duplex == "long"
    assert product.color == "gray"
    assert product.offset_x_mm == pytest.approx(1.5)
    assert product.effective_margins() == Margins(top=10, right=5, bottom=10, left=5)

    plain = catalog.get("sra3")
    assert plain is not None
    assert plain.custom_margins is None
    assert plain.effective_margins() == Margins.zero()

    assert "broken" not in catalog
    assert catalog.get(None) is None
    assert catalog.get("nope") is None
    assert catalog.tray_mapping == {"210x297": "Tray 2", "320x450": "Bypass"}


def test_catalog_from_json_file(tmp_path):
    path = tmp_path / "papers.json"
    path.write_text(json.dumps(CONFIG), encoding="utf-8")
    catalog = ProductCatalog.from_json_file(path)
    assert len(catalog) == 2


def test_product_is_immutable():
    product = PaperProduct(key="k")
    with pytest.raises(Exception):
        product.width_mm = 10  # type: ignore[misc]


def test_result_boundary_shape():
    assert PrintJobResult(success=True, route="lp").to_dict() == {"success": True}
    assert PrintJobResult(success=False, route="lp", error="boom").to_dict() == {
        "success": False,
        "error": "boom",
    }


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("PRINTPREP_SUMATRA", r"C:\Tools\SumatraPDF.exe")
    monkeypatch.setenv("PRINTPREP_SUBMIT_TIMEOUT", "15")
    monkeypatch.setenv("PRINTPREP_PAPER_SIZE_LIMIT", "nope")
    config = PipelineConfig.from_env()
    assert config.sumatra_path == r"C:\Tools\SumatraPDF.exe"
    assert config.submit_timeout == 15.0
    assert config.paper_size_limit == 20
    assert config.command_timeout is None

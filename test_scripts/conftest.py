from __future__ import annotations

from pathlib import Path

import pytest

from helpers import make_pdf


@pytest.fixture
def a4_pdf(tmp_path: Path) -> Path:
    return make_pdf(tmp_path / "a4.pdf", pages=2)

"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path

import pytest

# Make src/ importable without an editable install
src_dir = Path(__file__).parent.parent / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from county_qa.core.sheet_ingest import build_snapshot


SHEET_ROWS = [
    ["Alabama County Demographics", "", "", "", "", "", ""],
    ["", "", "", "", "", "", ""],
    ["County", "Population", "Region", "County", "Population - H", "Projected Population - H", "Region"],
    ["Colbert", "54,000", "West", "Colbert", "1,200", "1,500.5", ""],
    ["Madison", "400,000", "Central", "Madison", "30,000", "35,000.4", "C"],
    ["Mobile", "410,000", "e", "Mobile", "12,000", "", ""],
    ["Baldwin", "230,000", "Southeast", "Baldwin", "", "9,000", "East"],
    ["", "", "", "", "", "", ""],
    ["Total", "1,094,000", "", "Total", "43,200", "45,500.9", ""],
]


@pytest.fixture
def sheet_rows():
    """Raw rows shaped like the published sheet (title, blank line, header, data, total)."""
    return [list(r) for r in SHEET_ROWS]


@pytest.fixture
def snapshot(sheet_rows):
    return build_snapshot(sheet_rows)

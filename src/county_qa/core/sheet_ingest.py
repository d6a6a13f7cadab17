from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from county_qa.config import HEADER_ROW_FALLBACK
from county_qa.core.data_loader import DataLoaderError
from county_qa.core.models import Metric, Region, Row, RowKind, Snapshot, Totals
from county_qa.core.text import is_missing, normalize, parse_number

logger = logging.getLogger(__name__)

# Column labels in the published sheet
COUNTY_COL = "County"
COUNTY_RIGHT_COL = "County_2"
POPULATION_COL = "Population"
HISPANIC_COL = "Population - H"
PROJECTED_COL = "Projected Population - H"
REGION_COL = "Region"
REGION_RIGHT_COL = "Region_2"


class SheetFormatError(DataLoaderError):
    """Raised when no usable header row can be found in the sheet."""


def _cell_text(cell: Any) -> str:
    return "" if is_missing(cell) else str(cell).strip()


def _is_blank_row(cells: Sequence[Any]) -> bool:
    return all(is_missing(c) or c == "" for c in cells)


def locate_header_row(raw_rows: Sequence[Sequence[Any]]) -> int:
    """
    Index of the first row starting with "County", "Population".

    Falls back to HEADER_ROW_FALLBACK when no row carries that text.
    """
    for idx, row in enumerate(raw_rows):
        if not row or len(row) < 2:
            continue
        if _cell_text(row[0]) == COUNTY_COL and _cell_text(row[1]) == POPULATION_COL:
            return idx

    logger.warning(
        "Header row not found; falling back to row index %d.", HEADER_ROW_FALLBACK
    )
    return HEADER_ROW_FALLBACK


def build_headers(header_row: Sequence[Any]) -> List[str]:
    """
    Column names for the header row.

    Repeated labels get _2, _3, ... in order of appearance; empty cells get col_<i>.
    """
    headers: List[str] = []
    seen = set()
    for i, cell in enumerate(header_row):
        base = _cell_text(cell) or f"col_{i}"
        name = base
        suffix = 2
        while name in seen:
            name = f"{base}_{suffix}"
            suffix += 1
        seen.add(name)
        headers.append(name)
    return headers


def normalize_region(raw: Any) -> Optional[Region]:
    """Map free-form region labels ("East Region", "Southwest", "C") to a Region."""
    r = normalize(raw)
    if not r:
        return None

    if "central" in r:
        return Region.CENTRAL
    if "east" in r:
        return Region.EAST
    if "west" in r:
        return Region.WEST

    # Single-letter region codes
    codes = {"c": Region.CENTRAL, "e": Region.EAST, "w": Region.WEST}
    return codes.get(r)


def _present(value: float) -> Optional[float]:
    return None if math.isnan(value) else value


def _records(raw_rows: Sequence[Sequence[Any]], header_idx: int) -> List[Dict[str, Any]]:
    headers = build_headers(raw_rows[header_idx])
    records: List[Dict[str, Any]] = []
    for cells in raw_rows[header_idx + 1:]:
        if not cells or _is_blank_row(cells):
            continue
        records.append(
            {h: (cells[c] if c < len(cells) else None) for c, h in enumerate(headers)}
        )
    return records


def build_snapshot(raw_rows: Sequence[Sequence[Any]]) -> Snapshot:
    """
    Run one ingestion pass over raw sheet rows and return a fresh Snapshot.

    Every accumulator is local to this call, so a failure part way through
    leaves nothing behind and a repeated call with the same input yields an
    equal Snapshot.
    """
    header_idx = locate_header_row(raw_rows)
    if header_idx >= len(raw_rows):
        raise SheetFormatError(
            f"Sheet has {len(raw_rows)} rows; no header row at index {header_idx}."
        )

    rows: List[Row] = []
    totals: Dict[Metric, float] = {m: 0.0 for m in Metric}
    region_totals: Dict[Region, Dict[Metric, float]] = {
        r: {m: 0.0 for m in Metric} for r in Region
    }

    for rec in _records(raw_rows, header_idx):
        left_raw = rec.get(COUNTY_COL)
        county_left = _cell_text(left_raw)
        # Total/summary lines would double-count
        if not county_left or "total" in county_left.lower():
            continue
        county_right = _cell_text(rec.get(COUNTY_RIGHT_COL)) or county_left

        pop = _present(parse_number(rec.get(POPULATION_COL)))
        his = _present(parse_number(rec.get(HISPANIC_COL)))
        proj = _present(parse_number(rec.get(PROJECTED_COL)))

        region_left = normalize_region(rec.get(REGION_COL))
        region_right = normalize_region(rec.get(REGION_RIGHT_COL)) or region_left

        if pop is not None:
            rows.append(
                Row(
                    county=county_left,
                    kind=RowKind.POPULATION,
                    population=pop,
                    region=region_left,
                )
            )
            totals[Metric.POPULATION] += pop
            if region_left is not None:
                region_totals[region_left][Metric.POPULATION] += pop

        if his is not None or proj is not None:
            rows.append(
                Row(
                    county=county_right,
                    kind=RowKind.HISPANIC,
                    hispanic_population=his,
                    projected_population=proj,
                    region=region_right,
                )
            )
            for metric, value in ((Metric.HISPANIC, his), (Metric.PROJECTED, proj)):
                if value is None:
                    continue
                totals[metric] += value
                if region_right is not None:
                    region_totals[region_right][metric] += value

    snapshot = Snapshot(
        rows=tuple(rows),
        totals=_freeze(totals),
        region_totals={r: _freeze(t) for r, t in region_totals.items()},
    )
    logger.info("Loaded %d rows.", len(snapshot.rows))
    return snapshot


def _freeze(acc: Dict[Metric, float]) -> Totals:
    return Totals(
        population=acc[Metric.POPULATION],
        hispanic=acc[Metric.HISPANIC],
        projected=acc[Metric.PROJECTED],
    )

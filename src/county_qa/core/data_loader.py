from __future__ import annotations

import csv
import io
import logging
from typing import List, Optional

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from county_qa.config import FETCH_TIMEOUT_SECONDS, SHEET1_CSV_URL

logger = logging.getLogger(__name__)


class DataLoaderError(Exception):
    """Raised when the spreadsheet feed cannot be fetched or decoded."""


def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries.
    Published-sheet endpoints are occasionally slow or rate limited.
    """
    session = requests.Session()

    retry = Retry(
        total=5,
        connect=5,
        read=5,
        status=5,
        backoff_factor=0.6,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


def fetch_sheet_csv(url: Optional[str] = None, timeout_seconds: Optional[int] = None) -> str:
    """
    Download the published sheet as CSV text.

    Raises DataLoaderError on a missing URL, a transport error or a non-2xx status.
    """
    target = (url or SHEET1_CSV_URL or "").strip()
    if not target:
        raise DataLoaderError("Missing sheet URL. Expected SHEET1_CSV_URL to be set.")

    timeout = int(timeout_seconds) if timeout_seconds is not None else FETCH_TIMEOUT_SECONDS

    logger.info("Fetching sheet CSV from %s", target)
    try:
        resp = _get_session().get(target, timeout=timeout)
    except requests.RequestException as exc:
        raise DataLoaderError(f"HTTP error while fetching CSV: {exc}") from exc

    if not resp.ok:
        raise DataLoaderError(f"Failed to fetch CSV: {resp.status_code}")

    return resp.text


def parse_csv_rows(text: str) -> List[List[str]]:
    """
    Decode CSV text into raw rows of cell strings.

    No header is assumed (the ingestor locates it); blank cells come back as ""
    and blank lines are kept so row positions match the sheet. Rows may be
    ragged (a one-cell title line above the wide header); short rows are
    padded with "".
    """
    if not text or not text.strip():
        raise DataLoaderError("CSV feed is empty.")

    # pandas sizes the frame from the first line unless given every column name
    try:
        width = max((len(r) for r in csv.reader(io.StringIO(text))), default=0)
    except csv.Error as exc:
        raise DataLoaderError(f"Could not decode CSV feed: {exc}") from exc
    if width == 0:
        raise DataLoaderError("CSV feed is empty.")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            names=range(width),
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DataLoaderError(f"Could not decode CSV feed: {exc}") from exc

    df = df.fillna("")
    return [[str(cell) for cell in row] for row in df.values.tolist()]


def load_sheet_rows(url: Optional[str] = None) -> List[List[str]]:
    """Fetch the feed and decode it into raw rows."""
    rows = parse_csv_rows(fetch_sheet_csv(url))
    logger.info("Decoded %d raw rows from sheet CSV", len(rows))
    return rows

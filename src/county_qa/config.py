from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "County Demographics Q&A"
APP_VERSION = "0.1.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# ---------------------------------------------------------------------------
# Spreadsheet feed
#
# The county sheet is published as CSV (e.g. Google Sheets "publish to web").
# The layout places two sub-tables side by side:
#   County | Population | Region | County | Population - H | Projected Population - H | Region
# ---------------------------------------------------------------------------

SHEET1_CSV_URL = os.getenv("SHEET1_CSV_URL", "").strip()

FETCH_TIMEOUT_SECONDS = int(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))

# Some exports drop the "County | Population" header text but keep the layout,
# so the header is assumed to sit on the third row.
HEADER_ROW_FALLBACK = 2

# ---------------------------------------------------------------------------
# Question answering
# ---------------------------------------------------------------------------

# Lower = more sensitive to vague questions
CLARITY_THRESHOLD = float(os.getenv("CLARITY_THRESHOLD", "0.1"))

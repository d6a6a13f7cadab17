"""
SnapshotStore — owns the current county snapshot.

Loaded at startup, swapped wholesale on reload, read by every question.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from county_qa.core.answer_engine import answer_question
from county_qa.core.data_loader import load_sheet_rows
from county_qa.core.models import Answer, Snapshot
from county_qa.core.sheet_ingest import build_snapshot

logger = logging.getLogger(__name__)

RowFetcher = Callable[[], List[List[str]]]


class SnapshotStore:
    """Holds one immutable Snapshot and replaces it atomically."""

    def __init__(
        self,
        fetch_rows: RowFetcher = load_sheet_rows,
        clarity_threshold: Optional[float] = None,
    ) -> None:
        self._fetch_rows = fetch_rows
        self._clarity_threshold = clarity_threshold
        self._snapshot: Snapshot = Snapshot.empty()
        self._loaded_at: Optional[datetime] = None
        self._reload_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def is_loaded(self) -> bool:
        return self._loaded_at is not None

    def ingest(self, raw_rows: Sequence[Sequence[Any]]) -> Snapshot:
        """Build a snapshot from raw sheet rows and publish it; on error the old one stays."""
        snapshot = build_snapshot(raw_rows)
        self._snapshot = snapshot
        self._loaded_at = datetime.now(timezone.utc)
        return snapshot

    def reload(self) -> Snapshot:
        """Fetch the feed and ingest it. Concurrent reloads run one after another."""
        with self._reload_lock:
            try:
                raw_rows = self._fetch_rows()
                snapshot = self.ingest(raw_rows)
            except Exception:
                logger.warning(
                    "Reload failed; keeping previous snapshot (%d rows).",
                    len(self._snapshot.rows),
                    exc_info=True,
                )
                raise
        logger.info("Snapshot replaced: %d rows.", len(snapshot.rows))
        return snapshot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def answer(self, question: str) -> Answer:
        return answer_question(self._snapshot, question, clarity_threshold=self._clarity_threshold)

    def health(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        data = snapshot.to_dict()
        return {
            "ok": True,
            "rows": len(snapshot.rows),
            "loaded_at": self._loaded_at.isoformat() if self._loaded_at else None,
            "totals": data["totals"],
            "regionTotals": data["regionTotals"],
        }

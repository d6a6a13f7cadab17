from __future__ import annotations

import logging
import time
import traceback
from typing import Any, Dict

import pandas as pd
import streamlit as st

from county_qa.config import APP_NAME, APP_VERSION, LOG_LEVEL, SHEET1_CSV_URL
from county_qa.core.data_loader import DataLoaderError
from county_qa.core.store import SnapshotStore

logger = logging.getLogger(__name__)

EXAMPLE_QUESTIONS = [
    "What is the population of Colbert County?",
    "What percent of the Hispanic population lives in the east region?",
    "What is the total projected Hispanic population?",
    "Which region is Colbert County in?",
]


@st.cache_resource
def _get_store() -> SnapshotStore:
    store = SnapshotStore()
    try:
        store.reload()
    except DataLoaderError as exc:
        # The UI still starts; the status panel shows the failure and offers a reload
        logger.warning("Initial sheet load failed: %s", exc)
    return store


def _totals_frame(health: Dict[str, Any]) -> pd.DataFrame:
    rows = [{"Scope": "All counties", **health["totals"]}]
    for region, totals in health["regionTotals"].items():
        rows.append({"Scope": f"{region.capitalize()} region", **totals})
    df = pd.DataFrame(rows).set_index("Scope")
    return df.rename(
        columns={
            "population": "Population",
            "hispanic": "Hispanic population",
            "projected": "Projected Hispanic population",
        }
    )


def _render_chat_area(store: SnapshotStore) -> None:
    st.subheader("Ask a question")
    st.caption("Examples: " + " · ".join(EXAMPLE_QUESTIONS))

    question = st.text_input("Question", value="", key="question_input")
    if st.button("Ask", key="ask_btn") and question.strip():
        t0 = time.perf_counter()
        result = store.answer(question)
        elapsed = time.perf_counter() - t0

        if result.type == "error":
            st.warning(result.answer)
        elif result.type == "unclear":
            st.info(result.answer)
        else:
            st.success(result.answer)

        with st.expander("Answer metadata (developer view)", expanded=False):
            st.json(result.meta)
            st.write(f"Answered in {elapsed * 1000:0.1f} ms")


def _render_backend_status(store: SnapshotStore) -> None:
    with st.expander("Sheet status (developer view)", expanded=not store.is_loaded):
        if not SHEET1_CSV_URL:
            st.error("SHEET1_CSV_URL is not set; the sheet cannot be loaded.")

        if st.button("Reload sheet", key="reload_btn"):
            try:
                with st.spinner("Fetching sheet CSV..."):
                    snapshot = store.reload()
                st.success(f"Reload succeeded: {len(snapshot.rows)} rows.")
            except DataLoaderError as exc:
                st.error(f"Reload failed: {exc}")
                st.text_area("Traceback", value=traceback.format_exc(), height=220)
            except Exception as e:
                st.error("Unexpected error while reloading the sheet.")
                st.code(repr(e))
                st.text_area("Traceback", value=traceback.format_exc(), height=220)

        health = store.health()
        if health["loaded_at"] is None:
            st.warning("No snapshot loaded yet.")
        else:
            st.write(f"Rows: {health['rows']}  (loaded {health['loaded_at']})")
        st.dataframe(_totals_frame(health), use_container_width=True)


def _render_rows(store: SnapshotStore) -> None:
    with st.expander("County rows (developer view)", expanded=False):
        rows = [r.to_dict() for r in store.snapshot.rows]
        if not rows:
            st.write("No rows.")
            return
        st.dataframe(pd.DataFrame(rows), use_container_width=True)


def run_app() -> None:
    logging.basicConfig(level=LOG_LEVEL)

    st.set_page_config(page_title=APP_NAME, page_icon="📊", layout="wide")
    st.title(APP_NAME)
    st.caption(f"Prototype version {APP_VERSION}")

    store = _get_store()

    _render_chat_area(store)
    _render_backend_status(store)
    _render_rows(store)

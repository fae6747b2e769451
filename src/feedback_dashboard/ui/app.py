from __future__ import annotations

import logging
import traceback
from typing import List, Optional

import pandas as pd
import streamlit as st

from feedback_dashboard.config import (
    APP_NAME,
    APP_VERSION,
    FEEDBACK_DATA_URL,
    TROUBLESHOOTING_STEPS,
)
from feedback_dashboard.core.aggregations import (
    NoActionItems,
    college_averages,
    compute_summary_stats,
    extract_action_items,
    semester_averages,
    subject_college_grid,
)
from feedback_dashboard.core.charts import (
    college_scores_chart,
    semester_scores_chart,
    subject_college_heatmap,
)
from feedback_dashboard.core.data_loader import LoadResult, timed_load

logger = logging.getLogger(__name__)

# Session keys for the current load; a reload replaces both.
_RESULT_KEY = "load_result"
_ELAPSED_KEY = "load_elapsed"


def _fmt_score(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.2f}"


def _start_load() -> LoadResult:
    # Drop the previous dataset before fetching; nothing carries over between loads
    st.session_state.pop(_RESULT_KEY, None)
    st.session_state.pop(_ELAPSED_KEY, None)

    with st.spinner("Loading feedback data..."):
        result, elapsed = timed_load()

    st.session_state[_RESULT_KEY] = result
    st.session_state[_ELAPSED_KEY] = elapsed
    return result


def _render_error_banner(message: str) -> None:
    steps = "\n".join(f"- {s}" for s in TROUBLESHOOTING_STEPS)
    st.error(
        "**Failed to Load Dashboard Data**\n\n"
        f"{message}\n\n"
        "**Troubleshooting Steps:**\n\n"
        f"{steps}"
    )


def _render_summary_cards(df: pd.DataFrame) -> None:
    stats = compute_summary_stats(df)
    if stats is None:
        st.info("No content scores recorded yet; summary cards are hidden.")
        return

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Avg. Content Score", _fmt_score(stats.avg_content))
    c2.metric("Avg. Trainer Score", _fmt_score(stats.avg_trainer))
    c3.metric("Highest Score", _fmt_score(stats.highest))
    c4.metric("Lowest Score", _fmt_score(stats.lowest))


def _render_charts(df: pd.DataFrame) -> None:
    left, right = st.columns(2)
    with left:
        st.subheader("College performance")
        st.altair_chart(college_scores_chart(college_averages(df)), use_container_width=True)
    with right:
        st.subheader("Semester trend")
        st.altair_chart(semester_scores_chart(semester_averages(df)), use_container_width=True)

    st.subheader("Subject x college heatmap")
    st.altair_chart(subject_college_heatmap(subject_college_grid(df)), use_container_width=True)


def _render_action_items(df: pd.DataFrame) -> None:
    st.subheader("Priority action items")
    items = extract_action_items(df)
    if isinstance(items, NoActionItems):
        st.success(items.message)
        return

    rows: List[dict] = [
        {"Subject": item.subject, "College": item.college, "Action": item.label}
        for item in items
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def _render_developer_panel(result: LoadResult) -> None:
    with st.expander("Data source (developer view)", expanded=False):
        st.write(f"Endpoint: {FEEDBACK_DATA_URL}")
        elapsed = st.session_state.get(_ELAPSED_KEY)
        if elapsed is not None:
            st.write(f"Last load took {elapsed:0.2f}s")
        if result.dataset is not None:
            st.write(f"Returned: {result.dataset.shape[0]} rows × {result.dataset.shape[1]} columns")
            st.dataframe(result.dataset, use_container_width=True)


def run_app() -> None:
    st.set_page_config(page_title=APP_NAME, page_icon="📊", layout="wide")
    st.title(APP_NAME)
    st.caption(f"Version {APP_VERSION}")

    reload_clicked = st.button("Reload data")

    result: Optional[LoadResult] = st.session_state.get(_RESULT_KEY)
    if result is None or reload_clicked:
        result = _start_load()

    if not result.ok:
        # A failed load ends this attempt; no partial dashboard
        _render_error_banner(result.error or "Unknown error")
        _render_developer_panel(result)
        return

    df = result.dataset
    try:
        _render_summary_cards(df)
        _render_charts(df)
        _render_action_items(df)
    except Exception as e:
        logger.exception("Failed to render dashboard")
        st.error("Unexpected error while rendering the dashboard.")
        with st.expander("Error details (developer view)", expanded=False):
            st.code(repr(e))
            st.text_area("Traceback", value=traceback.format_exc(), height=280)

    _render_developer_panel(result)

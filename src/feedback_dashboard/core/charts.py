from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from feedback_dashboard.config import (
    CONTENT_SCORE_COL,
    SCORE_BANDS,
    SCORE_MAX,
    SCORE_MIN,
    TRAINER_SCORE_COL,
)
from feedback_dashboard.core.aggregations import GroupAverage, HeatmapSeries, grid_to_frame

alt.data_transformers.disable_max_rows()

EMPTY_CELL_COLOR = "#E5E7EB"
SEMESTER_BAR_COLOR = "rgba(79, 70, 229, 0.7)"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _score_scale() -> alt.Scale:
    return alt.Scale(domain=[SCORE_MIN, SCORE_MAX])


def college_scores_chart(averages: List[GroupAverage]) -> alt.Chart:
    """
    Content vs Trainer average per college, as grouped bars.
    """
    long_df = pd.DataFrame.from_records(
        [
            rec
            for a in averages
            for rec in (
                {"college": a.category, "metric": CONTENT_SCORE_COL, "score": a.content, "responses": a.count},
                {"college": a.category, "metric": TRAINER_SCORE_COL, "score": a.trainer, "responses": a.count},
            )
        ],
        columns=["college", "metric", "score", "responses"],
    )
    college_order = [a.category for a in averages]

    return (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("college:N", title="College", sort=college_order),
            xOffset=alt.XOffset("metric:N"),
            y=alt.Y("score:Q", title="Average score", scale=_score_scale()),
            color=alt.Color("metric:N", title=None),
            tooltip=[
                "college",
                "metric",
                alt.Tooltip("score:Q", title="Average", format=".2f"),
                alt.Tooltip("responses:Q", title="Responses"),
            ],
        )
    )


def semester_scores_chart(averages: List[GroupAverage]) -> alt.Chart:
    """
    Combined average per semester; bars follow the sorted semester order.
    """
    df = pd.DataFrame.from_records(
        [{"semester": a.category, "score": a.combined, "responses": a.count} for a in averages],
        columns=["semester", "score", "responses"],
    )

    return (
        alt.Chart(df)
        .mark_bar(color=SEMESTER_BAR_COLOR)
        .encode(
            x=alt.X("semester:O", title="Semester", sort=[a.category for a in averages]),
            y=alt.Y("score:Q", title="Average Score", scale=_score_scale()),
            tooltip=[
                "semester",
                alt.Tooltip("score:Q", title="Average Score", format=".2f"),
                alt.Tooltip("responses:Q", title="Responses"),
            ],
        )
    )


def subject_college_heatmap(series: List[HeatmapSeries]) -> alt.LayerChart:
    """
    College x subject heatmap coloured by score band (Low / Mid / High).
    Empty cells are drawn in grey rather than left out.
    """
    df = grid_to_frame(series)
    df["band"] = df["score"].map(_band_name)

    subjects = list(dict.fromkeys(df["subject"].tolist()))
    colleges = [s.name for s in series]
    names = [name for _, _, _, name in SCORE_BANDS]
    colors = [color for _, _, color, _ in SCORE_BANDS]

    base = alt.Chart(df).encode(
        x=alt.X("subject:N", title="Subject", sort=subjects),
        y=alt.Y("college:N", title="College", sort=colleges),
    )

    empty = base.transform_filter("datum.score === null").mark_rect(color=EMPTY_CELL_COLOR)
    filled = (
        base.transform_filter("datum.score !== null")
        .mark_rect()
        .encode(
            color=alt.Color("band:N", title="Score", scale=alt.Scale(domain=names, range=colors)),
            tooltip=["college", "subject", alt.Tooltip("score:Q", title="Average", format=".2f")],
        )
    )
    labels = base.transform_filter("datum.score !== null").mark_text(color="white").encode(
        text=alt.Text("score:Q", format=".2f"),
    )

    return alt.layer(empty, filled, labels)


def _band_name(score: object) -> object:
    if score is None or pd.isna(score):
        return None
    value = float(score)
    for lower, upper, _, name in SCORE_BANDS:
        if lower <= value < upper:
            return name
    # Top band is closed on the right; anything above the scale is still "High"
    return SCORE_BANDS[-1][3] if value >= SCORE_BANDS[-1][1] else SCORE_BANDS[0][3]

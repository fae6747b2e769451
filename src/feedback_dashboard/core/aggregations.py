"""
Pure aggregations over the feedback Dataset.

Every function here takes the full Dataset (a DataFrame with the Row columns
from config.ROW_COLUMNS) and returns small, display-ready dataclasses. None
of them mutate the input, and none of them depend on each other.

Shared rules:
  - Score cells are parsed per field; blank, non-numeric, boolean and
    non-finite cells are dropped from that field's statistics, never counted
    as zero.
  - A group with no valid score yields None for that average (the group is
    kept so tables and charts keep their full shape).
  - Reported numbers are rounded half-up to 2 decimals.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from feedback_dashboard.config import (
    ACTION_ITEM_LABEL,
    ACTION_ITEM_THRESHOLD,
    COLLEGE_COL,
    CONTENT_SCORE_COL,
    NO_ACTION_ITEMS_MESSAGE,
    SEMESTER_COL,
    SUBJECT_COL,
    TRAINER_SCORE_COL,
)


@dataclass(frozen=True)
class SummaryStats:
    avg_content: float
    avg_trainer: Optional[float]
    highest: float
    lowest: float
    content_count: int
    trainer_count: int


@dataclass(frozen=True)
class GroupAverage:
    """
    Averages for one category value (a college or a semester).

    content / trainer: mean of each field on its own.
    combined: mean of the per-row combined score ((content + trainer) / 2).
    count: number of rows in the category, scored or not.
    """
    category: str
    content: Optional[float]
    trainer: Optional[float]
    combined: Optional[float]
    count: int


@dataclass(frozen=True)
class HeatmapCell:
    subject: str
    score: Optional[float]  # None => no fully scored rows for this (college, subject)


@dataclass(frozen=True)
class HeatmapSeries:
    name: str  # college
    cells: List[HeatmapCell]


@dataclass(frozen=True)
class ActionItem:
    subject: str
    college: str
    label: str = ACTION_ITEM_LABEL


@dataclass(frozen=True)
class NoActionItems:
    """Marker for 'every row scored at or above the threshold'."""
    message: str = NO_ACTION_ITEMS_MESSAGE


NO_ACTION_ITEMS = NoActionItems()

ActionItems = Union[List[ActionItem], NoActionItems]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def round_half_up(value: object, ndigits: int = 2) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    d = Decimal(str(value))
    if not d.is_finite():
        return float(d)
    q = Decimal(10) ** -ndigits
    # Default context precision (28 digits) is too small for very large values
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, d.adjusted() + ndigits + 2)
        return float(d.quantize(q, rounding=ROUND_HALF_UP))


def _score_cell(v: Any) -> Any:
    # JSON true/false is not a score
    if isinstance(v, (bool, np.bool_)):
        return None
    return v.strip() if isinstance(v, str) else v


def parse_scores(df: pd.DataFrame, col: str) -> pd.Series:
    """
    Parse a score column to floats.

    Blank, non-numeric, boolean and non-finite (Infinity, 1e400) cells
    become NaN.
    """
    values = df[col] if col in df.columns else None
    if values is None or pd.api.types.is_bool_dtype(values):
        return pd.Series([np.nan] * len(df), index=df.index, dtype=float)
    if not pd.api.types.is_numeric_dtype(values):
        values = values.map(_score_cell)
    parsed = pd.to_numeric(values, errors="coerce").astype(float)
    return parsed.replace([np.inf, -np.inf], np.nan)


def _category_text(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, float):
        if math.isnan(x):
            return ""
        if x.is_integer():
            return str(int(x))
    return str(x)


def _category_series(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series([""] * len(df), index=df.index, dtype=object)
    return df[col].map(_category_text)


def _scored_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Working copy with normalized categories and parsed scores.
    """
    content = parse_scores(df, CONTENT_SCORE_COL)
    trainer = parse_scores(df, TRAINER_SCORE_COL)
    return pd.DataFrame(
        {
            "college": _category_series(df, COLLEGE_COL),
            "semester": _category_series(df, SEMESTER_COL),
            "subject": _category_series(df, SUBJECT_COL),
            "content": content,
            "trainer": trainer,
            "combined": (content + trainer) / 2,
        },
        index=df.index,
    )


def _mean(values: pd.Series) -> Optional[float]:
    valid = values.dropna()
    if valid.empty:
        return None
    return round_half_up(valid.sum() / len(valid))


def _first_seen(values: pd.Series) -> List[str]:
    return list(dict.fromkeys(values.tolist()))


def _group_average(category: str, grp: pd.DataFrame) -> GroupAverage:
    return GroupAverage(
        category=category,
        content=_mean(grp["content"]),
        trainer=_mean(grp["trainer"]),
        combined=_mean(grp["combined"]),
        count=int(len(grp)),
    )


# ---------------------------------------------------------------------------
# Summary cards
# ---------------------------------------------------------------------------

def compute_summary_stats(df: pd.DataFrame) -> Optional[SummaryStats]:
    """
    Overall averages plus the highest and lowest score seen in either field.

    Returns None when no row has a valid Content Score: a dataset with no
    content scores has nothing to summarize.
    """
    content = parse_scores(df, CONTENT_SCORE_COL).dropna()
    trainer = parse_scores(df, TRAINER_SCORE_COL).dropna()
    if content.empty:
        return None

    all_scores = pd.concat([content, trainer], ignore_index=True)
    return SummaryStats(
        avg_content=round_half_up(content.sum() / len(content)),
        avg_trainer=_mean(trainer),
        highest=round_half_up(all_scores.max()),
        lowest=round_half_up(all_scores.min()),
        content_count=int(len(content)),
        trainer_count=int(len(trainer)),
    )


# ---------------------------------------------------------------------------
# Grouped averages
# ---------------------------------------------------------------------------

def college_averages(df: pd.DataFrame) -> List[GroupAverage]:
    """
    Content and Trainer averages per college, colleges in first-seen order.
    """
    work = _scored_frame(df)
    return [
        _group_average(college, work[work["college"] == college])
        for college in _first_seen(work["college"])
    ]


def semester_averages(df: pd.DataFrame) -> List[GroupAverage]:
    """
    Combined-score average per semester, semesters sorted as text.

    A row only contributes to the combined average when both of its scores
    parse; the per-field averages are reported alongside.
    """
    work = _scored_frame(df)
    return [
        _group_average(semester, work[work["semester"] == semester])
        for semester in sorted(set(work["semester"].tolist()))
    ]


def subject_college_grid(df: pd.DataFrame) -> List[HeatmapSeries]:
    """
    Combined-score average for every (college, subject) pair.

    One series per college (first-seen order), one cell per subject
    (first-seen order). Pairs with no rows, or no fully scored rows, get a
    None cell so the grid is always len(colleges) x len(subjects).
    """
    work = _scored_frame(df)
    subjects = _first_seen(work["subject"])
    colleges = _first_seen(work["college"])

    means: Dict[tuple, float] = (
        work.groupby(["college", "subject"], sort=False)["combined"].mean().to_dict()
        if not work.empty
        else {}
    )

    return [
        HeatmapSeries(
            name=college,
            cells=[
                HeatmapCell(subject=subject, score=round_half_up(means.get((college, subject))))
                for subject in subjects
            ],
        )
        for college in colleges
    ]


def grid_to_frame(series: List[HeatmapSeries]) -> pd.DataFrame:
    """
    Long-form (college, subject, score) frame for charting and tables.
    """
    records = [
        {"college": s.name, "subject": cell.subject, "score": cell.score}
        for s in series
        for cell in s.cells
    ]
    return pd.DataFrame.from_records(records, columns=["college", "subject", "score"])


# ---------------------------------------------------------------------------
# Action items
# ---------------------------------------------------------------------------

def extract_action_items(df: pd.DataFrame, threshold: float = ACTION_ITEM_THRESHOLD) -> ActionItems:
    """
    Rows where either score is below the threshold, in source order.

    Unparseable scores never flag a row. Returns NO_ACTION_ITEMS (not an
    empty list) when nothing qualifies.
    """
    work = _scored_frame(df)
    flagged = work[(work["content"] < threshold) | (work["trainer"] < threshold)]
    if flagged.empty:
        return NO_ACTION_ITEMS

    return [
        ActionItem(subject=row["subject"], college=row["college"])
        for _, row in flagged.iterrows()
    ]

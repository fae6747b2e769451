from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from feedback_dashboard.config import (
    CONTENT_SCORE_COL,
    FEEDBACK_DATA_URL,
    FEEDBACK_HTTP_RETRIES,
    FEEDBACK_HTTP_TIMEOUT,
    ROW_COLUMNS,
    SCORE_MAX,
    SCORE_MIN,
    TRAINER_SCORE_COL,
)
from feedback_dashboard.core.aggregations import parse_scores

logger = logging.getLogger(__name__)


class DataLoaderError(Exception):
    """Raised when the feedback endpoint fails or returns an unexpected shape."""


@dataclass
class LoadResult:
    """
    Outcome of one load attempt.

    Exactly one of the fields is set:
      - dataset: the feedback rows (success)
      - error:   human-readable failure message (failure)

    Callers must not run any aggregation when dataset is None.
    """
    dataset: Optional[pd.DataFrame] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.dataset is not None


def _build_session(retries: int = FEEDBACK_HTTP_RETRIES) -> requests.Session:
    """
    Build a requests Session for the Apps Script endpoint.
    Retries default to 0: a failed fetch ends the load attempt.
    """
    session = requests.Session()

    retry = Retry(
        total=max(0, int(retries)),
        backoff_factor=0.6,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_session()
    return _SESSION


def _status_text(resp: requests.Response) -> str:
    reason = (getattr(resp, "reason", None) or "").strip()
    return reason or f"HTTP {resp.status_code}"


def records_to_dataset(records: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Build the Dataset from the decoded row objects.

    Every Row column is guaranteed to exist afterwards (missing ones are
    added empty). Values are kept as delivered; score parsing happens in
    the aggregation layer so that bad cells are dropped per field.
    """
    df = pd.DataFrame.from_records(records)
    for col in ROW_COLUMNS:
        if col not in df.columns:
            logger.warning("Feedback rows have no '%s' column; treating it as empty.", col)
            df[col] = None

    for col in (CONTENT_SCORE_COL, TRAINER_SCORE_COL):
        scores = parse_scores(df, col)
        out_of_range = int(((scores < SCORE_MIN) | (scores > SCORE_MAX)).sum())
        if out_of_range:
            logger.warning(
                "%d '%s' value(s) fall outside [%s, %s].",
                out_of_range, col, SCORE_MIN, SCORE_MAX,
            )

    logger.info("Loaded %d feedback rows.", len(df))
    return df


def fetch_dataset(
    url: Optional[str] = None,
    *,
    timeout_seconds: Optional[float] = None,
) -> pd.DataFrame:
    """
    GET the feedback endpoint and return the Dataset.

    Raises DataLoaderError for:
      - transport failures (connection, timeout, ...)
      - non-success HTTP status
      - non-JSON bodies
      - an explicit {"error": ..., "details": ...} body from the script
      - any body that is not a list of row objects
    """
    target = (url or FEEDBACK_DATA_URL or "").strip()
    if not target:
        raise DataLoaderError("Missing data source URL. Expected FEEDBACK_DATA_URL to be set.")

    timeout = FEEDBACK_HTTP_TIMEOUT if timeout_seconds is None else float(timeout_seconds)
    logger.info("Fetching feedback data from %s", target)

    try:
        resp = _get_session().get(target, timeout=timeout)
    except Exception as exc:
        raise DataLoaderError(f"Network error: {exc}") from exc

    if not resp.ok:
        raise DataLoaderError(f"Network error: {_status_text(resp)}")

    try:
        data = resp.json()
    except Exception as exc:
        preview = (resp.text or "")[:200]
        raise DataLoaderError(f"Network error: response was not valid JSON. Preview: {preview}") from exc

    # Apps Script reports its own failures with a 200 and an error object
    if isinstance(data, dict):
        if data.get("error"):
            raise DataLoaderError(f"Script Error: {data.get('details') or data.get('error')}")
        raise DataLoaderError(f"Unexpected response shape: object with keys {sorted(data.keys())}")

    if not isinstance(data, list):
        raise DataLoaderError(f"Unexpected response shape: {type(data).__name__}")

    bad = [i for i, rec in enumerate(data) if not isinstance(rec, dict)]
    if bad:
        raise DataLoaderError(f"Unexpected response shape: {len(bad)} row(s) are not objects (first at index {bad[0]})")

    return records_to_dataset(data)


def load_dataset(url: Optional[str] = None, *, timeout_seconds: Optional[float] = None) -> LoadResult:
    """
    Load the Dataset, turning any DataLoaderError into a failed LoadResult.
    The failure is logged before returning.
    """
    try:
        df = fetch_dataset(url, timeout_seconds=timeout_seconds)
    except DataLoaderError as exc:
        logger.error("Dashboard error: %s", exc)
        return LoadResult(dataset=None, error=str(exc))
    return LoadResult(dataset=df)


def timed_load(
    url: Optional[str] = None,
    *,
    timeout_seconds: Optional[float] = None,
) -> Tuple[LoadResult, float]:
    """
    Convenience helper for UI timing logs.
    """
    t0 = time.perf_counter()
    result = load_dataset(url, timeout_seconds=timeout_seconds)
    return result, (time.perf_counter() - t0)

"""Shared pytest fixtures for feedback_dashboard tests."""

from typing import Any, Callable, Dict, List
from unittest.mock import MagicMock

import pandas as pd
import pytest
import requests

from feedback_dashboard.core import data_loader


@pytest.fixture
def sample_records() -> List[Dict[str, Any]]:
    """Rows as the Apps Script endpoint returns them (scores as strings)."""
    return [
        {"College": "North", "Semester": "2024-2", "Subject": "Python", "Content Score": "8", "Trainer Score": "6"},
        {"College": "North", "Semester": "2024-1", "Subject": "SQL", "Content Score": "6", "Trainer Score": "8"},
        {"College": "South", "Semester": "2024-1", "Subject": "Python", "Content Score": "10", "Trainer Score": "10"},
        {"College": "South", "Semester": "2024-2", "Subject": "Python", "Content Score": "9", "Trainer Score": "9"},
    ]


@pytest.fixture
def sample_df(sample_records) -> pd.DataFrame:
    return pd.DataFrame.from_records(sample_records)


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Build a stand-in for requests.Response."""

    def _make(
        *,
        status_code: int = 200,
        reason: str = "OK",
        json_data: Any = None,
        json_error: Exception | None = None,
        text: str = "",
    ) -> MagicMock:
        resp = MagicMock(spec=requests.Response)
        resp.status_code = status_code
        resp.reason = reason
        resp.ok = status_code < 400
        resp.text = text
        if json_error is not None:
            resp.json.side_effect = json_error
        else:
            resp.json.return_value = json_data
        return resp

    return _make


@pytest.fixture
def fake_session(monkeypatch) -> MagicMock:
    """Replace the loader's HTTP session; configure .get per test."""
    session = MagicMock(spec=requests.Session)
    monkeypatch.setattr(data_loader, "_get_session", lambda: session)
    return session

from __future__ import annotations

import logging
import math
import os

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = float("nan")
    if not math.isfinite(value) or value <= 0:
        logger.warning("Ignoring %s=%r (expected a positive number); using %s.", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning("Ignoring %s=%r (expected a whole number); using %s.", name, raw, default)
        return default


# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Training Feedback Dashboard"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Data source
#
# The feedback sheet is published through a Google Apps Script web app that
# answers a plain GET with either:
#   - a JSON array of row objects (one per feedback response), or
#   - a JSON object {"error": "...", "details": "..."} when the script fails.
#
# Override the deployment URL via environment variable when the script is
# re-deployed (every new deployment gets a new /exec URL).
# ---------------------------------------------------------------------------

DEFAULT_FEEDBACK_DATA_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbx0L61joIbF6rMUe1nOmwUJ8fn3RlUsI2NB5f1uus-1j-Cs7wYIwKkfJmj1S2HuKSS5UQ/exec"
)

FEEDBACK_DATA_URL = os.getenv("FEEDBACK_DATA_URL", DEFAULT_FEEDBACK_DATA_URL).strip()

# Seconds to wait for the web app before treating the load as failed.
FEEDBACK_HTTP_TIMEOUT = _env_float("FEEDBACK_HTTP_TIMEOUT", 30.0)

# A failed fetch ends the load attempt; keep this at 0 unless the script is flaky.
FEEDBACK_HTTP_RETRIES = _env_int("FEEDBACK_HTTP_RETRIES", 0)

LOG_LEVEL = os.getenv("FEEDBACK_LOG_LEVEL", "INFO").strip().upper() or "INFO"

# ---------------------------------------------------------------------------
# Sheet columns and scoring rules
# ---------------------------------------------------------------------------

COLLEGE_COL = "College"
SEMESTER_COL = "Semester"
SUBJECT_COL = "Subject"
CONTENT_SCORE_COL = "Content Score"
TRAINER_SCORE_COL = "Trainer Score"

ROW_COLUMNS = [
    COLLEGE_COL,
    SEMESTER_COL,
    SUBJECT_COL,
    CONTENT_SCORE_COL,
    TRAINER_SCORE_COL,
]

SCORE_MIN = 0.0
SCORE_MAX = 10.0

# Rows with either score strictly below this are flagged for follow-up.
ACTION_ITEM_THRESHOLD = 7.0
ACTION_ITEM_LABEL = "Review Feedback"
NO_ACTION_ITEMS_MESSAGE = "No priority action items found. Great work!"

# Heatmap colour bands: (lower bound, upper bound, colour, name)
SCORE_BANDS = [
    (0.0, 6.0, "#EF4444", "Low"),
    (6.0, 8.0, "#F59E0B", "Mid"),
    (8.0, 10.0, "#10B981", "High"),
]

# Shown under the error banner when the data cannot be loaded.
TROUBLESHOOTING_STEPS = [
    "Ensure the FEEDBACK_DATA_URL setting points at the current web app deployment.",
    'In Google Apps Script, re-deploy your script and make sure "Who has access" is set to "Anyone".',
    "Check that the sheet name in your script ('Data') matches the tab in your Google Sheet.",
]

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so we can import feedback_dashboard
ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from feedback_dashboard.config import LOG_LEVEL  # type: ignore
from feedback_dashboard.ui.app import run_app  # type: ignore

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Streamlit executes this file as __main__ on every rerun
if __name__ == "__main__":
    run_app()

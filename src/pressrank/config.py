"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DB_PATH: Path = Path(
    os.getenv("PRESSRANK_DB_PATH", str(PROJECT_ROOT / "var" / "pressrank.sqlite3"))
)

# ── Pagination ─────────────────────────────────────────────────────────────
DEFAULT_PAGE_SIZE: int = int(os.getenv("PRESSRANK_DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE: int = int(os.getenv("PRESSRANK_MAX_PAGE_SIZE", "50"))

# ── Ranking ────────────────────────────────────────────────────────────────
TRENDING_WINDOW: str = os.getenv("PRESSRANK_TRENDING_WINDOW", "7 days")
INTEREST_TOP_N: int = int(os.getenv("PRESSRANK_INTEREST_TOP_N", "10"))

# ── Suggestions ────────────────────────────────────────────────────────────
SUGGESTION_MIN_LENGTH: int = int(os.getenv("PRESSRANK_SUGGESTION_MIN_LENGTH", "2"))
SUGGESTION_MAX: int = 10

# ── Logging ────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("PRESSRANK_LOG_LEVEL", "INFO")

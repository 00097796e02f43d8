"""
PMPortal - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("PMPORTAL_DB", f"sqlite:///{BASE_DIR / 'pmportal.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("PMPORTAL_HOST", "0.0.0.0")
PORT   = int(os.environ.get("PMPORTAL_PORT", "5000"))
DEBUG  = os.environ.get("PMPORTAL_DEBUG", "0") == "1"
SECRET = os.environ.get("PMPORTAL_SECRET", "pmportal-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("PMPORTAL_LOG_LEVEL", "INFO").upper()

# ── Auth ───────────────────────────────────────────────────────────────
TOKEN_MAX_AGE = int(os.environ.get("PMPORTAL_TOKEN_MAX_AGE", str(24 * 3600)))   # seconds
ROLES = ("mentor", "mentee", "coordinator", "hod")

# ── Import ─────────────────────────────────────────────────────────────
MAX_IMPORT_BYTES        = int(os.environ.get("PMPORTAL_MAX_IMPORT_BYTES", str(5 * 1024 * 1024)))
DEFAULT_DURATION_MONTHS = 12
DEFAULT_PROJECT_DETAILS = "Imported from CSV"
DEFAULT_PROJECT_STATUS  = "pending"

# ── Academic years ─────────────────────────────────────────────────────
# Used as the "latest" year when none exist yet.
ACADEMIC_YEAR_BASE = os.environ.get("PMPORTAL_ACADEMIC_YEAR_BASE", "2024-2025")
ACADEMIC_YEAR_START = (7, 1)     # (month, day)
ACADEMIC_YEAR_END   = (6, 30)

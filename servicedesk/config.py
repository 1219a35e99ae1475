"""Centralised configuration — single source of truth for the service desk."""

from pathlib import Path

# ── Paths ────────────────────────────────────────────────────────────────
_PACKAGE_DIR = Path(__file__).resolve().parent
ROOT_DIR = _PACKAGE_DIR.parent

# ── Request categories (what the requester needs) ───────────────────────
CATEGORIES = ["SUPPORT", "MAINTENANCE", "COMPLAINT"]

# ── Priority classes → base points for hybrid ranking ───────────────────
PRIORITY_CLASSES = ["NORMAL", "URGENT"]
PRIORITY_BASE_POINTS: dict[str, int] = {
    "URGENT": 8,
    "NORMAL": 6,
}

# Positional bonus: 4, 3, 2, 1, 0, 0, … for arrival positions 0, 1, 2, …
POSITION_BONUS_CAP = 4

# ── Display ──────────────────────────────────────────────────────────────
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

# ── HTTP surface ─────────────────────────────────────────────────────────
API_TITLE = "Service Desk Queue"
API_VERSION = "1.0.0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_API_URL = "http://localhost:8000"

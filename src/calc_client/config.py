"""
Client configuration, polling parameters, and project path constants.

All constants used across the client modules are centralized here so that
config is separated from logic.

The service base URL can be overridden at runtime with the ``CALC_API_URL``
environment variable and the storage directory with ``CALC_CLIENT_DATA_DIR``;
everything else is a plain module constant that callers may override per
call through keyword arguments.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Resolve from this file: src/calc_client/config.py → src/calc_client → src → root
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_DIR = Path(os.getenv("CALC_CLIENT_DATA_DIR", PROJECT_ROOT / "data"))

SESSION_PATH = DATA_DIR / "session.json"
EXPRESSION_TEXTS_PATH = DATA_DIR / "expression_texts.json"

# Fixed storage keys inside SESSION_PATH
SESSION_TOKEN_KEY = "token"
SESSION_USERNAME_KEY = "username"

# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------

API_BASE_URL: str = os.getenv("CALC_API_URL", "http://localhost:8080").rstrip("/")

LOGIN_PATH = "/api/login"
REGISTER_PATH = "/api/register"
CALCULATE_PATH = "/api/calculate"
EXPRESSIONS_PATH = "/api/expressions"
# Formatted with the expression id
EXPRESSION_PATH = "/api/expression/{id}"
EXPRESSION_TASKS_PATH = "/api/expression/{id}/tasks"
RECALCULATE_PATH = "/api/expression/{id}/recalculate"

DEFAULT_HEADERS: dict[str, str] = {"Content-Type": "application/json"}

# HTTP request timeout in seconds; expiry surfaces as a network error
REQUEST_TIMEOUT_SECONDS: float = 30

# Both statuses invalidate the local session (one policy for every call site)
SESSION_INVALIDATING_STATUSES: frozenset[int] = frozenset({401, 403})

# ---------------------------------------------------------------------------
# Expression status values
# ---------------------------------------------------------------------------

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"
STATUS_UNKNOWN = "unknown"

# Statuses that keep a polling loop alive
RUNNING_STATUSES: frozenset[str] = frozenset({STATUS_PENDING, STATUS_PROCESSING})
TERMINAL_STATUSES: frozenset[str] = frozenset({STATUS_COMPLETED, STATUS_ERROR})

# ---------------------------------------------------------------------------
# Polling parameters
# ---------------------------------------------------------------------------

FIRST_POLL_DELAY_SECONDS: float = 1.0   # submit → first poll
POLL_INTERVAL_SECONDS: float = 2.0      # between consecutive polls
POLL_BACKOFF_FACTOR: float = 1.0        # 1.0 keeps a fixed interval
MAX_POLL_INTERVAL_SECONDS: float = 30.0
# 150 polls at 2 s ≈ 5 minutes before a loop gives up
MAX_POLL_ATTEMPTS: int = 150

# ---------------------------------------------------------------------------
# History listing
# ---------------------------------------------------------------------------

DEFAULT_PAGE_SIZE: int = 10
HISTORY_FILTER_KEYS: tuple[str, ...] = ("date_from", "date_to", "status")
# Filter value meaning "no status filter"
STATUS_FILTER_ALL = "all"

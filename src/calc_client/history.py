"""
Paginated, filtered retrieval of past expressions.

The service does not promise an order, so listings are sorted newest first
here.  When the service omits ``total`` the count of returned items stands
in for it; on a partial page that under-reports the true total and callers
must tolerate it.  A numeric string ``total`` counts as a number.
Numeric ``created_at`` values are Unix seconds.
"""

from __future__ import annotations

import math
import numbers

import pandas as pd

from .config import (
    DEFAULT_PAGE_SIZE,
    EXPRESSIONS_PATH,
    HISTORY_FILTER_KEYS,
    STATUS_FILTER_ALL,
)
from .errors import RequestError
from .executor import RequestExecutor
from .parser import normalize_expression

HISTORY_COLUMNS: list[str] = ["id", "expression", "status", "result", "created_at"]


def build_history_params(
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    filters: dict | None = None,
) -> dict:
    """
    Build the query parameters for one history page.

    Unset filters (``None``, empty string, or ``status='all'``) are left out
    entirely rather than sent empty.

    Args:
        page: 1-based page number.
        page_size: Items per page.
        filters: Optional ``date_from``, ``date_to`` and ``status`` values.

    Returns:
        Dict with ``offset``, ``limit`` and the set filters, in that order.
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    params: dict = {"offset": (page - 1) * page_size, "limit": page_size}
    for key in HISTORY_FILTER_KEYS:
        value = (filters or {}).get(key)
        if value in (None, ""):
            continue
        if key == "status" and value == STATUS_FILTER_ALL:
            continue
        params[key] = value
    return params


def total_pages(total_count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Number of pages needed for ``total_count`` items; at least 1."""
    return max(1, -(-total_count // page_size))


def _as_timestamp(value):
    """Numbers are Unix seconds; anything else is left for text parsing."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return value
    try:
        return pd.Timestamp(value, unit="s", tz="UTC")
    except (ValueError, OverflowError):
        return None


def parse_created_at(values) -> pd.Series:
    """Parse ``created_at`` values to UTC timestamps; unparseable become ``NaT``."""
    return pd.to_datetime(
        pd.Series([_as_timestamp(v) for v in values], dtype=object),
        errors="coerce",
        utc=True,
        format="mixed",
    )


def _server_total(total) -> int | None:
    if isinstance(total, str):
        try:
            total = float(total.strip())
        except ValueError:
            return None
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        return None
    if not math.isfinite(total) or total < 0:
        return None
    return int(total)


def sort_newest_first(items: list[dict]) -> list[dict]:
    """Order records by ``created_at`` descending; undated records last."""
    if not items:
        return []
    created = parse_created_at(item.get("created_at") for item in items)
    order = created.sort_values(ascending=False, na_position="last", kind="stable").index
    return [items[i] for i in order]


def list_expressions(
    executor: RequestExecutor,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    filters: dict | None = None,
) -> dict:
    """
    Fetch one page of the user's expression history.

    Args:
        executor: Executor bound to the current session.
        page: 1-based page number.
        page_size: Items per page.
        filters: Optional ``date_from``, ``date_to`` and ``status``.

    Returns:
        Dict with keys:
        - ``items``: normalized expression records, newest first
        - ``total_count``: server ``total``, else ``len(items)``
        - ``total_pages``: pages implied by ``total_count``

    Raises:
        RequestError: The call failed or the body is not an object.
    """
    params = build_history_params(page, page_size, filters)
    data = executor.get(EXPRESSIONS_PATH, params=params)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RequestError(RequestError.DECODE, "History response is not an object")

    raw_items = data.get("expressions") or []
    items = sort_newest_first([
        normalize_expression(item) for item in raw_items if isinstance(item, dict)
    ])

    total_count = _server_total(data.get("total"))
    if total_count is None:
        total_count = len(items)
    return {
        "items": items,
        "total_count": total_count,
        "total_pages": total_pages(total_count, page_size),
    }


def history_frame(items: list[dict]) -> pd.DataFrame:
    """
    Tabular view of history records for listing consumers.

    ``created_at`` is parsed to timezone-aware timestamps (unparseable
    values become ``NaT``) and rows are ordered newest first.
    """
    if not items:
        return pd.DataFrame(columns=HISTORY_COLUMNS)

    df = pd.DataFrame(items).reindex(columns=HISTORY_COLUMNS)
    df["created_at"] = parse_created_at(df["created_at"]).set_axis(df.index)
    return df.sort_values("created_at", ascending=False, na_position="last", kind="stable").reset_index(drop=True)

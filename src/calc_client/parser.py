"""
Response body decoding and record normalization.

No I/O occurs here; all functions are pure transformations of strings/dicts
to support easy unit testing.

The service's framing is unreliable: a body may hold two JSON objects back
to back, carry a leading byte-order mark, or be wrapped in stray text.
:func:`decode_body` tries a fixed sequence of strategies and reports which
one succeeded instead of raising.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .config import STATUS_UNKNOWN

BOM = "\ufeff"

# Markers of two JSON objects written into one body
CONCATENATION_MARKERS: tuple[str, ...] = ("}{", "}\n{")

SNIPPET_LENGTH = 200


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of :func:`decode_body`.

    ``method`` names the strategy that produced ``value``:
    ``'empty'``, ``'last_segment'``, ``'first_segment'``, ``'whole'`` or
    ``'cleaned_segment'``.  ``method`` is ``None`` when nothing parsed, in
    which case ``error`` holds the message of the whole-text attempt.
    """

    value: Any = None
    method: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.method is not None


def _try_json(text: str) -> tuple[bool, Any, str | None]:
    try:
        return True, json.loads(text), None
    except ValueError as exc:  # JSONDecodeError subclasses ValueError
        return False, None, str(exc)


def last_object_span(text: str) -> str | None:
    """Return the text from the last ``{`` to the last ``}`` inclusive."""
    start = text.rfind("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        return text[start:end]
    return None


def first_object_span(text: str) -> str | None:
    """Return the text from the first ``{`` to the first ``}`` inclusive."""
    start = text.find("{")
    end = text.find("}") + 1
    if start >= 0 and end > start:
        return text[start:end]
    return None


def looks_concatenated(text: str) -> bool:
    return any(marker in text for marker in CONCATENATION_MARKERS)


def strip_bom(text: str) -> str:
    """Drop one leading byte-order mark, then surrounding whitespace."""
    if text.startswith(BOM):
        text = text[len(BOM):]
    return text.strip()


def decode_body(text: str | None) -> DecodeResult:
    """
    Decode a response body, liberal in what it accepts.

    Strategies, first success wins:

    1. Empty body → ``None``.
    2. Body looks like concatenated documents → the last ``{...}`` span,
       then the first ``{...}`` span.
    3. The whole body as JSON.
    4. BOM and whitespace stripped → the first ``{...}`` span.

    Args:
        text: Raw response body.

    Returns:
        :class:`DecodeResult`; check ``ok`` before using ``value``.
    """
    if not text:
        return DecodeResult(None, "empty")

    if looks_concatenated(text):
        for method, span in (
            ("last_segment", last_object_span(text)),
            ("first_segment", first_object_span(text)),
        ):
            if span is None:
                continue
            parsed, value, _ = _try_json(span)
            if parsed:
                return DecodeResult(value, method)

    parsed, value, whole_error = _try_json(text)
    if parsed:
        return DecodeResult(value, "whole")

    span = first_object_span(strip_bom(text))
    if span is not None:
        parsed, value, _ = _try_json(span)
        if parsed:
            return DecodeResult(value, "cleaned_segment")

    return DecodeResult(error=whole_error)


def body_snippet(text: str | None, length: int = SNIPPET_LENGTH) -> str:
    """Leading part of a raw body for diagnostics."""
    if not text:
        return ""
    return text if len(text) <= length else text[:length] + "..."


# ---------------------------------------------------------------------------
# Record normalization
# ---------------------------------------------------------------------------

def normalize_status(raw: Any) -> str:
    """Lower-cased status string, or ``'unknown'`` when absent."""
    if raw is None:
        return STATUS_UNKNOWN
    status = str(raw).strip().lower()
    return status or STATUS_UNKNOWN


def normalize_expression(record: dict) -> dict:
    """
    Project a raw expression object onto the expression record keys.

    Missing optional fields become ``None``; unknown extra keys are dropped.
    """
    return {
        "id": record.get("id"),
        "expression": record.get("expression"),
        "status": normalize_status(record.get("status")),
        "result": record.get("result"),
        "created_at": record.get("created_at"),
    }


def normalize_task(record: dict) -> dict:
    return {
        "id": record.get("id"),
        "operation": record.get("operation"),
        "arg1": record.get("arg1"),
        "arg2": record.get("arg2"),
        "result": record.get("result"),
        "status": normalize_status(record.get("status")),
        "execution_time": record.get("execution_time"),
    }


def _id_sort_key(task: dict) -> tuple[int, Any]:
    # Numeric ids order numerically; anything else after them, as text
    task_id = task.get("id")
    try:
        return 0, float(task_id)
    except (TypeError, ValueError):
        return 1, str(task_id)


def sort_tasks(tasks: list[dict]) -> list[dict]:
    """Tasks ordered by ascending id."""
    return sorted(tasks, key=_id_sort_key)

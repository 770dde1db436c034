"""
Expression submission and single-expression queries.

Submitting only hands the expression to the service; the status loop that
follows it to a result lives in :mod:`.polling`.
"""

from __future__ import annotations

from .config import (
    CALCULATE_PATH,
    EXPRESSION_PATH,
    EXPRESSION_TASKS_PATH,
    RECALCULATE_PATH,
)
from .errors import RequestError, ValidationError
from .executor import RequestExecutor
from .parser import normalize_expression, normalize_task, sort_tasks
from .session import ExpressionTextStore


def submit_expression(
    executor: RequestExecutor,
    text: str,
    text_store: ExpressionTextStore | None = None,
):
    """
    Send an expression for evaluation and return its tracking id.

    Args:
        executor: Executor bound to the current session.
        text: Arithmetic expression, e.g. ``'3+3'``.  Surrounding
              whitespace is removed before sending.
        text_store: Optional local map that remembers the submitted text.

    Returns:
        Expression id as returned by the service.

    Raises:
        ValidationError: ``text`` is empty after trimming.
        RequestError: No active session (checked before sending), the call
                      failed, or the response carried no id.
    """
    expression = (text or "").strip()
    if not expression:
        raise ValidationError(ValidationError.EMPTY, "Expression is empty")

    if not executor.store.get().is_authenticated:
        raise RequestError(RequestError.UNAUTHENTICATED, "Not logged in")

    data = executor.post(CALCULATE_PATH, json={"expression": expression})
    expression_id = data.get("id") if isinstance(data, dict) else None
    if expression_id is None or expression_id == "":
        raise RequestError(RequestError.DECODE, "Service did not return an expression id")

    if text_store is not None:
        text_store.remember(expression_id, expression)
    return expression_id


def get_expression(executor: RequestExecutor, expression_id) -> dict:
    """
    Fetch one expression record.

    Raises:
        RequestError: The call failed or the body is not an object.
    """
    data = executor.get(EXPRESSION_PATH.format(id=expression_id))
    if not isinstance(data, dict):
        raise RequestError(
            RequestError.DECODE,
            f"No information returned for expression {expression_id}",
        )
    return normalize_expression(data)


# Polling reads the same endpoint; the separate name marks the call sites
poll_expression = get_expression


def get_expression_tasks(executor: RequestExecutor, expression_id) -> list[dict]:
    """Fetch the evaluation tasks of an expression, ordered by ascending id."""
    data = executor.get(EXPRESSION_TASKS_PATH.format(id=expression_id))
    tasks = data.get("tasks") if isinstance(data, dict) else None
    if not isinstance(tasks, list):
        return []
    return sort_tasks([normalize_task(t) for t in tasks if isinstance(t, dict)])


def recalculate_expression(executor: RequestExecutor, expression_id) -> None:
    """Ask the service to evaluate an existing expression again."""
    executor.post(RECALCULATE_PATH.format(id=expression_id))

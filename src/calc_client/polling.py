"""
Expression status polling state machine.

One :class:`PollHandle` follows one submitted expression through

    submitting → tracking → terminal

Polling is sequential: the next poll is scheduled only after the previous
one has returned, and only while the service reports ``pending`` or
``processing``.  Any other status ends the loop and fires the
``on_terminal`` hook once.  A poll that fails ends the loop too; the error
goes to the caller and nothing is retried here.

Unlike a self-rescheduling timer the loop is bounded: after
``max_attempts`` polls without a terminal status it raises
:class:`~.errors.PollLimitError`.  Pass ``max_attempts=None`` for an
unbounded loop.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .config import (
    FIRST_POLL_DELAY_SECONDS,
    MAX_POLL_ATTEMPTS,
    MAX_POLL_INTERVAL_SECONDS,
    POLL_BACKOFF_FACTOR,
    POLL_INTERVAL_SECONDS,
    RUNNING_STATUSES,
)
from .errors import PollLimitError, RequestError
from .executor import RequestExecutor
from .expressions import poll_expression, submit_expression
from .session import ExpressionTextStore

SUBMITTING = "submitting"
TRACKING = "tracking"
TERMINAL = "terminal"

StatusCallback = Callable[[dict], Any]


@dataclass
class PollHandle:
    """
    Client-side state of one polling loop.

    ``scheduled`` is true while exactly one further poll is due.  After
    :meth:`cancel` every remaining step is a no-op and no callback fires.
    """

    expression_id: Any = None
    attempt: int = 0
    scheduled: bool = False
    state: str = SUBMITTING
    cancelled: bool = False
    last_status: str | None = None
    record: dict | None = field(default=None, repr=False)
    error: Exception | None = None

    def cancel(self) -> None:
        self.cancelled = True
        self.scheduled = False

    @property
    def done(self) -> bool:
        return self.state == TERMINAL

    @property
    def result(self):
        return self.record.get("result") if self.record else None


def poll_step(
    executor: RequestExecutor,
    handle: PollHandle,
    on_status: StatusCallback | None = None,
    on_terminal: StatusCallback | None = None,
) -> str | None:
    """
    Run the one poll a handle has scheduled.

    Args:
        executor: Executor bound to the current session.
        handle: Handle in the ``tracking`` state.
        on_status: Called with every fetched record.
        on_terminal: Called once with the record that ended the loop.

    Returns:
        The polled status, or ``None`` if the handle was cancelled or had
        nothing scheduled.

    Raises:
        RequestError: The poll failed; the handle is terminal with
                      ``error`` set.
        Exception: Whatever ``on_status`` raised; the handle is terminal
                   with ``error`` set, and ``on_terminal`` still runs for a
                   terminal record.
    """
    if handle.cancelled or not handle.scheduled:
        return None

    handle.scheduled = False
    handle.attempt += 1
    try:
        record = poll_expression(executor, handle.expression_id)
    except RequestError as exc:
        handle.state = TERMINAL
        handle.error = exc
        print(f"  Expression {handle.expression_id}: status check failed [{exc.kind}]")
        raise

    # Consumer went away while the request was in flight
    if handle.cancelled:
        return None

    status = record["status"]
    handle.record = record
    handle.last_status = status
    print(f"  Expression {handle.expression_id}: {status} (poll {handle.attempt})")

    terminal = status not in RUNNING_STATUSES
    if terminal:
        handle.state = TERMINAL

    try:
        if on_status is not None:
            on_status(record)
    except Exception as exc:
        # A failing consumer ends tracking; nothing stays scheduled
        handle.state = TERMINAL
        handle.error = exc
        print(f"  Expression {handle.expression_id}: status callback failed: {exc}")
        raise
    finally:
        if terminal and on_terminal is not None and not handle.cancelled:
            on_terminal(record)

    if not terminal:
        # on_status may have cancelled the handle
        handle.scheduled = not handle.cancelled
    return status


def track_expression(
    executor: RequestExecutor,
    expression_id,
    *,
    first_delay: float = FIRST_POLL_DELAY_SECONDS,
    interval: float = POLL_INTERVAL_SECONDS,
    backoff: float = POLL_BACKOFF_FACTOR,
    max_interval: float = MAX_POLL_INTERVAL_SECONDS,
    max_attempts: int | None = MAX_POLL_ATTEMPTS,
    sleep: Callable[[float], Any] | None = None,
    on_status: StatusCallback | None = None,
    on_terminal: StatusCallback | None = None,
    handle: PollHandle | None = None,
) -> PollHandle:
    """
    Poll an expression until it reaches a terminal status.

    Waits ``first_delay`` before the first poll and ``interval`` between
    later ones; the interval is multiplied by ``backoff`` after each poll
    and capped at ``max_interval``.

    Args:
        executor: Executor bound to the current session.
        expression_id: Id returned by :func:`~.expressions.submit_expression`.
        first_delay: Seconds before the first poll.
        interval: Seconds between polls.
        backoff: Interval growth factor (1.0 keeps it fixed).
        max_interval: Upper bound on the interval.
        max_attempts: Poll bound, or ``None`` for no bound.
        sleep: Delay function, ``time.sleep`` by default.
        on_status: Called with every fetched record.
        on_terminal: Called once when the loop ends on a terminal status.
        handle: Existing handle to drive (e.g. one the consumer may cancel).

    Returns:
        The handle; ``handle.record`` holds the final snapshot.

    Raises:
        RequestError: A poll failed.
        PollLimitError: ``max_attempts`` polls without a terminal status.
    """
    if sleep is None:
        sleep = time.sleep
    if handle is None:
        handle = PollHandle(expression_id=expression_id)
    handle.expression_id = expression_id
    handle.state = TRACKING
    handle.scheduled = not handle.cancelled

    delay = first_delay
    wait = interval
    while handle.scheduled and not handle.cancelled:
        if max_attempts is not None and handle.attempt >= max_attempts:
            handle.scheduled = False
            handle.state = TERMINAL
            handle.error = PollLimitError(expression_id, handle.attempt, handle.last_status)
            raise handle.error

        sleep(delay)
        poll_step(executor, handle, on_status=on_status, on_terminal=on_terminal)

        delay = wait
        wait = min(wait * backoff, max_interval)

    return handle


def submit_and_track(
    executor: RequestExecutor,
    text: str,
    text_store: ExpressionTextStore | None = None,
    handle: PollHandle | None = None,
    **track_kwargs,
) -> PollHandle:
    """
    Submit an expression and follow it to a terminal status.

    ``track_kwargs`` are passed to :func:`track_expression`.

    Raises:
        ValidationError: Empty expression.
        RequestError: Submission or a poll failed.
        PollLimitError: The poll bound was reached.
    """
    if handle is None:
        handle = PollHandle()
    handle.state = SUBMITTING
    try:
        expression_id = submit_expression(executor, text, text_store=text_store)
    except RequestError as exc:
        handle.state = TERMINAL
        handle.error = exc
        raise

    print(f"  Submitted expression {expression_id}")
    return track_expression(executor, expression_id, handle=handle, **track_kwargs)

"""
src/calc_client: client for the asynchronous calculation service.

Module layout
-------------
config.py      : base URL, endpoint paths, polling parameters, storage paths
errors.py      : ValidationError, RequestError kinds, PollLimitError
session.py     : durable session store and local expression-text map
parser.py      : layered response decoding, record normalization
executor.py    : header merge, request execution, session invalidation
auth.py        : login, registration, logout
expressions.py : submission, expression/task queries, recalculation
polling.py     : per-expression polling state machine
history.py     : paginated, filtered history listing
runner.py      : command-line front end

Public interface
----------------
Set up a client bound to the stored session:
    store = SessionStore()
    executor = RequestExecutor(store)

Authenticate:
    login(executor, username, password)
    logout(store)

Evaluate an expression and wait for the result:
    handle = submit_and_track(executor, "3+3")
    handle.result

Browse history:
    list_expressions(executor, page=1, filters={"status": "error"})
"""

from .auth import login, logout, register
from .errors import PollLimitError, RequestError, ValidationError
from .executor import RequestExecutor
from .expressions import (
    get_expression,
    get_expression_tasks,
    recalculate_expression,
    submit_expression,
)
from .history import history_frame, list_expressions
from .polling import PollHandle, submit_and_track, track_expression
from .session import ExpressionTextStore, Session, SessionStore

__all__ = [
    # Session
    "Session",
    "SessionStore",
    "ExpressionTextStore",
    "RequestExecutor",
    # Auth
    "login",
    "register",
    "logout",
    # Expressions
    "submit_expression",
    "get_expression",
    "get_expression_tasks",
    "recalculate_expression",
    "PollHandle",
    "track_expression",
    "submit_and_track",
    # History
    "list_expressions",
    "history_frame",
    # Errors
    "ValidationError",
    "RequestError",
    "PollLimitError",
]

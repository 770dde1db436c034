"""
Shared pytest fixtures for the calculation client tests.

No test touches the network: the executor is built around a ``MagicMock``
standing in for ``requests.Session``, and responses are ``MagicMock``
objects carrying only ``status_code`` and ``text`` (the two attributes the
executor reads).
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from src.calc_client.executor import RequestExecutor
from src.calc_client.session import ExpressionTextStore, SessionStore

BASE_URL = "http://calc.test"
TOKEN = "tok-123"


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def make_response(status: int = 200, body=None) -> MagicMock:
    """
    Fake ``requests.Response``.

    ``body`` may be a raw string (sent as-is), ``None`` (empty body), or any
    JSON-serializable value.
    """
    response = MagicMock()
    response.status_code = status
    if body is None:
        response.text = ""
    elif isinstance(body, str):
        response.text = body
    else:
        response.text = json.dumps(body)
    return response


def sent_calls(http: MagicMock) -> list[dict]:
    """Flatten recorded ``http.request`` calls into dicts."""
    calls = []
    for call in http.request.call_args_list:
        method, url = call.args
        calls.append({"method": method, "url": url, **call.kwargs})
    return calls


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store(tmp_path) -> SessionStore:
    """Empty session store backed by a temp file."""
    return SessionStore(tmp_path / "session.json")


@pytest.fixture
def logged_in_store(store) -> SessionStore:
    store.set(TOKEN, "alice")
    return store


@pytest.fixture
def text_store(tmp_path) -> ExpressionTextStore:
    return ExpressionTextStore(tmp_path / "expression_texts.json")


@pytest.fixture
def http() -> MagicMock:
    """Stand-in for ``requests.Session``; returns an empty 200 by default."""
    fake = MagicMock()
    fake.request.return_value = make_response(200, None)
    return fake


@pytest.fixture
def executor(store, http) -> RequestExecutor:
    return RequestExecutor(store, base_url=BASE_URL, http=http, timeout=5)


@pytest.fixture
def authed_executor(logged_in_store, http) -> RequestExecutor:
    return RequestExecutor(logged_in_store, base_url=BASE_URL, http=http, timeout=5)

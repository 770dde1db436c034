"""
Unit tests for src/calc_client/auth.py.

Covers login success/failure session transitions, local validation that
short-circuits the network, and idempotent logout.
"""

from __future__ import annotations

import pytest

from src.calc_client.auth import login, logout, register
from src.calc_client.errors import RequestError, ValidationError
from src.calc_client.session import Session

from .conftest import BASE_URL, TOKEN, make_response, sent_calls


class TestLogin:

    def test_success_stores_token_and_supplied_username(self, executor, http):
        http.request.return_value = make_response(200, {"token": "new-token"})
        session = login(executor, "alice", "pw")
        assert session == Session("new-token", "alice")
        assert executor.store.get() == Session("new-token", "alice")

    def test_posts_credentials(self, executor, http):
        http.request.return_value = make_response(200, {"token": "t"})
        login(executor, "alice", "pw")
        call = sent_calls(http)[0]
        assert call["method"] == "POST"
        assert call["url"] == f"{BASE_URL}/api/login"
        assert call["json"] == {"username": "alice", "password": "pw"}

    def test_rejected_credentials_leave_store_untouched(self, authed_executor, http):
        http.request.return_value = make_response(401, {"error": "bad password"})
        with pytest.raises(RequestError) as exc_info:
            login(authed_executor, "bob", "wrong")
        assert exc_info.value.kind == RequestError.UNAUTHENTICATED
        assert authed_executor.store.get() == Session(TOKEN, "alice")

    def test_server_error_leaves_store_untouched(self, executor, http):
        http.request.return_value = make_response(500)
        with pytest.raises(RequestError):
            login(executor, "alice", "pw")
        assert executor.store.get() == Session()

    def test_missing_token_in_response(self, executor, http):
        http.request.return_value = make_response(200, {"message": "ok"})
        with pytest.raises(RequestError) as exc_info:
            login(executor, "alice", "pw")
        assert exc_info.value.kind == RequestError.DECODE
        assert not executor.store.get().is_authenticated

    def test_concatenated_login_body(self, executor, http):
        http.request.return_value = make_response(200, '{"status":"ok"}{"token":"t2"}')
        assert login(executor, "alice", "pw").token == "t2"

    @pytest.mark.parametrize("username, password", [("", "pw"), ("alice", "")])
    def test_empty_fields_fail_locally(self, executor, http, username, password):
        with pytest.raises(ValidationError) as exc_info:
            login(executor, username, password)
        assert exc_info.value.reason == ValidationError.MISSING_CREDENTIALS
        http.request.assert_not_called()


class TestRegister:

    def test_mismatched_passwords_fail_locally(self, executor, http):
        with pytest.raises(ValidationError) as exc_info:
            register(executor, "alice", "pw1", "pw2")
        assert exc_info.value.reason == ValidationError.MISMATCHED_PASSWORDS
        http.request.assert_not_called()

    def test_success_posts_and_does_not_log_in(self, executor, http):
        http.request.return_value = make_response(201, None)
        register(executor, "alice", "pw", "pw")
        call = sent_calls(http)[0]
        assert call["url"] == f"{BASE_URL}/api/register"
        assert call["json"] == {"username": "alice", "password": "pw"}
        assert not executor.store.get().is_authenticated

    def test_conflict_surfaces_server_error(self, executor, http):
        http.request.return_value = make_response(409, {"error": "exists"})
        with pytest.raises(RequestError) as exc_info:
            register(executor, "alice", "pw", "pw")
        assert exc_info.value.status == 409

    def test_empty_username_fails_locally(self, executor, http):
        with pytest.raises(ValidationError):
            register(executor, "", "pw", "pw")
        http.request.assert_not_called()


class TestLogout:

    def test_clears_session(self, logged_in_store):
        logout(logged_in_store)
        assert logged_in_store.get() == Session()

    def test_idempotent(self, logged_in_store):
        logout(logged_in_store)
        first = logged_in_store.get()
        logout(logged_in_store)
        assert logged_in_store.get() == first

    def test_no_network(self, authed_executor, http):
        logout(authed_executor.store)
        http.request.assert_not_called()

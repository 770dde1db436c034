"""
Tests for the command-line front end in src/calc_client/runner.py.

Each command runs against the mocked HTTP session; failures must come back
as exit status 1 with a printed message, never as a traceback.
"""

from __future__ import annotations

from unittest.mock import patch

from src.calc_client.runner import main

from .conftest import make_response


class TestRunner:

    def test_login_then_state_persisted(self, executor, http, text_store):
        http.request.return_value = make_response(200, {"token": "t"})
        assert main(["login", "alice", "pw"], executor=executor, texts=text_store) == 0
        assert executor.store.get().username == "alice"

    def test_calc_prints_result(self, authed_executor, http, text_store, capsys):
        http.request.side_effect = [
            make_response(201, {"id": 7}),
            make_response(200, {"id": 7, "status": "completed", "result": 6}),
        ]
        with patch("src.calc_client.polling.time.sleep") as fake_sleep:
            code = main(["calc", "3+3"], executor=authed_executor, texts=text_store)
        assert code == 0
        assert fake_sleep.call_count == 1
        assert "Result: 6 (completed)" in capsys.readouterr().out
        assert text_store.lookup(7) == "3+3"

    def test_validation_error_exit_code(self, authed_executor, http, text_store, capsys):
        code = main(["register", "alice", "a", "b"], executor=authed_executor, texts=text_store)
        assert code == 1
        assert "Passwords do not match" in capsys.readouterr().out
        http.request.assert_not_called()

    def test_unauthenticated_hint(self, authed_executor, http, text_store, capsys):
        http.request.return_value = make_response(401)
        code = main(["history"], executor=authed_executor, texts=text_store)
        assert code == 1
        assert "log in again" in capsys.readouterr().out

    def test_history_table(self, authed_executor, http, text_store, capsys):
        http.request.return_value = make_response(200, {"expressions": [
            {"id": 1, "expression": "1+1", "status": "completed", "result": 2,
             "created_at": "2026-01-01T00:00:00Z"},
        ], "total": 1})
        assert main(["history", "--status", "completed"], executor=authed_executor, texts=text_store) == 0
        out = capsys.readouterr().out
        assert "1+1" in out
        assert "Page 1 of 1 (1 total)" in out

    def test_show_uses_local_text_when_missing(self, authed_executor, http, text_store, capsys):
        text_store.remember(9, "8/2")
        http.request.side_effect = [
            make_response(200, {"id": 9, "status": "pending"}),
            make_response(200, {"tasks": []}),
        ]
        assert main(["show", "9"], executor=authed_executor, texts=text_store) == 0
        out = capsys.readouterr().out
        assert "Expression 9: 8/2" in out
        assert "No tasks" in out

    def test_logout(self, authed_executor, text_store):
        assert main(["logout"], executor=authed_executor, texts=text_store) == 0
        assert not authed_executor.store.get().is_authenticated

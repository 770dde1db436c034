"""
Unit tests for src/calc_client/session.py.

Covers session persistence across store instances (a "page reload"),
tolerance of missing/corrupt files, idempotent clearing, and the local
expression-text map.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from src.calc_client.session import ExpressionTextStore, Session, SessionStore


class TestSessionStore:

    def test_empty_by_default(self, store):
        session = store.get()
        assert session == Session(None, None)
        assert not session.is_authenticated

    def test_set_then_get(self, store):
        store.set("abc", "alice")
        assert store.get() == Session("abc", "alice")
        assert store.get().is_authenticated

    def test_survives_reload(self, tmp_path):
        path = tmp_path / "session.json"
        SessionStore(path).set("abc", "alice")
        assert SessionStore(path).get() == Session("abc", "alice")

    def test_persisted_under_fixed_keys(self, store):
        store.set("abc", "alice")
        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data == {"token": "abc", "username": "alice"}

    def test_clear(self, store):
        store.set("abc", "alice")
        store.clear()
        assert store.get() == Session()
        assert not store.path.exists()

    def test_clear_twice_same_as_once(self, store):
        store.set("abc", "alice")
        store.clear()
        once = store.get()
        store.clear()
        assert store.get() == once
        assert not store.path.exists()

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")
        assert SessionStore(path).get() == Session()

    def test_non_object_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert not SessionStore(path).get().is_authenticated

    def test_token_shape_not_validated(self, store):
        store.set("x", None)
        assert store.get().is_authenticated

    def test_failed_write_keeps_previous_session(self, store):
        store.set("old", "alice")
        with patch("src.calc_client.session._write_json", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.set("new", "bob")
        assert store.get() == Session("old", "alice")


class TestExpressionTextStore:

    def test_remember_and_lookup(self, text_store):
        text_store.remember(5, "3+3")
        assert text_store.lookup(5) == "3+3"
        assert text_store.lookup("5") == "3+3"

    def test_unknown_id(self, text_store):
        assert text_store.lookup(99) is None

    def test_survives_reload(self, tmp_path):
        path = tmp_path / "texts.json"
        ExpressionTextStore(path).remember("a1", "2*2")
        assert ExpressionTextStore(path).lookup("a1") == "2*2"

    def test_forget_all(self, text_store):
        text_store.remember(1, "1+1")
        text_store.forget_all()
        assert len(text_store) == 0
        assert text_store.lookup(1) is None

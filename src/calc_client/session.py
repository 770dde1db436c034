"""
Durable session state: the bearer token, the display username, and the
local expression-text map.

Both stores are small JSON files under ``data/`` so that a restarted client
picks up where it left off.  A missing or unreadable file reads as empty
state; nothing here validates token shape, only server responses decide
whether a token is still good.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from .config import (
    EXPRESSION_TEXTS_PATH,
    SESSION_PATH,
    SESSION_TOKEN_KEY,
    SESSION_USERNAME_KEY,
)


@dataclass(frozen=True)
class Session:
    token: str | None = None
    username: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


class SessionStore:
    """
    Owner of the current :class:`Session`.

    Mutated only through :meth:`set` (login) and :meth:`clear` (logout or an
    invalidating response seen by the executor).  Every read goes to the
    in-memory copy, so a clear is visible to the very next request.
    """

    def __init__(self, path: Path = SESSION_PATH) -> None:
        self.path = Path(path)
        data = _read_json(self.path)
        self._session = Session(
            token=data.get(SESSION_TOKEN_KEY) or None,
            username=data.get(SESSION_USERNAME_KEY) or None,
        )

    def get(self) -> Session:
        return self._session

    def set(self, token: str, username: str | None) -> Session:
        # Disk first, so a failed write leaves the previous session in place
        _write_json(self.path, {
            SESSION_TOKEN_KEY: token,
            SESSION_USERNAME_KEY: username,
        })
        self._session = Session(token=token, username=username)
        return self._session

    def clear(self) -> None:
        self._session = Session()
        if self.path.exists():
            self.path.unlink()


class ExpressionTextStore:
    """Local id → submitted text map, used only for display convenience."""

    def __init__(self, path: Path = EXPRESSION_TEXTS_PATH) -> None:
        self.path = Path(path)
        self._texts: dict[str, str] = {
            str(k): v for k, v in _read_json(self.path).items() if isinstance(v, str)
        }

    def remember(self, expression_id, text: str) -> None:
        self._texts[str(expression_id)] = text
        _write_json(self.path, self._texts)

    def lookup(self, expression_id) -> str | None:
        return self._texts.get(str(expression_id))

    def forget_all(self) -> None:
        self._texts = {}
        if self.path.exists():
            self.path.unlink()

    def __len__(self) -> int:
        return len(self._texts)

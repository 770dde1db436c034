"""
Login, registration and logout.

Session transitions happen only here and in the executor's invalidation
path.  Input checks run before anything is sent.
"""

from __future__ import annotations

from .config import LOGIN_PATH, REGISTER_PATH
from .errors import RequestError, ValidationError
from .executor import RequestExecutor
from .session import Session, SessionStore


def _require_credentials(username: str, password: str) -> None:
    if not username or not password:
        raise ValidationError(
            ValidationError.MISSING_CREDENTIALS,
            "Username and password are required",
        )


def login(executor: RequestExecutor, username: str, password: str) -> Session:
    """
    Authenticate and store the returned token.

    The stored username is the one the caller supplied; the service only
    returns a token.  On any failure the session store is left as it was.

    Args:
        executor: Executor bound to the session store to update.
        username: Login name.
        password: Plain-text password.

    Returns:
        The new :class:`Session`.

    Raises:
        ValidationError: Username or password is empty.
        RequestError: The call failed, or the response carried no token.
    """
    _require_credentials(username, password)

    data = executor.post(
        LOGIN_PATH,
        json={"username": username, "password": password},
        authenticated=False,
    )
    token = data.get("token") if isinstance(data, dict) else None
    if not token:
        raise RequestError(RequestError.DECODE, "Login response did not include a token")

    session = executor.store.set(token, username)
    print(f"  Logged in as {username}")
    return session


def register(
    executor: RequestExecutor,
    username: str,
    password: str,
    password_confirm: str,
) -> None:
    """
    Create an account.  Does not log in afterwards.

    Raises:
        ValidationError: Empty fields, or the confirmation does not match.
        RequestError: The service rejected the registration.
    """
    _require_credentials(username, password)
    if password != password_confirm:
        raise ValidationError(
            ValidationError.MISMATCHED_PASSWORDS,
            "Passwords do not match",
        )

    executor.post(
        REGISTER_PATH,
        json={"username": username, "password": password},
        authenticated=False,
    )
    print(f"  Registered {username}; log in to continue")


def logout(store: SessionStore) -> None:
    """Forget the local session.  Safe to call when already logged out."""
    store.clear()

"""
Request construction and resilient execution against the calculation service.

Every call to the service goes through :class:`RequestExecutor`:

- caller headers are merged with the defaults and, when a session is
  active, the ``Authorization: Bearer`` header (keys are merged, never
  replaced wholesale);
- requests are sent through a ``requests.Session`` so server cookies ride
  along with the bearer token on every call;
- a 401/403 clears the injected :class:`~.session.SessionStore` before the
  error reaches the caller, so no later request can reuse a stale token;
- bodies are read as text and decoded by :func:`parser.decode_body`.

There is no retry at this layer.  Every failure is raised as a
:class:`~.errors.RequestError` and the caller decides what to do with it.
"""

from __future__ import annotations

from typing import Any

import requests

from .config import (
    API_BASE_URL,
    DEFAULT_HEADERS,
    REQUEST_TIMEOUT_SECONDS,
    SESSION_INVALIDATING_STATUSES,
)
from .errors import RequestError
from .parser import body_snippet, decode_body
from .session import SessionStore


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def merge_headers(
    defaults: dict | None,
    caller: dict | None,
    token: str | None,
) -> dict:
    """
    Build the header set for one request.

    Later sources win on key collisions: defaults, then caller headers,
    then the bearer header.  No source is dropped because another is
    present.

    Args:
        defaults: Headers sent with every request.
        caller: Headers supplied for this request.
        token: Current session token, or ``None``.

    Returns:
        New dict of HTTP header name → value pairs.
    """
    merged = dict(defaults or {})
    merged.update(caller or {})
    if token:
        merged["Authorization"] = f"Bearer {token}"
    return merged


def build_url(base_url: str, path: str) -> str:
    """Join the service base URL and an endpoint path."""
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class RequestExecutor:
    """
    Sends requests on behalf of one session.

    Args:
        store: Session store read for the token on every request and
               cleared on an invalidating response.
        base_url: Service root, e.g. ``http://localhost:8080``.
        http: ``requests.Session`` to send through; a fresh one by default.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        store: SessionStore,
        base_url: str = API_BASE_URL,
        http: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.store = store
        self.base_url = base_url
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
        headers: dict | None = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Execute one request and return the decoded body.

        Args:
            method: HTTP method, e.g. ``'GET'``.
            path: Endpoint path (or absolute URL).
            json: JSON-serializable request body.
            params: Query-string parameters.
            headers: Extra headers, merged with defaults and credentials.
            authenticated: Attach the session token and treat 401/403 as
                           session invalidation.  Login and registration
                           pass ``False``: a rejected password says nothing
                           about the stored session.

        Returns:
            Decoded JSON value, or ``None`` for an empty body.

        Raises:
            RequestError: ``network`` on transport failure,
                ``unauthenticated`` on 401/403, ``server`` on any other
                non-2xx status, ``decode`` when no strategy parses the body.
        """
        method = method.upper()
        token = self.store.get().token if authenticated else None
        merged = merge_headers(DEFAULT_HEADERS, headers, token)
        url = build_url(self.base_url, path)

        try:
            response = self.http.request(
                method,
                url,
                headers=merged,
                json=json,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise self._fail(method, path, RequestError(RequestError.NETWORK, str(exc))) from exc

        status = response.status_code

        if status in SESSION_INVALIDATING_STATUSES:
            if authenticated:
                self.store.clear()
            raise self._fail(method, path, RequestError(
                RequestError.UNAUTHENTICATED,
                f"Authentication required (HTTP {status})",
                status=status,
            ))

        if not 200 <= status < 300:
            raise self._fail(method, path, RequestError(
                RequestError.SERVER,
                f"Server error: {status}",
                status=status,
            ))

        text = response.text
        decoded = decode_body(text)
        if not decoded.ok:
            raise self._fail(method, path, RequestError(
                RequestError.DECODE,
                f"Could not parse server response: {decoded.error}",
                status=status,
                snippet=body_snippet(text),
            ))

        if decoded.method not in ("whole", "empty"):
            print(f"  {method} {path}: body decoded via {decoded.method}")
        return decoded.value

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    @staticmethod
    def _fail(method: str, path: str, error: RequestError) -> RequestError:
        print(f"  Request {method} {path} failed [{error.kind}]: {str(error)[:120]}")
        return error

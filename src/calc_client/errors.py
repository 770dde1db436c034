"""
Error taxonomy for the calculation service client.

Two families:

- ``ValidationError``: bad local input, raised before anything is sent.
- ``RequestError``: a call to the service failed; ``kind`` says how.

Kinds drive caller decisions: ``network`` failures may be resubmitted by
the caller (the executor itself never retries); ``unauthenticated`` has
already cleared the local session by the time the caller sees it.
"""

from __future__ import annotations


class ValidationError(ValueError):
    """Local input rejected before any network call."""

    EMPTY = "empty"
    MISMATCHED_PASSWORDS = "mismatched_passwords"
    MISSING_CREDENTIALS = "missing_credentials"

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or reason.replace("_", " "))


class RequestError(Exception):
    """
    A request to the service failed.

    Attributes:
        kind: One of the category constants below.
        status: HTTP status code for ``server``/``unauthenticated`` errors.
        snippet: Leading part of the raw body for ``decode`` errors.
    """

    NETWORK = "network"
    UNAUTHENTICATED = "unauthenticated"
    SERVER = "server"
    DECODE = "decode"

    # Failures a caller may reasonably resubmit
    RETRIABLE: frozenset[str] = frozenset({NETWORK})

    def __init__(
        self,
        kind: str,
        message: str = "",
        status: int | None = None,
        snippet: str | None = None,
    ) -> None:
        self.kind = kind
        self.status = status
        self.snippet = snippet
        super().__init__(message or kind)

    @property
    def retriable(self) -> bool:
        return self.kind in self.RETRIABLE

    def __repr__(self) -> str:
        return f"RequestError(kind={self.kind!r}, status={self.status!r}, message={str(self)!r})"


class PollLimitError(RequestError):
    """A polling loop used up its attempt bound without a terminal status."""

    LIMIT = "poll_limit"

    def __init__(self, expression_id, attempts: int, last_status: str | None) -> None:
        self.expression_id = expression_id
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            self.LIMIT,
            f"Expression {expression_id} still '{last_status}' after {attempts} polls",
        )

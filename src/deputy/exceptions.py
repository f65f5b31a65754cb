"""Exception hierarchy and machine error taxonomy for deputy.

All errors raised on purpose by deputy inherit from :class:`DeputyError`,
which may carry an :class:`ErrorKind`. Commands never pick exit codes
themselves: they raise, and the entry point in :func:`deputy.app.main`
hands the exception to :func:`deputy.exit_codes.classify` and
:mod:`deputy.error_format`.

Subclass hierarchy::

    DeputyError                 (kind set per instance or None)
    +-- APIError                (kind from upstream code / HTTP status)
    +-- InvalidInputError       (INVALID_INPUT, or INVALID_FLAG)
    +-- EmptyResultError        (NOT_FOUND -- the --fail-empty sentinel)
    +-- NetworkError            (NETWORK_ERROR)
    +-- RequestTimeoutError     (TIMEOUT)
    +-- ConfigError             (INVALID_INPUT)
        +-- CredentialsError    (AUTH_REQUIRED)

Errors may be wrapped (``raise RuntimeError(...) from api_error``);
:func:`find_error` walks the explicit ``__cause__`` chain to recover them.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, TypeVar


class ErrorKind(str, Enum):
    """Transport-independent error codes used in the JSON error envelope."""

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_FORBIDDEN = "AUTH_FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION_FAILED"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_FLAG = "INVALID_FLAG"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


def code_from_status(status: int) -> ErrorKind:
    """Derive an :class:`ErrorKind` from an HTTP status code.

    Args:
        status: HTTP status code returned by the API.

    Returns:
        The matching error kind. Unlisted 4xx statuses map to
        ``INVALID_INPUT``; every 5xx maps to ``SERVER_ERROR``.
    """
    if status == 401:
        return ErrorKind.AUTH_REQUIRED
    if status == 403:
        return ErrorKind.AUTH_FORBIDDEN
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 408:
        return ErrorKind.TIMEOUT
    if status == 409:
        return ErrorKind.CONFLICT
    if status == 422:
        return ErrorKind.VALIDATION
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.INVALID_INPUT


def is_retryable(status: int) -> bool:
    """Return ``True`` when a request failing with *status* may be retried."""
    return status in (408, 429) or status >= 500


class DeputyError(Exception):
    """Base exception for all deputy errors.

    Args:
        message: Human-readable error description.
        kind: Optional override for the class-level :attr:`kind`.
    """

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class APIError(DeputyError):
    """A structured error response from the Deputy API.

    Args:
        status_code: HTTP status of the failed response.
        message: Message extracted from the response body (or a generic
            per-status message).
        code: Machine code supplied by the API, if any. When absent the
            code is derived from *status_code*.
        retryable: Whether repeating the request may succeed.
        retry_after: Seconds to wait before retrying (``0`` when unknown).
        field: Name of the offending input field, when the API reports one.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        retryable: bool = False,
        retry_after: int = 0,
        field: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.retryable = retryable
        self.retry_after = retry_after
        self.field = field

    def __str__(self) -> str:
        return f"API error {self.status_code}: {self.message}"

    @property
    def effective_code(self) -> str:
        """The upstream code, or the code derived from the HTTP status."""
        return self.code or code_from_status(self.status_code).value


class InvalidInputError(DeputyError):
    """Raised for bad flags, bad arguments, bad output settings or queries."""

    kind = ErrorKind.INVALID_INPUT


class EmptyResultError(DeputyError):
    """Sentinel raised when ``--fail-empty`` is set and a JSON result is empty.

    Classified exactly like "resource not found": for automation, "no rows
    matched" and "resource does not exist" are the same failure signal.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "empty result") -> None:
        super().__init__(message)


class NetworkError(DeputyError):
    """Raised on connection-level failures (refused, DNS, reset)."""

    kind = ErrorKind.NETWORK_ERROR


class RequestTimeoutError(DeputyError):
    """Raised when the API does not answer within the configured timeout."""

    kind = ErrorKind.TIMEOUT


class ConfigError(DeputyError):
    """Raised for configuration problems (incomplete environment, bad values)."""

    kind = ErrorKind.INVALID_INPUT


class CredentialsError(ConfigError):
    """Raised when no API credentials can be found."""

    kind = ErrorKind.AUTH_REQUIRED


E = TypeVar("E", bound=BaseException)


def find_error(exc: Optional[BaseException], cls: type[E]) -> Optional[E]:
    """Return the first exception of type *cls* in the ``__cause__`` chain.

    Args:
        exc: The outermost exception (may be ``None``).
        cls: Exception type to look for.

    Returns:
        The matching exception, or ``None`` if the chain holds none.
    """
    seen: set[int] = set()
    current = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, cls):
            return current
        seen.add(id(current))
        current = current.__cause__
    return None


def find_kind(exc: Optional[BaseException]) -> Optional[ErrorKind]:
    """Return the first :class:`ErrorKind` carried in the ``__cause__`` chain.

    Wrapping errors without a kind of their own are skipped.
    """
    seen: set[int] = set()
    current = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, DeputyError) and current.kind is not None:
            return current.kind
        seen.add(id(current))
        current = current.__cause__
    return None

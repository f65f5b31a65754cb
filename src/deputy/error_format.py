"""Human and machine renderings of a failed invocation.

:func:`format_error` produces the text written after ``Error:`` in text
mode; :func:`format_error_json` produces the ``{"error": {...}}`` envelope
written in JSON mode. Both share the status hint table in
:func:`hint_for_status`. With ``--debug`` both drop the hints and show the
error's own message.
"""

from __future__ import annotations

from typing import Optional

from deputy.exceptions import APIError, ErrorKind, find_error, find_kind
from deputy.models import ErrorDetail, ErrorEnvelope

_DEBUG_SUFFIX = "Use --debug for details. Avoid piping stderr into jq (omit 2>&1)."

_STATUS_HINTS: dict[int, str] = {
    400: "Check field names match the resource schema (use 'deputy resource info <Resource>')",
    401: "Re-authenticate: check DEPUTY_TOKEN, then run 'deputy auth test'",
    403: "Check role permissions for this endpoint",
    404: "Resource not found, try 'deputy resource list' to verify names",
    409: "Conflict with existing data, verify the resource state",
    412: "Precondition failed. Try 'deputy auth test' to verify credentials",
    417: "Data format error. Check JSON structure (arrays vs objects)",
    422: "Validation failed, check required fields and formats",
    429: "Rate limited, wait and retry",
}

# Hints for text mode, keyed by a substring of the (non-API) error message.
_TEXT_HINTS: tuple[tuple[str, str], ...] = (
    ("invalid jq query", "Check the --query expression or drop it. Use -o json for machine output."),
    ("unknown flag", "Run --help to see valid flags for this command."),
    ("invalid --output", "Use --output text or --output json."),
)
_TEXT_DEFAULT_HINT = "Use --debug for full details."

_JSON_QUERY_HINT = "Check the --query expression"
_JSON_KIND_HINTS: dict[ErrorKind, str] = {
    ErrorKind.INVALID_FLAG: "Run --help to see valid flags",
    ErrorKind.NETWORK_ERROR: "Check network connection",
    ErrorKind.TIMEOUT: "Request timed out, retry",
    ErrorKind.AUTH_REQUIRED: "Set DEPUTY_TOKEN and DEPUTY_INSTALL (or DEPUTY_BASE_URL)",
}

_RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK_ERROR, ErrorKind.TIMEOUT})


def hint_for_status(status: int) -> str:
    """Return the remediation hint for an HTTP *status*, or ``""``."""
    hint = _STATUS_HINTS.get(status)
    if hint is not None:
        return hint
    if status >= 500:
        return "Server error, retry later"
    return ""


def format_error(err: Optional[BaseException], debug: bool = False) -> str:
    """Render *err* for a human reader.

    Args:
        err: The error that ended the invocation.
        debug: When ``True``, return ``str(err)`` unchanged.

    Returns:
        The message followed by a ``Hint:`` line, or ``""`` for ``None``.
    """
    if err is None:
        return ""
    if debug:
        return str(err)

    api_err = find_error(err, APIError)
    if api_err is not None:
        text = str(api_err)
        hint = hint_for_status(api_err.status_code)
        if hint:
            return f"{text}\nHint: {hint}. {_DEBUG_SUFFIX}"
        return f"{text}\nHint: {_DEBUG_SUFFIX}"

    text = str(err)
    for phrase, hint in _TEXT_HINTS:
        if phrase in text:
            return f"{text}\nHint: {hint}"
    return f"{text}\nHint: {_TEXT_DEFAULT_HINT}"


def format_error_json(err: Optional[BaseException], debug: bool = False) -> str:
    """Render *err* as a compact ``{"error": {...}}`` document.

    API errors contribute their status, code (derived from the status when
    the API sent none), retry metadata and field. Other errors take the code
    of their :class:`~deputy.exceptions.ErrorKind` when they carry one, else
    the code implied by their message, defaulting to ``INVALID_INPUT``.

    Args:
        err: The error that ended the invocation.
        debug: When ``True``, the hint is omitted.

    Returns:
        The serialised envelope, or ``""`` for ``None``.
    """
    if err is None:
        return ""

    api_err = find_error(err, APIError)
    if api_err is not None:
        detail = ErrorDetail(
            code=api_err.effective_code,
            status=api_err.status_code,
            message=api_err.message,
            retryable=api_err.retryable,
            retry_after=api_err.retry_after or None,
            field=api_err.field or None,
            hint=hint_for_status(api_err.status_code) or None,
        )
    else:
        detail = _detail_for(err)

    if debug:
        detail = detail.model_copy(update={"hint": None})
    return ErrorEnvelope(error=detail).to_json()


def _kind_from_message(message: str) -> Optional[ErrorKind]:
    lowered = message.lower()
    if "unknown flag" in lowered:
        return ErrorKind.INVALID_FLAG
    if "connection refused" in lowered or "no such host" in lowered:
        return ErrorKind.NETWORK_ERROR
    if "timeout" in lowered:
        return ErrorKind.TIMEOUT
    return None


def _detail_for(err: BaseException) -> ErrorDetail:
    message = str(err)
    kind = find_kind(err) or _kind_from_message(message) or ErrorKind.INVALID_INPUT

    if "invalid jq query" in message:
        hint: Optional[str] = _JSON_QUERY_HINT
    else:
        hint = _JSON_KIND_HINTS.get(kind)

    return ErrorDetail(
        code=kind.value,
        message=message,
        retryable=kind in _RETRYABLE_KINDS,
        hint=hint,
    )

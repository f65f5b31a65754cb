"""Stable process exit codes and the error classifier.

The numeric values are a public contract: shell scripts and automation
agents branch on them, so a value never changes meaning.

Example::

    $ deputy departments get 999 -o json
    $ echo $?
    4   # NOT_FOUND -- the department does not exist
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from deputy.exceptions import APIError, EmptyResultError, ErrorKind, find_error, find_kind


class ExitCode(IntEnum):
    """Process exit codes.

    * ``OK`` (0) -- success.
    * ``GENERAL`` (1) -- unclassified failure.
    * ``INPUT_ERROR`` (2) -- bad flags, bad arguments, validation errors.
    * ``AUTH_ERROR`` (3) -- authentication or authorisation failure.
    * ``NOT_FOUND`` (4) -- resource not found, or empty result with
      ``--fail-empty`` in JSON mode.
    * ``RATE_LIMIT`` (5) -- rate limited by the API.
    * ``TEMP_ERROR`` (6) -- network failure, timeout or 5xx.
    """

    OK = 0
    GENERAL = 1
    INPUT_ERROR = 2
    AUTH_ERROR = 3
    NOT_FOUND = 4
    RATE_LIMIT = 5
    TEMP_ERROR = 6


_EXIT_FOR_KIND: dict[str, ExitCode] = {
    ErrorKind.AUTH_REQUIRED.value: ExitCode.AUTH_ERROR,
    ErrorKind.AUTH_FORBIDDEN.value: ExitCode.AUTH_ERROR,
    ErrorKind.NOT_FOUND.value: ExitCode.NOT_FOUND,
    ErrorKind.VALIDATION.value: ExitCode.INPUT_ERROR,
    ErrorKind.INVALID_INPUT.value: ExitCode.INPUT_ERROR,
    ErrorKind.INVALID_FLAG.value: ExitCode.INPUT_ERROR,
    ErrorKind.CONFLICT.value: ExitCode.INPUT_ERROR,
    ErrorKind.RATE_LIMITED.value: ExitCode.RATE_LIMIT,
    ErrorKind.SERVER_ERROR.value: ExitCode.TEMP_ERROR,
    ErrorKind.TIMEOUT.value: ExitCode.TEMP_ERROR,
    ErrorKind.NETWORK_ERROR.value: ExitCode.TEMP_ERROR,
}

INPUT_ERROR_PHRASES = (
    "unknown flag",
    "required flag",
    "missing required argument",
    "invalid --output",
    "too many arguments",
)

TEMP_ERROR_PHRASES = (
    "connection refused",
    "no such host",
    "timeout",
)


def exit_code_for_kind(code: str) -> ExitCode:
    """Map an error code string (an :class:`ErrorKind` value) to an exit code.

    Unknown codes, including codes invented by the upstream API, map to
    :attr:`ExitCode.GENERAL`.
    """
    return _EXIT_FOR_KIND.get(code, ExitCode.GENERAL)


def is_input_error_message(message: str) -> bool:
    lowered = message.lower()
    return any(phrase in lowered for phrase in INPUT_ERROR_PHRASES)


def is_temp_error_message(message: str) -> bool:
    lowered = message.lower()
    return any(phrase in lowered for phrase in TEMP_ERROR_PHRASES)


def classify(err: Optional[BaseException]) -> ExitCode:
    """Map any error value to a stable :class:`ExitCode`.

    Checks run in a fixed order and the first match wins:

    1. ``None`` -> ``OK``.
    2. The empty-result sentinel, even when wrapped -> ``NOT_FOUND``.
    3. An :class:`~deputy.exceptions.APIError` anywhere in the cause chain
       -> its code (or the code derived from its status) via the kind table.
    4. A :class:`~deputy.exceptions.DeputyError` carrying a kind -> the
       kind table.
    5. Message substrings: input phrases -> ``INPUT_ERROR``, transient
       network phrases -> ``TEMP_ERROR``.
    6. Anything else -> ``GENERAL``.

    Never raises.
    """
    if err is None:
        return ExitCode.OK

    if find_error(err, EmptyResultError) is not None:
        return ExitCode.NOT_FOUND

    api_err = find_error(err, APIError)
    if api_err is not None:
        return exit_code_for_kind(api_err.effective_code)

    kind = find_kind(err)
    if kind is not None:
        return exit_code_for_kind(kind.value)

    try:
        message = str(err)
    except Exception:  # noqa: BLE001
        return ExitCode.GENERAL

    if is_input_error_message(message):
        return ExitCode.INPUT_ERROR
    if is_temp_error_message(message):
        return ExitCode.TEMP_ERROR
    return ExitCode.GENERAL

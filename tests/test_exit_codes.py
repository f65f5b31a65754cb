"""Tests for the exit-code classifier."""

from __future__ import annotations

import pytest

from deputy.exceptions import (
    APIError,
    ConfigError,
    CredentialsError,
    DeputyError,
    EmptyResultError,
    ErrorKind,
    InvalidInputError,
    NetworkError,
    RequestTimeoutError,
)
from deputy.exit_codes import ExitCode, classify, exit_code_for_kind


def _wrap(inner: BaseException, message: str = "wrapped") -> RuntimeError:
    outer = RuntimeError(f"{message}: {inner}")
    outer.__cause__ = inner
    return outer


class TestExitCodeValues:
    def test_values_are_stable(self) -> None:
        assert [int(code) for code in ExitCode] == [0, 1, 2, 3, 4, 5, 6]
        assert ExitCode.NOT_FOUND == 4
        assert ExitCode.TEMP_ERROR == 6


class TestClassifySentinels:
    def test_none_is_ok(self) -> None:
        assert classify(None) == ExitCode.OK

    def test_empty_result_is_not_found(self) -> None:
        assert classify(EmptyResultError()) == ExitCode.NOT_FOUND

    def test_wrapped_empty_result_is_not_found(self) -> None:
        assert classify(_wrap(EmptyResultError())) == ExitCode.NOT_FOUND


class TestClassifyAPIErrors:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (400, ExitCode.INPUT_ERROR),
            (401, ExitCode.AUTH_ERROR),
            (403, ExitCode.AUTH_ERROR),
            (404, ExitCode.NOT_FOUND),
            (408, ExitCode.TEMP_ERROR),
            (409, ExitCode.INPUT_ERROR),
            (422, ExitCode.INPUT_ERROR),
            (429, ExitCode.RATE_LIMIT),
            (500, ExitCode.TEMP_ERROR),
            (503, ExitCode.TEMP_ERROR),
        ],
    )
    def test_status_without_code(self, status: int, expected: ExitCode) -> None:
        assert classify(APIError(status, "boom")) == expected

    def test_upstream_code_wins_over_status(self) -> None:
        err = APIError(400, "nope", code="AUTH_FORBIDDEN")
        assert classify(err) == ExitCode.AUTH_ERROR

    def test_unknown_upstream_code_is_general(self) -> None:
        assert classify(APIError(400, "odd", code="SOMETHING_NEW")) == ExitCode.GENERAL

    def test_wrapped_api_error(self) -> None:
        assert classify(_wrap(APIError(404, "not found"))) == ExitCode.NOT_FOUND

    def test_api_error_beats_misleading_message(self) -> None:
        err = _wrap(APIError(401, "unauthorized"), message="connection refused while")
        assert classify(err) == ExitCode.AUTH_ERROR


class TestClassifyKinds:
    def test_invalid_input(self) -> None:
        assert classify(InvalidInputError("invalid department ID: x")) == ExitCode.INPUT_ERROR

    def test_invalid_flag(self) -> None:
        err = InvalidInputError("whatever", kind=ErrorKind.INVALID_FLAG)
        assert classify(err) == ExitCode.INPUT_ERROR

    def test_network_error(self) -> None:
        assert classify(NetworkError("GET /me: reset")) == ExitCode.TEMP_ERROR

    def test_timeout(self) -> None:
        assert classify(RequestTimeoutError("GET /me: slow")) == ExitCode.TEMP_ERROR

    def test_credentials_error_is_auth(self) -> None:
        assert classify(CredentialsError("not authenticated")) == ExitCode.AUTH_ERROR

    def test_config_error_is_input(self) -> None:
        err = ConfigError("invalid DEPUTY_TIMEOUT 'abc': expected seconds")
        assert classify(err) == ExitCode.INPUT_ERROR

    def test_kind_found_behind_kindless_wrapper(self) -> None:
        inner = NetworkError("GET /me: reset")
        outer = DeputyError("authentication failed: GET /me: reset")
        outer.__cause__ = inner
        assert classify(outer) == ExitCode.TEMP_ERROR


class TestClassifyMessages:
    @pytest.mark.parametrize(
        "message",
        [
            "unknown flag: --bogus",
            "required flag --name not set",
            "missing required argument: ID",
            "invalid --output 'xml'",
            "too many arguments: a b",
        ],
    )
    def test_input_phrases(self, message: str) -> None:
        assert classify(RuntimeError(message)) == ExitCode.INPUT_ERROR

    @pytest.mark.parametrize(
        "message",
        [
            "dial tcp: Connection Refused",
            "lookup acme.deputy.com: no such host",
            "read: i/o timeout",
        ],
    )
    def test_temporary_phrases(self, message: str) -> None:
        assert classify(RuntimeError(message)) == ExitCode.TEMP_ERROR

    def test_unmatched_is_general(self) -> None:
        assert classify(RuntimeError("something odd")) == ExitCode.GENERAL
        assert classify(DeputyError("operation cancelled")) == ExitCode.GENERAL

    def test_unprintable_error_is_general(self) -> None:
        class Unprintable(Exception):
            def __str__(self) -> str:
                raise ValueError("no")

        assert classify(Unprintable()) == ExitCode.GENERAL


class TestExitCodeForKind:
    def test_known_and_unknown(self) -> None:
        assert exit_code_for_kind("RATE_LIMITED") == ExitCode.RATE_LIMIT
        assert exit_code_for_kind("VALIDATION_FAILED") == ExitCode.INPUT_ERROR
        assert exit_code_for_kind("UNKNOWN") == ExitCode.GENERAL

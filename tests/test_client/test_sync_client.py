"""Tests for the synchronous Deputy HTTP client."""

from __future__ import annotations

import httpx
import pytest

from deputy.client.sync_client import DeputyClient, error_from_response
from deputy.exceptions import APIError, DeputyError, NetworkError, RequestTimeoutError
from deputy.models import Credentials, RequestConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client(
    handler,
    credentials: Credentials,
    max_retries: int = 0,
    debug: bool = False,
) -> DeputyClient:
    return DeputyClient(
        credentials,
        RequestConfig(timeout=30, max_retries=max_retries),
        debug=debug,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff delays instead of sleeping."""
    delays: list[float] = []
    monkeypatch.setattr("deputy.client.sync_client.time.sleep", delays.append)
    return delays


# ---------------------------------------------------------------------------
# Context manager and headers
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_client(self, credentials: Credentials) -> None:
        client = DeputyClient(credentials)
        assert client._client is None
        with client:
            assert client._client is not None
        assert client._client is None

    def test_request_outside_context_fails(self, credentials: Credentials) -> None:
        with pytest.raises(AssertionError, match="context manager"):
            DeputyClient(credentials).get("/me")


class TestRequest:
    def test_headers_and_url(self, credentials: Credentials) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Name": "Ada"})

        with _client(handler, credentials) as client:
            assert client.get("/me") == {"Name": "Ada"}

        request = seen[0]
        assert str(request.url) == "https://acme.au.deputy.com/api/v1/me"
        assert request.headers["Authorization"] == "Bearer tok-abcdef123456"
        assert request.headers["Accept"] == "application/json"

    def test_query_params_and_body(self, credentials: Credentials) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        with _client(handler, credentials) as client:
            client.get("/resource/Leave", params={"max": 5})
            client.post("/resource/Leave/QUERY", json_body={"max": 5})

        assert seen[0].url.params["max"] == "5"
        assert seen[1].method == "POST"
        assert seen[1].content == b'{"max":5}' or seen[1].content == b'{"max": 5}'

    def test_put(self, credentials: Credentials) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Id": 1})

        with _client(handler, credentials) as client:
            assert client.put("/supervise/memo", json_body={"strContent": "hi"}) == {"Id": 1}
        assert seen[0].method == "PUT"

    def test_other_api_version_is_absolute(self, credentials: Credentials) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        with _client(handler, credentials) as client:
            client.post("/metrics", json_body={}, api_version="v2")
            client.get("/me")
        assert str(seen[0].url) == "https://acme.au.deputy.com/api/v2/metrics"
        assert str(seen[1].url) == "https://acme.au.deputy.com/api/v1/me"

    def test_empty_body_returns_none(self, credentials: Credentials) -> None:
        with _client(lambda request: httpx.Response(200), credentials) as client:
            assert client.delete("/resource/Webhook/3") is None

    def test_invalid_json(self, credentials: Credentials) -> None:
        with _client(lambda request: httpx.Response(200, text="<html>"), credentials) as client:
            with pytest.raises(DeputyError, match="invalid JSON in response to GET /me"):
                client.get("/me")


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    def test_structured_error(self, credentials: Credentials) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": {"message": "Record not found"}})

        with _client(handler, credentials) as client:
            with pytest.raises(APIError) as exc_info:
                client.get("/resource/OperationalUnit/9")

        err = exc_info.value
        assert err.status_code == 404
        assert err.message == "Record not found"
        assert err.code == "NOT_FOUND"
        assert err.retryable is False
        assert str(err) == "API error 404: Record not found"

    def test_top_level_message_and_field(self) -> None:
        response = httpx.Response(422, json={"error": {"field": "Name"}, "message": "Name is required"})
        err = error_from_response(response)
        assert err.message == "Name is required"
        assert err.field == "Name"
        assert err.code == "VALIDATION_FAILED"

    def test_plain_message(self) -> None:
        err = error_from_response(httpx.Response(400, json={"message": "Bad search"}))
        assert err.message == "Bad search"

    def test_unstructured_body_is_hidden(self) -> None:
        err = error_from_response(httpx.Response(500, text="<html>stack trace</html>"))
        assert err.message == "server error"
        assert err.retryable is True

    def test_unstructured_body_in_debug_is_truncated(self) -> None:
        err = error_from_response(httpx.Response(400, text="x" * 600), debug=True)
        assert err.message == "x" * 500 + "..."

    def test_unknown_status_message(self) -> None:
        assert error_from_response(httpx.Response(418)).message == "request failed"

    def test_retry_after(self) -> None:
        err = error_from_response(httpx.Response(429, headers={"Retry-After": "30"}))
        assert err.retry_after == 30
        assert err.retryable is True
        assert err.code == "RATE_LIMITED"

    def test_unparseable_retry_after(self) -> None:
        err = error_from_response(httpx.Response(429, headers={"Retry-After": "soon"}))
        assert err.retry_after == 0

    def test_debug_wraps_with_request_line(self, credentials: Credentials) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "bad token"}})

        with _client(handler, credentials, debug=True) as client:
            with pytest.raises(DeputyError) as exc_info:
                client.get("/me")

        err = exc_info.value
        assert not isinstance(err, APIError)
        assert str(err) == "GET https://acme.au.deputy.com/api/v1/me: API error 401: bad token"
        assert isinstance(err.__cause__, APIError)


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    def test_server_errors_are_retried(self, credentials: Credentials, sleeps: list[float]) -> None:
        responses = [httpx.Response(503), httpx.Response(502), httpx.Response(200, json={"ok": 1})]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        with _client(handler, credentials, max_retries=2) as client:
            assert client.get("/me") == {"ok": 1}
        assert sleeps == [1, 2]

    def test_no_retry_by_default(self, credentials: Credentials, sleeps: list[float]) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(503)

        with _client(handler, credentials) as client:
            with pytest.raises(APIError) as exc_info:
                client.get("/me")
        assert exc_info.value.status_code == 503
        assert len(calls) == 1
        assert sleeps == []

    def test_client_errors_are_not_retried(self, credentials: Credentials, sleeps: list[float]) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        with _client(handler, credentials, max_retries=3) as client:
            with pytest.raises(APIError):
                client.get("/me")
        assert len(calls) == 1

    def test_connect_error(self, credentials: Credentials, sleeps: list[float]) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler, credentials, max_retries=1) as client:
            with pytest.raises(NetworkError, match="GET /me: connection refused"):
                client.get("/me")
        assert len(calls) == 2
        assert sleeps == [1]

    def test_timeout(self, credentials: Credentials, sleeps: list[float]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with _client(handler, credentials) as client:
            with pytest.raises(RequestTimeoutError, match="GET /me: request timeout after 30s"):
                client.get("/me")

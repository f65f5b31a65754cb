"""Synchronous Deputy API client with auth, retry, and error mapping.

This module provides :class:`DeputyClient`, the blocking HTTP client used by
every deputy command. It wraps :class:`httpx.Client` and layers on:

- **Auth injection** -- the ``Authorization`` header built from
  :class:`~deputy.models.Credentials` is sent with every request.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...) up to ``max_retries`` times.
- **Error mapping** -- responses with status >= 400 become
  :class:`~deputy.exceptions.APIError`; transport failures become
  :class:`~deputy.exceptions.NetworkError` or
  :class:`~deputy.exceptions.RequestTimeoutError`.
- **Resource services** -- typed accessors such as :attr:`departments`
  and :meth:`resource` (see :mod:`deputy.client.resources`).
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

import httpx

from deputy.client.resources import (
    DepartmentsService,
    EmployeesService,
    LeaveService,
    LocationsService,
    ManagementService,
    MeService,
    PayService,
    ResourceService,
    RostersService,
    SalesService,
    TimesheetsService,
    WebhooksService,
)
from deputy.exceptions import (
    APIError,
    DeputyError,
    NetworkError,
    RequestTimeoutError,
    code_from_status,
    is_retryable,
)
from deputy.models import Credentials, RequestConfig

logger = logging.getLogger(__name__)

MAX_ERROR_BODY_LEN = 500

_GENERIC_MESSAGES: dict[int, str] = {
    400: "bad request",
    401: "unauthorized",
    403: "forbidden",
    404: "not found",
    405: "method not allowed",
    409: "conflict",
    422: "unprocessable entity",
    429: "too many requests",
    500: "server error",
    502: "bad gateway",
    503: "service unavailable",
    504: "gateway timeout",
}


class DeputyClient:
    """Synchronous HTTP client for the Deputy API.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        credentials: Token plus install/geo or base URL override.
        config: Timeout and retry settings.
        debug: When ``True``, unstructured error bodies are included in
            error messages and API errors are wrapped with the request line.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).

    Example::

        with DeputyClient(creds) as client:
            departments = client.departments.list(limit=10)
    """

    def __init__(
        self,
        credentials: Credentials,
        config: Optional[RequestConfig] = None,
        debug: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._credentials = credentials
        self._config = config or RequestConfig()
        self._debug = debug
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> DeputyClient:
        self._client = httpx.Client(
            base_url=self._credentials.base_url("v1"),
            timeout=self._config.timeout,
            follow_redirects=True,
            transport=self._transport,
            headers={
                "Authorization": self._credentials.authorization_header(),
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Resource services
    # ------------------------------------------------------------------ #

    @property
    def departments(self) -> DepartmentsService:
        return DepartmentsService(self)

    @property
    def employees(self) -> EmployeesService:
        return EmployeesService(self)

    @property
    def locations(self) -> LocationsService:
        return LocationsService(self)

    @property
    def timesheets(self) -> TimesheetsService:
        return TimesheetsService(self)

    @property
    def rosters(self) -> RostersService:
        return RostersService(self)

    @property
    def leave(self) -> LeaveService:
        return LeaveService(self)

    @property
    def webhooks(self) -> WebhooksService:
        return WebhooksService(self)

    @property
    def pay(self) -> PayService:
        return PayService(self)

    @property
    def sales(self) -> SalesService:
        return SalesService(self)

    @property
    def management(self) -> ManagementService:
        return ManagementService(self)

    @property
    def me(self) -> MeService:
        return MeService(self)

    def resource(self, name: str) -> ResourceService:
        return ResourceService(self, name)

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        api_version: str = "v1",
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the ``/api/<api_version>`` base URL.
            params: Query parameters.
            json_body: JSON-serialisable request body.
            api_version: API version the path belongs to. Only ``v1`` is the
                client's base URL; other versions are sent as absolute URLs.

        Returns:
            The decoded response body, or ``None`` for an empty body.

        Raises:
            APIError: On a status >= 400 (wrapped with the request line in
                debug mode).
            NetworkError: On connection failures after all retries.
            RequestTimeoutError: On timeouts after all retries.
        """
        if api_version != "v1":
            path = self._credentials.base_url(api_version) + path
        response = self._execute_with_retry(method, path, params, json_body)
        self._map_response_error(method, response)

        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise DeputyError(f"invalid JSON in response to {method} {path}: {exc}") from exc

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]],
        json_body: Any,
    ) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._config.max_retries
        for attempt in range(max_retries + 1):
            try:
                kwargs: dict[str, Any] = {"params": params}
                if json_body is not None:
                    kwargs["json"] = json_body
                response = self._client.request(method, path, **kwargs)
                logger.debug("%s %s -> %d", method, response.request.url, response.status_code)

                if response.status_code >= 500 and attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Server error %d, retrying in %ds (attempt %d/%d)",
                        response.status_code, delay, attempt + 1, max_retries,
                    )
                    time.sleep(delay)
                    continue

                return response

            except httpx.TimeoutException as exc:
                if attempt < max_retries:
                    self._backoff(attempt, max_retries, exc)
                    continue
                raise RequestTimeoutError(
                    f"{method} {path}: request timeout after {self._config.timeout:g}s"
                ) from exc

            except httpx.TransportError as exc:
                if attempt < max_retries:
                    self._backoff(attempt, max_retries, exc)
                    continue
                raise NetworkError(f"{method} {path}: {exc or exc.__class__.__name__}") from exc

        raise NetworkError(f"{method} {path}: request failed after all retries")  # pragma: no cover

    def _backoff(self, attempt: int, max_retries: int, exc: Exception) -> None:
        delay = 2 ** attempt
        logger.debug(
            "Connection error: %s, retrying in %ds (attempt %d/%d)",
            exc, delay, attempt + 1, max_retries,
        )
        time.sleep(delay)

    def _map_response_error(self, method: str, response: httpx.Response) -> None:
        """Raise :class:`APIError` for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        api_err = error_from_response(response, debug=self._debug)
        if self._debug:
            raise DeputyError(f"{method} {response.request.url}: {api_err}") from api_err
        raise api_err


def error_from_response(response: httpx.Response, debug: bool = False) -> APIError:
    """Build an :class:`APIError` from a failed response.

    The message is taken from ``{"error": {"message": ...}}`` or
    ``{"message": ...}``. Failing that, debug mode uses the body (truncated
    to :data:`MAX_ERROR_BODY_LEN` characters); otherwise a generic
    per-status message is used so that response bodies never leak by default.
    """
    status = response.status_code
    message = ""
    field = ""

    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    if isinstance(body, dict):
        error_obj = body.get("error")
        if isinstance(error_obj, dict):
            message = _non_blank(error_obj.get("message")) or _non_blank(body.get("message"))
            field = _non_blank(error_obj.get("field"))
        else:
            message = _non_blank(body.get("message"))

    if not message and debug and response.content:
        text = response.text
        if len(text) > MAX_ERROR_BODY_LEN:
            text = text[:MAX_ERROR_BODY_LEN] + "..."
        message = text

    if not message:
        message = _GENERIC_MESSAGES.get(status) or (
            "server error" if status >= 500 else "request failed"
        )

    retry_after = 0
    if status == 429:
        retry_after = _parse_retry_after(response.headers.get("Retry-After", ""))

    return APIError(
        status_code=status,
        message=message,
        code=code_from_status(status).value,
        retryable=is_retryable(status),
        retry_after=retry_after,
        field=field,
    )


def _non_blank(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return ""


def _parse_retry_after(value: str) -> int:
    try:
        return max(int(value.strip()), 0)
    except ValueError:
        return 0


"""Shared test fixtures for deputy.

Provides an isolated environment for every test, a fake Deputy API served
through :class:`httpx.MockTransport`, and a ``cli`` fixture that runs the
real entry point against it and captures stdout, stderr and the exit code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

import httpx
import pytest

from deputy.app import configure_logging, run
from deputy.client import DeputyClient
from deputy.models import Credentials, RequestConfig

API_PREFIX = "/api"


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Isolate every test from the real environment.

    Clears all ``DEPUTY_*`` variables and colour overrides, fixes the table
    width, points HOME and XDG_DATA_HOME into tmp_path, changes the working
    directory to tmp_path and re-arms the once-per-process ``.env`` loader.
    The terminal check is pinned to "interactive" so text mode is the
    default. The debug log handler is detached afterwards.
    """
    for var in list(os.environ):
        if var.startswith("DEPUTY_"):
            monkeypatch.delenv(var)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("deputy.config._dotenv_loaded", False)
    monkeypatch.setattr("deputy.app._is_tty", lambda: True)
    yield tmp_path
    configure_logging(False)


@pytest.fixture
def credentials_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure a valid token and install in the environment."""
    monkeypatch.setenv("DEPUTY_TOKEN", "tok-abcdef123456")
    monkeypatch.setenv("DEPUTY_INSTALL", "acme")
    monkeypatch.setenv("DEPUTY_GEO", "au")


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(token="tok-abcdef123456", install="acme", geo="au")


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeAPI:
    """Routes requests by ``(method, path)`` to canned responses.

    Paths are given relative to ``/api/<version>`` (``v1`` by default).
    Unrouted requests get a 404 with a structured error body. Every request
    is recorded.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        json: Any = None,
        status: int = 200,
        headers: Optional[dict[str, str]] = None,
        text: Optional[str] = None,
        version: str = "v1",
    ) -> None:
        """Queue a response; the last queued response repeats."""
        canned: dict[str, Any] = {"status_code": status, "headers": headers}
        if text is not None:
            canned["text"] = text
        elif json is not None:
            canned["json"] = json
        self.routes.setdefault((method, f"{API_PREFIX}/{version}{path}"), []).append(canned)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(
                404, json={"error": {"message": f"no route for {request.url.path}"}}
            )
        canned = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(**canned)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def factory(self, creds: Credentials, config: RequestConfig, debug: bool) -> DeputyClient:
        return DeputyClient(creds, config, debug=debug, transport=self.transport())


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


# ---------------------------------------------------------------------------
# CLI runner
# ---------------------------------------------------------------------------


@dataclass
class CliResult:
    exit_code: int
    stdout: str
    stderr: str


@pytest.fixture
def cli(api: FakeAPI, credentials_env: None, capsys: pytest.CaptureFixture[str]):
    """Run ``deputy <args>`` against the fake API and capture the result."""

    def invoke(*args: str) -> CliResult:
        code = run(list(args), client_factory=api.factory)
        captured = capsys.readouterr()
        return CliResult(code, captured.out, captured.err)

    return invoke

"""Typed invocation state shared by every command.

The root callback builds one :class:`AppState` and stores it on the Typer
context; commands read it back with :func:`get_app_state`. The HTTP client
factory travels inside the state, so tests swap the client by passing their
own factory to :func:`deputy.app.create_app` instead of patching globals.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from types import ModuleType
from typing import Callable

import typer

from deputy.client import DeputyClient
from deputy.config import load_credentials, load_request_config
from deputy.models import Credentials, RequestConfig
from deputy.output import OutputManager

# Typer may bundle its own copy of Click. Parameter sources and usage errors
# are matched against the Click its commands are built on.
click_core: ModuleType = inspect.getmodule(typer.Context.__base__)  # type: ignore[assignment]
click_exceptions: ModuleType = inspect.getmodule(click_core.UsageError)  # type: ignore[assignment]

ClientFactory = Callable[[Credentials, RequestConfig, bool], DeputyClient]
"""Builds a client from credentials, request settings and the debug flag."""


def default_client_factory(
    credentials: Credentials, config: RequestConfig, debug: bool
) -> DeputyClient:
    return DeputyClient(credentials, config, debug=debug)


@dataclass(frozen=True)
class AppState:
    """Resolved global options for one invocation."""

    output: OutputManager
    debug: bool = False
    client_factory: ClientFactory = default_client_factory

    def open_client(self) -> DeputyClient:
        """Load credentials and request settings and build a client.

        The result still has to be entered as a context manager.

        Raises:
            CredentialsError: No token is configured.
            ConfigError: The environment is incomplete or invalid.
        """
        return self.client_factory(load_credentials(), load_request_config(), self.debug)


def store_app_state(ctx: typer.Context, state: AppState) -> None:
    ctx.obj = state


def get_app_state(ctx: typer.Context) -> AppState:
    """Retrieve the typed state from the Typer context.

    Raises:
        RuntimeError: If the root callback did not run.
    """
    current: typer.Context | None = ctx
    while current is not None:
        if isinstance(current.obj, AppState):
            return current.obj
        current = current.parent
    raise RuntimeError("CLI state not initialized. Call store_app_state first.")

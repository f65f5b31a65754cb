"""Typer application factory and CLI entry point for deputy.

:func:`create_app` wires the root callback (global flags, output-mode
resolution, ``.env`` loading, logging) and registers the built-in
sub-commands. :func:`run` executes one invocation and is the single place
where failures become output and exit codes:

* Click usage errors are translated into :class:`InvalidInputError`
  with stable messages (``unknown flag``, ``missing required argument``...).
* Every failure is classified with :func:`deputy.exit_codes.classify` and
  rendered to stderr, as text or as a JSON envelope depending on the
  resolved output mode.
* Unexpected exceptions additionally leave a crash log under the data
  directory.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import logging
import os
import re
import signal
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import typer

from deputy import __version__
from deputy.config import get_data_dir, load_dotenv_files
from deputy.context import (
    AppState,
    ClientFactory,
    click_core,
    click_exceptions,
    default_client_factory,
    store_app_state,
)
from deputy.error_format import format_error, format_error_json
from deputy.exceptions import DeputyError, ErrorKind, InvalidInputError
from deputy.exit_codes import ExitCode, classify
from deputy.models import RenderOptions
from deputy.output import OUTPUT_ENV_VAR, OutputManager, _is_tty, resolve_output_mode

logger = logging.getLogger(__name__)

_LOG_FORMAT = "[debug] %(name)s: %(message)s"
_log_handler: Optional[logging.Handler] = None


@dataclass
class Invocation:
    """Mutable holder handed to Click as ``obj``.

    The root callback records the resolved :class:`AppState` here so
    :func:`run` can still render a failure in the right mode after the
    Click context is gone.
    """

    state: Optional[AppState] = None


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


def configure_logging(debug: bool) -> None:
    """Attach (or detach) the stderr debug handler on the ``deputy`` logger."""
    global _log_handler

    package_logger = logging.getLogger("deputy")
    if _log_handler is not None:
        package_logger.removeHandler(_log_handler)
        _log_handler = None

    if not debug:
        package_logger.setLevel(logging.WARNING)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    _log_handler = handler


# ------------------------------------------------------------------ #
# Application factory
# ------------------------------------------------------------------ #


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"deputy version {__version__}")
        raise typer.Exit()


def create_app(client_factory: ClientFactory = default_client_factory) -> typer.Typer:
    """Build the ``deputy`` Typer application.

    Args:
        client_factory: Builds the HTTP client for commands that call the
            API. Tests pass a factory backed by :class:`httpx.MockTransport`.
    """
    app = typer.Typer(
        name="deputy",
        help="Command-line client for the Deputy workforce management API.",
        no_args_is_help=True,
        add_completion=False,
        pretty_exceptions_enable=False,
    )

    @app.callback()
    def main_callback(
        ctx: typer.Context,
        version: bool = typer.Option(
            False,
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
        output: str = typer.Option(
            "text", "--output", "-o", help="Output format: text or json."
        ),
        query: Optional[str] = typer.Option(
            None, "--query", "-q", help="jq expression applied to JSON output."
        ),
        raw: bool = typer.Option(
            False, "--raw", help="Compact JSON; list results as JSON Lines."
        ),
        debug: bool = typer.Option(
            False, "--debug", help="Show full errors and request logging."
        ),
        no_color: bool = typer.Option(
            False, "--no-color", help="Disable color output."
        ),
    ) -> None:
        """Root callback executed before every sub-command.

        Loads ``.env`` files, resolves the output mode once, and stores the
        resulting :class:`~deputy.context.AppState` on the context.
        """
        invocation = ctx.obj if isinstance(ctx.obj, Invocation) else None
        configure_logging(debug)
        load_dotenv_files()

        explicit = ctx.get_parameter_source("output") == click_core.ParameterSource.COMMANDLINE
        mode, raw = resolve_output_mode(
            output, explicit, os.environ.get(OUTPUT_ENV_VAR), _is_tty(), raw
        )
        options = RenderOptions(mode=mode, raw=raw, query=query or None, no_color=no_color)
        state = AppState(output=OutputManager(options), debug=debug, client_factory=client_factory)
        logger.debug("output mode %s (raw=%s)", mode.value, raw)

        if invocation is not None:
            invocation.state = state
        store_app_state(ctx, state)

    from deputy.commands.auth import auth_app
    from deputy.commands.departments import departments_app
    from deputy.commands.employees import employees_app
    from deputy.commands.leave import leave_app
    from deputy.commands.locations import locations_app
    from deputy.commands.management import management_app
    from deputy.commands.me import me_app
    from deputy.commands.pay import pay_app
    from deputy.commands.resource import resource_app
    from deputy.commands.rosters import rosters_app
    from deputy.commands.sales import sales_app
    from deputy.commands.shortcuts import get_command, list_command
    from deputy.commands.timesheets import timesheets_app
    from deputy.commands.version import version_command
    from deputy.commands.webhooks import webhooks_app

    app.command("version")(version_command)
    app.command("list")(list_command)
    app.command("get")(get_command)
    app.add_typer(auth_app, name="auth", help="Check API credentials.")
    app.add_typer(me_app, name="me", help="The authenticated user's own data.")
    app.add_typer(departments_app, name="departments", help="Manage departments (operational units).")
    app.add_typer(employees_app, name="employees", help="Manage employees.")
    app.add_typer(locations_app, name="locations", help="Manage locations (companies).")
    app.add_typer(timesheets_app, name="timesheets", help="Timesheets, the time clock and pay rules.")
    app.add_typer(rosters_app, name="rosters", help="Manage rosters (scheduled shifts).")
    app.add_typer(leave_app, name="leave", help="Manage leave requests.")
    app.add_typer(webhooks_app, name="webhooks", help="Manage webhooks.")
    app.add_typer(pay_app, name="pay", help="Awards and employee pay agreements.")
    app.add_typer(sales_app, name="sales", help="Sales data.")
    app.add_typer(management_app, name="management", help="Memos and journal entries.")
    app.add_typer(resource_app, name="resource", help="Generic resource access.")
    return app


# ------------------------------------------------------------------ #
# Usage-error translation
# ------------------------------------------------------------------ #

_EXTRA_ARGS_RE = re.compile(r"unexpected extra arguments? \((.*)\)")
_NO_SUCH_COMMAND_RE = re.compile(r"No such command '(.*)'")


def translate_usage_error(exc: Any) -> InvalidInputError:
    """Map a Click usage error onto an :class:`InvalidInputError`."""
    if isinstance(exc, click_exceptions.NoSuchOption):
        return InvalidInputError(f"unknown flag: {exc.option_name}", kind=ErrorKind.INVALID_FLAG)
    if isinstance(exc, click_exceptions.BadOptionUsage):
        return InvalidInputError(exc.format_message(), kind=ErrorKind.INVALID_FLAG)
    if isinstance(exc, click_exceptions.MissingParameter):
        param = exc.param
        if isinstance(param, click_core.Option):
            return InvalidInputError(f"required flag {param.opts[0]} not set")
        name = param.human_readable_name if param is not None else "argument"
        return InvalidInputError(f"missing required argument: {name}")
    if isinstance(exc, click_exceptions.BadParameter):
        return InvalidInputError(f"invalid argument: {exc.format_message()}")

    message = exc.format_message()
    match = _EXTRA_ARGS_RE.search(message)
    if match:
        return InvalidInputError(f"too many arguments: {match.group(1)}")
    match = _NO_SUCH_COMMAND_RE.search(message)
    if match:
        return InvalidInputError(f"unknown command: {match.group(1)}")
    return InvalidInputError(message)


# ------------------------------------------------------------------ #
# Failure reporting
# ------------------------------------------------------------------ #


def _flag_value(argv: Sequence[str], names: tuple[str, ...]) -> Optional[str]:
    """Return the last value given for an option in *argv*, or ``None``."""
    value: Optional[str] = None
    args = list(argv)
    for index, arg in enumerate(args):
        if arg == "--":
            break
        for name in names:
            if arg == name and index + 1 < len(args):
                value = args[index + 1]
            elif name.startswith("--") and arg.startswith(name + "="):
                value = arg[len(name) + 1 :]
            elif not name.startswith("--") and arg.startswith(name) and len(arg) > len(name):
                value = arg[len(name) :]
    return value


def fallback_state(argv: Sequence[str], client_factory: ClientFactory) -> AppState:
    """Best-effort state for failures raised before the root callback finished.

    Reads ``--output``, ``--raw``, ``--debug`` and ``--no-color`` straight
    from *argv*; anything unresolvable falls back to text mode.
    """
    output = _flag_value(argv, ("--output", "-o"))
    raw = "--raw" in argv
    options = RenderOptions(no_color="--no-color" in argv)
    try:
        mode, raw = resolve_output_mode(
            output or "text",
            output is not None,
            os.environ.get(OUTPUT_ENV_VAR),
            _is_tty(),
            raw,
        )
        options = RenderOptions(mode=mode, raw=raw, no_color=options.no_color)
    except InvalidInputError:
        pass
    return AppState(
        output=OutputManager(options),
        debug="--debug" in argv,
        client_factory=client_factory,
    )


def _write_crash_log(exc: BaseException) -> Optional[Path]:
    """Write the traceback of *exc* under the data directory.

    Returns:
        The log path, or ``None`` when it could not be written.
    """
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    try:
        logs_dir = get_data_dir() / "logs"
        log_path = logs_dir / f"crash-{timestamp}.log"
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError as write_err:
        logger.debug("could not write crash log: %s", write_err)
        return None
    return log_path


def report_failure(err: BaseException, state: AppState) -> int:
    """Render *err* on stderr in the invocation's mode and return its exit code."""
    code = classify(err)
    output = state.output
    if output.is_json:
        output.error_json(format_error_json(err, debug=state.debug))
    else:
        output.error(format_error(err, debug=state.debug))

    if code == ExitCode.GENERAL and not isinstance(err, DeputyError):
        log_path = _write_crash_log(err)
        if log_path is not None and state.debug:
            output.info(f"Crash log: {log_path}")
    return int(code)


# ------------------------------------------------------------------ #
# Entry points
# ------------------------------------------------------------------ #


def run(
    argv: Optional[Sequence[str]] = None,
    client_factory: ClientFactory = default_client_factory,
) -> int:
    """Execute one CLI invocation and return its exit code.

    Nothing is raised: every failure is rendered on stderr and mapped to an
    :class:`~deputy.exit_codes.ExitCode`.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    invocation = Invocation()
    command = typer.main.get_command(create_app(client_factory))

    try:
        result: Any = command.main(
            args=args,
            prog_name="deputy",
            standalone_mode=False,
            obj=invocation,
        )
    except click_exceptions.NoArgsIsHelpError as exc:
        exc.show()
        return exc.exit_code
    except click_exceptions.Abort:
        sys.stderr.write("\nCancelled.\n")
        return 130
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        return 130
    except click_exceptions.UsageError as exc:
        state = invocation.state or fallback_state(args, client_factory)
        return report_failure(translate_usage_error(exc), state)
    except Exception as exc:
        state = invocation.state or fallback_state(args, client_factory)
        return report_failure(exc, state)

    # Click returns the exit code for ``typer.Exit`` (``--help``, ``--version``).
    if isinstance(result, int):
        return result
    return int(ExitCode.OK)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``deputy`` console script."""
    _setup_signal_handlers()
    sys.exit(run())

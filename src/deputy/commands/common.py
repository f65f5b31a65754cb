"""Argument parsing, list flags and confirmations shared by command modules."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Optional

import typer

from deputy.exceptions import DeputyError, InvalidInputError
from deputy.output import OutputManager

LimitOption = typer.Option(0, "--limit", help="Maximum number of results (0 = unlimited).")
OffsetOption = typer.Option(0, "--offset", help="Number of results to skip.")
FailEmptyOption = typer.Option(
    False, "--fail-empty", help="Exit 4 when results are empty (JSON mode)."
)
YesOption = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt.")


def parse_id(value: str, thing: str) -> int:
    """Parse a positive numeric ID argument.

    Raises:
        InvalidInputError: ``invalid <thing> ID: <value>``.
    """
    try:
        parsed = int(value)
    except ValueError:
        raise InvalidInputError(f"invalid {thing} ID: {value}") from None
    if parsed <= 0:
        raise InvalidInputError(f"invalid {thing} ID: {value}")
    return parsed


def parse_date(value: Optional[str], flag: str) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` flag value; ``None`` or ``""`` means unset."""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInputError(f"invalid {flag} date {value!r} (expected YYYY-MM-DD)") from None


def check_id_flag(value: int, thing: str) -> int:
    """Reject a non-positive ID passed through a flag such as ``--employee``."""
    if value <= 0:
        raise InvalidInputError(f"invalid {thing} ID: {value}")
    return value


def require_date(value: str, flag: str) -> str:
    """Validate a required ``YYYY-MM-DD`` flag and return it unchanged."""
    if parse_date(value, flag) is None:
        raise InvalidInputError(f"{flag} is required")
    return value


def parse_json_object(value: str, flag: str) -> dict[str, Any]:
    """Parse a flag holding a JSON object.

    Raises:
        InvalidInputError: The value is not valid JSON or not an object.
    """
    try:
        data = json.loads(value)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"invalid {flag} JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidInputError(f"invalid {flag}: expected a JSON object")
    return data


def check_page_flags(limit: int, offset: int) -> None:
    if limit < 0:
        raise InvalidInputError(f"invalid --limit {limit}: must not be negative")
    if offset < 0:
        raise InvalidInputError(f"invalid --offset {offset}: must not be negative")


def confirm_destructive(output: OutputManager, yes: bool, prompt: str) -> None:
    """Ask before a destructive action.

    Auto-confirms in JSON mode and with ``--yes``. The prompt is written to
    stderr so stdout carries data only.

    Raises:
        DeputyError: ``operation cancelled`` when the user declines.
    """
    if output.is_json or yes:
        return
    try:
        confirmed = typer.confirm(prompt, default=False, err=True)
    except typer.Abort:
        confirmed = False
    if not confirmed:
        raise DeputyError("operation cancelled")


def yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def clock_time(timestamp: int) -> str:
    """Format a Unix timestamp as local ``HH:MM``; ``-`` when unset."""
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime("%H:%M")


def report(output: OutputManager, data: Any, message: str) -> None:
    """Report the result of a change: *data* in JSON mode, *message* otherwise."""
    if output.is_json:
        output.render_object(data)
    else:
        output.print_data(message)

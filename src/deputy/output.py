"""Output-mode resolution and result rendering with stdout/stderr discipline.

* **stdout** -- primary data only: tables, key/value blocks, JSON documents
  or JSON Lines. This is what scripts and agents parse.
* **stderr** -- diagnostics and errors. Never contaminates the data stream.
* **Mode resolution** -- :func:`resolve_output_mode` picks ``text`` or
  ``json`` once per invocation from the ``--output`` flag, the
  ``DEPUTY_OUTPUT`` environment variable, ``--raw`` and TTY detection.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb`` and the
  ``--no-color`` flag. JSON output is never coloured.

:class:`OutputManager` is created once in the root callback and stored on
the typed CLI context (:class:`deputy.context.AppState`); list commands
derive a copy carrying their pagination flags via :meth:`OutputManager.for_list`.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, TextIO, TypeVar

import jq
from pydantic import BaseModel
from rich.cells import cell_len
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from deputy.exceptions import EmptyResultError, InvalidInputError
from deputy.models import OutputMode, RenderOptions

T = TypeVar("T")

OUTPUT_ENV_VAR = "DEPUTY_OUTPUT"
_VALID_MODES = ("text", "json")


# ------------------------------------------------------------------ #
# Mode resolution
# ------------------------------------------------------------------ #


def resolve_output_mode(
    output: str,
    output_explicit: bool,
    env_output: Optional[str],
    is_tty: bool,
    raw: bool,
) -> tuple[OutputMode, bool]:
    """Resolve the effective output mode for this invocation.

    Precedence (first match wins):

    1. An explicitly passed ``--output`` (``text`` or ``json``).
    2. ``DEPUTY_OUTPUT`` when non-empty (``text`` or ``json``, any case).
    3. TTY detection: ``json`` when stdout is not a terminal, else ``text``.

    Finally ``--raw`` upgrades ``text`` to ``json``; it never downgrades.

    Args:
        output: Value of the ``--output`` flag (its default when not passed).
        output_explicit: Whether ``--output`` was given on the command line.
        env_output: Value of ``DEPUTY_OUTPUT`` (``None`` when unset).
        is_tty: Whether stdout is attached to a terminal.
        raw: Value of the ``--raw`` flag.

    Returns:
        ``(mode, raw)``.

    Raises:
        InvalidInputError: If the flag or the environment variable holds a
            value other than ``text`` or ``json``.
    """
    if output_explicit:
        value = output.lower()
        if value not in _VALID_MODES:
            raise InvalidInputError(f"invalid --output {output!r} (expected text or json)")
        mode = OutputMode(value)
    elif env_output:
        value = env_output.strip().lower()
        if value not in _VALID_MODES:
            raise InvalidInputError(
                f"invalid {OUTPUT_ENV_VAR} {env_output!r} (expected text or json)"
            )
        mode = OutputMode(value)
    elif not is_tty:
        mode = OutputMode.JSON
    else:
        mode = OutputMode.TEXT

    if raw and mode == OutputMode.TEXT:
        mode = OutputMode.JSON
    return mode, raw


# ------------------------------------------------------------------ #
# Rendering helpers
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class Column:
    """A text-table column: header label and cell formatter for one row."""

    header: str
    value: Callable[[Any], str]


def apply_pagination(items: Sequence[T], offset: int = 0, limit: int = 0) -> list[T]:
    """Slice *items* client-side for endpoints without server pagination.

    ``0`` for either argument means "not set".
    """
    result = list(items)
    if offset > 0:
        if offset >= len(result):
            return []
        result = result[offset:]
    if 0 < limit < len(result):
        result = result[:limit]
    return result


def natural_table_width(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> int:
    """Width of a borderless table whose columns are separated by two spaces."""
    if not headers:
        return 0
    widths = [cell_len(header) for header in headers]
    for row in rows:
        for index, cell in enumerate(row[: len(widths)]):
            widths[index] = max(widths[index], cell_len(cell))
    return sum(widths) + 2 * (len(widths) - 1)


def to_jsonable(data: Any) -> Any:
    """Convert models (recursively) into plain JSON-compatible values."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, dict):
        return {key: to_jsonable(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    return data


def _is_empty(data: Any) -> bool:
    if data is None:
        return True
    if isinstance(data, (list, tuple, dict)):
        return len(data) == 0
    return False


def _dumps(data: Any, pretty: bool) -> str:
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False, default=str)
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)


# ------------------------------------------------------------------ #
# Output manager
# ------------------------------------------------------------------ #


class OutputManager:
    """Renders command results and diagnostics for one invocation.

    Args:
        options: Resolved render options.
        stdout: Data stream. Defaults to the current ``sys.stdout`` at
            write time, so stream swapping by test runners is honoured.
        stderr: Diagnostics stream, defaulting likewise to ``sys.stderr``.
    """

    def __init__(
        self,
        options: Optional[RenderOptions] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ) -> None:
        self._options = options or RenderOptions()
        self._stdout = stdout
        self._stderr = stderr
        self._no_color = self._options.no_color or _should_disable_color()

    @property
    def options(self) -> RenderOptions:
        return self._options

    @property
    def is_json(self) -> bool:
        return self._options.is_json

    @property
    def out(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._stderr or sys.stderr

    def for_list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        fail_empty: bool = False,
    ) -> OutputManager:
        """Return a manager for a list command, sharing this one's streams."""
        return OutputManager(
            self._options.for_list(limit=limit, offset=offset, fail_empty=fail_empty),
            stdout=self._stdout,
            stderr=self._stderr,
        )

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def render_object(self, data: Any, fields: Optional[Sequence[tuple[str, Any]]] = None) -> None:
        """Render a single result.

        JSON mode prints the object (pretty, or one compact line with
        ``--raw``). Text mode prints *fields* as an aligned key/value
        block in the order given; when *fields* is ``None`` nothing is
        printed in text mode and the caller is expected to write its own
        text.

        Raises:
            EmptyResultError: ``--fail-empty`` in JSON mode and *data* is empty.
        """
        if self.is_json:
            if self._options.fail_empty and _is_empty(data):
                raise EmptyResultError()
            self._emit_json(to_jsonable(data))
            return
        if fields is not None:
            self.print_fields(fields)

    def render_list(self, items: Sequence[Any], columns: Sequence[Column]) -> None:
        """Render a list result.

        * Text mode: a column-aligned table with a header row; an empty list
          prints the header only.
        * JSON mode: ``{"items": [...], "count": n}`` plus ``limit`` and
          ``offset`` when they were set.
        * JSON with ``--raw``: JSON Lines, one compact object per line.

        Raises:
            EmptyResultError: ``--fail-empty`` in JSON mode and *items* is empty.
        """
        if not self.is_json:
            headers = [column.header for column in columns]
            rows = [[column.value(item) for column in columns] for item in items]
            self.print_table(headers, rows)
            return

        if self._options.fail_empty and not items:
            raise EmptyResultError()

        if self._options.raw:
            if self._options.query:
                self._emit_query(to_jsonable(list(items)), self._options.query, pretty=False)
            else:
                self._emit_json_lines(items)
            return

        envelope: dict[str, Any] = {
            "items": to_jsonable(list(items)),
            "count": len(items),
        }
        if self._options.limit:
            envelope["limit"] = self._options.limit
        if self._options.offset:
            envelope["offset"] = self._options.offset
        self._emit_json(envelope)

    def print_table(self, headers: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
        """Print a column-aligned table with a header row to stdout.

        Cells are never truncated: the console is widened to the table's
        natural width when the terminal is narrower.
        """
        cells = [[str(cell) for cell in row] for row in rows]
        table = Table(
            box=None,
            show_header=True,
            header_style="bold cyan",
            pad_edge=False,
            show_edge=False,
        )
        for header in headers:
            table.add_column(header, no_wrap=True, overflow="fold")
        for row in cells:
            table.add_row(*(escape(cell) for cell in row))

        console = self._console()
        needed = natural_table_width(headers, cells)
        if console.width < needed:
            console.width = needed
        console.print(table)

    def print_fields(self, fields: Sequence[tuple[str, Any]]) -> None:
        """Print an aligned ``Key: Value`` block in the order given."""
        if not fields:
            return
        width = max(len(label) for label, _ in fields) + 1
        for label, value in fields:
            self.print_data(f"{label + ':':<{width}} {value}".rstrip())

    def print_data(self, text: str) -> None:
        """Write a line of primary data to stdout."""
        print(text, file=self.out, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        print(message, file=self.err, flush=True)

    def success(self, message: str) -> None:
        if self._no_color:
            print(message, file=self.err, flush=True)
        else:
            self._console(stderr=True).print(f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        if self._no_color:
            print(f"Warning: {message}", file=self.err, flush=True)
        else:
            self._console(stderr=True).print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print a human-readable error to stderr, prefixed with ``Error:``."""
        if self._no_color:
            print(f"Error: {message}", file=self.err, flush=True)
        else:
            self._console(stderr=True).print(f"[bold red]Error:[/bold red] {escape(message)}")

    def error_json(self, body: str) -> None:
        """Print a machine-readable error envelope to stderr."""
        print(body, file=self.err, flush=True)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _console(self, stderr: bool = False) -> Console:
        stream = self.err if stderr else self.out
        return Console(
            file=stream,
            color_system=None if self._no_color else "auto",
            highlight=False,
            soft_wrap=True,
        )

    def _emit_json(self, data: Any) -> None:
        query = self._options.query
        if query:
            self._emit_query(data, query, pretty=not self._options.raw)
            return
        self.print_data(_dumps(data, pretty=not self._options.raw))

    def _emit_json_lines(self, items: Iterable[Any]) -> None:
        for item in items:
            self.print_data(_dumps(to_jsonable(item), pretty=False))

    def _emit_query(self, data: Any, query: str, pretty: bool) -> None:
        try:
            program = jq.compile(query)
        except ValueError as exc:
            raise InvalidInputError(f"invalid jq query: {exc}") from exc
        try:
            results = program.input_value(data).all()
        except ValueError as exc:
            raise InvalidInputError(f"jq query failed: {exc}") from exc
        for value in results:
            self.print_data(_dumps(value, pretty=pretty))


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False

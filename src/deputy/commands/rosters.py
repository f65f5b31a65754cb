"""Rosters commands -- scheduled shifts.

``copy``, ``publish`` and ``discard`` act on every shift of one location
between two dates.
"""

from __future__ import annotations

import typer

from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    OffsetOption,
    check_id_flag,
    check_page_flags,
    clock_time,
    parse_date,
    parse_id,
    report,
    yes_no,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.output import Column, apply_pagination

rosters_app = typer.Typer(no_args_is_help=True)

ROSTER_COLUMNS = (
    Column("ID", lambda r: str(r.id)),
    Column("DATE", lambda r: r.date),
    Column("START", lambda r: clock_time(r.start_time)),
    Column("END", lambda r: clock_time(r.end_time)),
    Column("EMPLOYEE", lambda r: str(r.employee)),
    Column("PUBLISHED", lambda r: yes_no(r.published)),
)

SWAP_COLUMNS = (
    Column("ID", lambda r: str(r.id)),
    Column("DATE", lambda r: r.date),
    Column("START", lambda r: clock_time(r.start_time)),
    Column("END", lambda r: clock_time(r.end_time)),
    Column("EMPLOYEE", lambda r: str(r.employee)),
)


@rosters_app.command("list")
def rosters_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List rosters."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        rosters = client.rosters.list(limit=limit, offset=offset)
    state.output.for_list(limit, offset, fail_empty).render_list(rosters, ROSTER_COLUMNS)


@rosters_app.command("get")
def rosters_get(
    ctx: typer.Context,
    roster_id: str = typer.Argument(..., metavar="ID", help="Roster ID."),
) -> None:
    """Show a single roster."""
    state = get_app_state(ctx)
    rid = parse_id(roster_id, "roster")
    with state.open_client() as client:
        roster = client.rosters.get(rid)
    state.output.render_object(
        roster,
        [
            ("ID", roster.id),
            ("Date", roster.date),
            ("Start", clock_time(roster.start_time)),
            ("End", clock_time(roster.end_time)),
            ("Employee", roster.employee),
            ("OpUnit", roster.operational_unit),
            ("Published", roster.published),
            ("Open", roster.open),
        ],
    )


@rosters_app.command("create")
def rosters_create(
    ctx: typer.Context,
    employee: int = typer.Option(..., "--employee", help="Employee ID."),
    opunit: int = typer.Option(..., "--opunit", help="Area (operational unit) ID."),
    start_time: int = typer.Option(..., "--start-time", help="Shift start (Unix timestamp)."),
    end_time: int = typer.Option(..., "--end-time", help="Shift end (Unix timestamp)."),
    mealbreak: str = typer.Option("", "--mealbreak", help="Meal break, e.g. 00:30."),
    comment: str = typer.Option("", "--comment", help="Comment."),
    open_shift: bool = typer.Option(False, "--open", help="Create an open shift."),
    publish: bool = typer.Option(False, "--publish", help="Publish the shift immediately."),
) -> None:
    """Create a roster (scheduled shift)."""
    state = get_app_state(ctx)
    check_id_flag(employee, "employee")
    check_id_flag(opunit, "area")
    if start_time <= 0 or end_time <= 0:
        raise InvalidInputError("--start-time and --end-time must be positive Unix timestamps")
    if end_time <= start_time:
        raise InvalidInputError("invalid shift: --end-time must be after --start-time")
    with state.open_client() as client:
        roster = client.rosters.create(
            employee,
            opunit,
            start_time,
            end_time,
            mealbreak=mealbreak,
            comment=comment,
            open_shift=open_shift,
            publish=publish,
        )
    report(state.output, roster, f"Created roster {roster.id}")


FromDateOption = typer.Option(..., "--from-date", help="First date (YYYY-MM-DD).")
ToDateOption = typer.Option(..., "--to-date", help="Last date (YYYY-MM-DD).")
LocationOption = typer.Option(..., "--location", help="Location ID.")


def _check_range(from_date: str, to_date: str, location: int) -> None:
    start = parse_date(from_date, "--from-date")
    end = parse_date(to_date, "--to-date")
    if start is None or end is None:
        raise InvalidInputError("--from-date and --to-date are required")
    if start > end:
        raise InvalidInputError("invalid date range: --from-date must be on or before --to-date")
    check_id_flag(location, "location")


def _range_ack(action: str, from_date: str, to_date: str, location: int) -> dict[str, object]:
    return {action: True, "FromDate": from_date, "ToDate": to_date, "Location": location}


@rosters_app.command("copy")
def rosters_copy(
    ctx: typer.Context,
    from_date: str = FromDateOption,
    to_date: str = ToDateOption,
    location: int = LocationOption,
) -> None:
    """Copy rosters from one date range to the next."""
    state = get_app_state(ctx)
    _check_range(from_date, to_date, location)
    with state.open_client() as client:
        client.rosters.copy(from_date, to_date, location)
    report(
        state.output,
        _range_ack("Copied", from_date, to_date, location),
        f"Roster copied from {from_date} to {to_date}",
    )


@rosters_app.command("publish")
def rosters_publish(
    ctx: typer.Context,
    from_date: str = FromDateOption,
    to_date: str = ToDateOption,
    location: int = LocationOption,
) -> None:
    """Publish rosters so employees can see them."""
    state = get_app_state(ctx)
    _check_range(from_date, to_date, location)
    with state.open_client() as client:
        client.rosters.publish(from_date, to_date, location)
    report(
        state.output,
        _range_ack("Published", from_date, to_date, location),
        f"Rosters published from {from_date} to {to_date}",
    )


@rosters_app.command("discard")
def rosters_discard(
    ctx: typer.Context,
    from_date: str = FromDateOption,
    to_date: str = ToDateOption,
    location: int = LocationOption,
) -> None:
    """Discard unpublished roster changes."""
    state = get_app_state(ctx)
    _check_range(from_date, to_date, location)
    with state.open_client() as client:
        client.rosters.discard(from_date, to_date, location)
    report(
        state.output,
        _range_ack("Discarded", from_date, to_date, location),
        f"Roster changes discarded from {from_date} to {to_date}",
    )


@rosters_app.command("swap")
def rosters_swap(
    ctx: typer.Context,
    roster_id: str = typer.Argument(..., metavar="ID", help="Roster ID."),
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List shifts a roster can be swapped with."""
    state = get_app_state(ctx)
    rid = parse_id(roster_id, "roster")
    check_page_flags(limit, offset)
    with state.open_client() as client:
        rosters = client.rosters.swappable(rid)
    state.output.for_list(limit, offset, fail_empty).render_list(
        apply_pagination(rosters, offset, limit), SWAP_COLUMNS
    )

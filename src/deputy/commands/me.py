"""Me commands -- the authenticated user's own records.

The ``/my/*`` endpoints return everything at once, so ``--limit`` and
``--offset`` are applied on the client side.
"""

from __future__ import annotations

import typer

from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    OffsetOption,
    check_page_flags,
    clock_time,
)
from deputy.context import get_app_state
from deputy.output import Column, apply_pagination

me_app = typer.Typer(no_args_is_help=True)

MY_TIMESHEET_COLUMNS = (
    Column("ID", lambda t: str(t.id)),
    Column("DATE", lambda t: t.date),
    Column("START", lambda t: clock_time(t.start_time)),
    Column("END", lambda t: clock_time(t.end_time)),
    Column("TOTAL", lambda t: t.total_time_str),
)

MY_ROSTER_COLUMNS = (
    Column("ID", lambda r: str(r.id)),
    Column("DATE", lambda r: r.date),
    Column("START", lambda r: clock_time(r.start_time)),
    Column("END", lambda r: clock_time(r.end_time)),
)

MY_LEAVE_COLUMNS = (
    Column("ID", lambda lv: str(lv.id)),
    Column("START", lambda lv: lv.date_start),
    Column("END", lambda lv: lv.date_end),
    Column("STATUS", lambda lv: lv.status_text()),
    Column("HOURS", lambda lv: f"{lv.hours:.1f}"),
)


@me_app.command("info")
def me_info(ctx: typer.Context) -> None:
    """Show the authenticated user."""
    state = get_app_state(ctx)
    with state.open_client() as client:
        info = client.me.info()
    state.output.render_object(
        info,
        [
            ("User ID", info.user_id),
            ("Employee ID", info.employee_id),
            ("Login", info.login),
            ("Name", info.name),
            ("First Name", info.first_name),
            ("Last Name", info.last_name),
            ("Email", info.primary_email),
            ("Phone", info.primary_phone),
            ("Company", info.company),
            ("Portfolio", info.portfolio),
        ],
    )


@me_app.command("timesheets")
def me_timesheets(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List my timesheets."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        timesheets = apply_pagination(client.me.timesheets(), offset, limit)
    state.output.for_list(limit, offset, fail_empty).render_list(timesheets, MY_TIMESHEET_COLUMNS)


@me_app.command("rosters")
def me_rosters(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List my rostered shifts."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        rosters = apply_pagination(client.me.rosters(), offset, limit)
    state.output.for_list(limit, offset, fail_empty).render_list(rosters, MY_ROSTER_COLUMNS)


@me_app.command("leave")
def me_leave(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List my leave requests."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        leaves = apply_pagination(client.me.leave(), offset, limit)
    state.output.for_list(limit, offset, fail_empty).render_list(leaves, MY_LEAVE_COLUMNS)

"""Timesheets commands -- recorded shifts, the time clock and pay rules.

By default ``timesheets list`` returns the authenticated user's timesheets
(``/my/timesheets``). ``--employee`` switches to a resource query for one
employee, which requires supervisor permissions. ``--from``/``--to``
restrict the result to an inclusive date range.

Clock and break commands act on a timesheet (``--timesheet``) or on an
employee's current shift (``--employee``).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

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
)
from deputy.context import get_app_state
from deputy.exceptions import DeputyError, InvalidInputError
from deputy.models import Timesheet
from deputy.output import Column, apply_pagination

timesheets_app = typer.Typer(no_args_is_help=True)

TIMESHEET_COLUMNS = (
    Column("ID", lambda t: str(t.id)),
    Column("DATE", lambda t: t.date),
    Column("START", lambda t: clock_time(t.start_time)),
    Column("END", lambda t: clock_time(t.end_time)),
    Column("TOTAL", lambda t: t.total_time_str),
    Column("STATUS", lambda t: "Complete" if t.end_time else "In Progress"),
)

PAY_RULE_COLUMNS = (
    Column("ID", lambda r: str(r.id)),
    Column("TITLE", lambda r: r.pay_title),
    Column("HOURLY RATE", lambda r: f"{r.hourly_rate:.2f}"),
)


def filter_by_date(
    timesheets: Sequence[Timesheet],
    start: Optional[date],
    end: Optional[date],
) -> list[Timesheet]:
    """Keep timesheets whose ``Date`` falls within ``[start, end]``.

    Timesheets without a date are dropped when a bound is given.

    Raises:
        DeputyError: A timesheet carries a date that is not ``YYYY-MM-DD``.
    """
    if start is None and end is None:
        return list(timesheets)

    kept: list[Timesheet] = []
    for timesheet in timesheets:
        if not timesheet.date:
            continue
        try:
            day = date.fromisoformat(timesheet.date[:10])
        except ValueError:
            raise DeputyError(f"timesheet {timesheet.id} has invalid Date {timesheet.date!r}") from None
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        kept.append(timesheet)
    return kept


def employee_search(employee_id: int, start: Optional[date], end: Optional[date]) -> dict[str, Any]:
    """Search clause selecting one employee's timesheets in a date range."""
    search: dict[str, Any] = {"f1": {"field": "Employee", "type": "eq", "data": employee_id}}
    if start is not None:
        search["f2"] = {"field": "Date", "type": "ge", "data": start.isoformat()}
    if end is not None:
        search[f"f{len(search) + 1}"] = {"field": "Date", "type": "le", "data": end.isoformat()}
    return search


@timesheets_app.command("list")
def timesheets_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
    from_date: Optional[str] = typer.Option(None, "--from", help="Start date (YYYY-MM-DD)."),
    to_date: Optional[str] = typer.Option(None, "--to", help="End date (YYYY-MM-DD)."),
    employee: int = typer.Option(0, "--employee", help="Employee ID (uses a resource query)."),
) -> None:
    """List timesheets."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    start = parse_date(from_date, "--from")
    end = parse_date(to_date, "--to")
    if start is not None and end is not None and start > end:
        raise InvalidInputError("invalid date range: --from must be on or before --to")
    if employee < 0:
        raise InvalidInputError(f"invalid employee ID: {employee}")

    with state.open_client() as client:
        if employee:
            timesheets = client.timesheets.query(
                employee_search(employee, start, end), limit=limit, offset=offset,
            )
        else:
            timesheets = filter_by_date(
                client.timesheets.list(limit=limit, offset=offset), start, end,
            )
    state.output.for_list(limit, offset, fail_empty).render_list(timesheets, TIMESHEET_COLUMNS)


@timesheets_app.command("get")
def timesheets_get(
    ctx: typer.Context,
    timesheet_id: str = typer.Argument(..., metavar="ID", help="Timesheet ID."),
) -> None:
    """Show a single timesheet."""
    state = get_app_state(ctx)
    ts_id = parse_id(timesheet_id, "timesheet")
    with state.open_client() as client:
        timesheet = client.timesheets.get(ts_id)

    fields: list[tuple[str, object]] = [
        ("ID", timesheet.id),
        ("Employee", timesheet.employee),
        ("Date", timesheet.date),
        ("Start", clock_time(timesheet.start_time)),
    ]
    if timesheet.end_time:
        fields.append(("End", clock_time(timesheet.end_time)))
    fields += [
        ("Total", timesheet.total_time_str),
        ("Mealbreak", timesheet.mealbreak),
        ("In Progress", timesheet.is_in_progress),
    ]
    state.output.render_object(timesheet, fields)


def _clock_target(timesheet: int, employee: int) -> tuple[int, int]:
    if timesheet < 0:
        raise InvalidInputError(f"invalid timesheet ID: {timesheet}")
    if employee < 0:
        raise InvalidInputError(f"invalid employee ID: {employee}")
    if not timesheet and not employee:
        raise InvalidInputError("either --timesheet or --employee is required")
    return timesheet, employee


TimesheetFlag = typer.Option(0, "--timesheet", "-t", help="Timesheet ID.")
EmployeeFlag = typer.Option(0, "--employee", "-e", help="Employee ID (their current shift).")


@timesheets_app.command("clock-in")
def timesheets_clock_in(
    ctx: typer.Context,
    employee: int = typer.Option(..., "--employee", "-e", help="Employee ID."),
    opunit: int = typer.Option(0, "--opunit", help="Area (operational unit) ID."),
    comment: str = typer.Option("", "--comment", help="Comment."),
) -> None:
    """Start a shift for an employee."""
    state = get_app_state(ctx)
    check_id_flag(employee, "employee")
    with state.open_client() as client:
        result = client.timesheets.clock_in(employee, opunit_id=opunit, comment=comment)
    report(
        state.output,
        result,
        f"Clocked in employee {result.employee or employee} (timesheet {result.id})",
    )


@timesheets_app.command("clock-out")
def timesheets_clock_out(
    ctx: typer.Context,
    timesheet: int = TimesheetFlag,
    employee: int = EmployeeFlag,
    comment: str = typer.Option("", "--comment", help="Comment."),
) -> None:
    """End a shift."""
    state = get_app_state(ctx)
    ts_id, emp_id = _clock_target(timesheet, employee)
    with state.open_client() as client:
        result = client.timesheets.clock_out(ts_id, emp_id, comment=comment)
    report(
        state.output,
        result,
        f"Clocked out employee {result.employee or emp_id} (timesheet {result.id or ts_id})",
    )


def _break_ack(status: str, timesheet: int, employee: int) -> tuple[dict[str, object], str]:
    data: dict[str, object] = {"Status": status}
    if timesheet:
        data["Timesheet"] = timesheet
        return data, f"Break {status} on timesheet {timesheet}"
    data["Employee"] = employee
    return data, f"Break {status} for employee {employee}"


@timesheets_app.command("start-break")
def timesheets_start_break(
    ctx: typer.Context,
    timesheet: int = TimesheetFlag,
    employee: int = EmployeeFlag,
) -> None:
    """Pause a shift for a break."""
    state = get_app_state(ctx)
    ts_id, emp_id = _clock_target(timesheet, employee)
    with state.open_client() as client:
        client.timesheets.start_break(ts_id, emp_id)
    report(state.output, *_break_ack("started", ts_id, emp_id))


@timesheets_app.command("end-break")
def timesheets_end_break(
    ctx: typer.Context,
    timesheet: int = TimesheetFlag,
    employee: int = EmployeeFlag,
) -> None:
    """Resume a shift after a break."""
    state = get_app_state(ctx)
    ts_id, emp_id = _clock_target(timesheet, employee)
    with state.open_client() as client:
        client.timesheets.end_break(ts_id, emp_id)
    report(state.output, *_break_ack("ended", ts_id, emp_id))


@timesheets_app.command("update")
def timesheets_update(
    ctx: typer.Context,
    timesheet_id: str = typer.Argument(..., metavar="ID", help="Timesheet ID."),
    cost: float = typer.Option(..., "--cost", help="Total cost of the shift."),
) -> None:
    """Set the cost of a timesheet."""
    state = get_app_state(ctx)
    ts_id = parse_id(timesheet_id, "timesheet")
    if cost < 0:
        raise InvalidInputError(f"invalid --cost {cost:g}: must not be negative")
    with state.open_client() as client:
        timesheet = client.timesheets.update(ts_id, cost)
    report(state.output, timesheet, f"Updated timesheet {ts_id} (cost: {cost:.2f})")


@timesheets_app.command("list-pay-rules")
def timesheets_list_pay_rules(
    ctx: typer.Context,
    hourly_rate: Optional[float] = typer.Option(
        None, "--hourly-rate", help="Only rules paying this hourly rate."
    ),
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List pay rules."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        rules = client.timesheets.pay_rules(hourly_rate)
    state.output.for_list(limit, offset, fail_empty).render_list(
        apply_pagination(rules, offset, limit), PAY_RULE_COLUMNS
    )


@timesheets_app.command("select-pay-rule")
def timesheets_select_pay_rule(
    ctx: typer.Context,
    timesheet_id: str = typer.Argument(..., metavar="ID", help="Timesheet ID."),
    pay_rule: int = typer.Option(..., "--pay-rule", help="Pay rule ID."),
) -> None:
    """Pay an approved timesheet under a pay rule.

    The cost is the rule's hourly rate times the hours worked.
    """
    state = get_app_state(ctx)
    ts_id = parse_id(timesheet_id, "timesheet")
    check_id_flag(pay_rule, "pay rule")
    with state.open_client() as client:
        result = client.timesheets.select_pay_rule(ts_id, pay_rule)
    report(
        state.output,
        result,
        f"Assigned pay rule {result.pay_rule} to timesheet {result.timesheet or ts_id} "
        f"(total: ${result.cost:.2f})",
    )

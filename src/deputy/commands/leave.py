"""Leave commands -- list, request, approve and decline leave."""

from __future__ import annotations

import typer

from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    OffsetOption,
    YesOption,
    check_id_flag,
    check_page_flags,
    confirm_destructive,
    parse_date,
    parse_id,
    report,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.models import Leave
from deputy.output import Column

leave_app = typer.Typer(no_args_is_help=True)

LEAVE_COLUMNS = (
    Column("ID", lambda lv: str(lv.id)),
    Column("EMPLOYEE", lambda lv: str(lv.employee)),
    Column("START", lambda lv: lv.date_start),
    Column("END", lambda lv: lv.date_end),
    Column("DAYS", lambda lv: f"{lv.days:.1f}"),
    Column("STATUS", lambda lv: lv.status_text()),
)


def leave_fields(leave: Leave) -> list[tuple[str, object]]:
    fields: list[tuple[str, object]] = [
        ("ID", leave.id),
        ("Employee", leave.employee),
        ("Company", leave.company),
        ("Start", leave.date_start),
        ("End", leave.date_end),
        ("Days", f"{leave.days:.1f}"),
        ("Hours", f"{leave.hours:.1f}"),
        ("Status", leave.status_text()),
    ]
    if leave.comment:
        fields.append(("Comment", leave.comment))
    if leave.leave_rule:
        fields.append(("Leave Rule", leave.leave_rule))
    return fields


@leave_app.command("list")
def leave_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List leave requests."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        leaves = client.leave.list(limit=limit, offset=offset)
    state.output.for_list(limit, offset, fail_empty).render_list(leaves, LEAVE_COLUMNS)


@leave_app.command("get")
def leave_get(
    ctx: typer.Context,
    leave_id: str = typer.Argument(..., metavar="ID", help="Leave request ID."),
) -> None:
    """Show a single leave request."""
    state = get_app_state(ctx)
    lid = parse_id(leave_id, "leave")
    with state.open_client() as client:
        leave = client.leave.get(lid)
    state.output.render_object(leave, leave_fields(leave))


@leave_app.command("add")
def leave_add(
    ctx: typer.Context,
    employee: int = typer.Option(..., "--employee", help="Employee ID."),
    start_date: str = typer.Option(..., "--start-date", help="First day of leave (YYYY-MM-DD)."),
    end_date: str = typer.Option(..., "--end-date", help="Last day of leave (YYYY-MM-DD)."),
    leave_rule: int = typer.Option(0, "--leave-rule", help="Leave rule ID."),
    comment: str = typer.Option("", "--comment", help="Comment for the approver."),
) -> None:
    """Request leave for an employee."""
    state = get_app_state(ctx)
    check_id_flag(employee, "employee")
    start = parse_date(start_date, "--start-date")
    end = parse_date(end_date, "--end-date")
    if start is None or end is None:
        raise InvalidInputError("--start-date and --end-date are required")
    if start > end:
        raise InvalidInputError("invalid date range: --start-date must be on or before --end-date")
    with state.open_client() as client:
        leave = client.leave.create(
            employee, start_date, end_date, leave_rule=leave_rule, comment=comment,
        )
    report(
        state.output,
        leave,
        f"Created leave request {leave.id} for employee {employee} ({start_date} to {end_date})",
    )


@leave_app.command("approve")
def leave_approve(
    ctx: typer.Context,
    leave_id: str = typer.Argument(..., metavar="ID", help="Leave request ID."),
) -> None:
    """Approve a leave request."""
    state = get_app_state(ctx)
    lid = parse_id(leave_id, "leave")
    with state.open_client() as client:
        client.leave.approve(lid)
    report(state.output, {"Id": lid, "Status": "Approved"}, f"Leave request {lid} approved")


@leave_app.command("decline")
def leave_decline(
    ctx: typer.Context,
    leave_id: str = typer.Argument(..., metavar="ID", help="Leave request ID."),
    comment: str = typer.Option("", "--comment", help="Reason for declining."),
    yes: bool = YesOption,
) -> None:
    """Decline a leave request."""
    state = get_app_state(ctx)
    lid = parse_id(leave_id, "leave")
    confirm_destructive(state.output, yes, f"Are you sure you want to decline leave request {lid}?")
    with state.open_client() as client:
        client.leave.decline(lid, comment)
    report(state.output, {"Id": lid, "Status": "Declined"}, f"Leave request {lid} declined")

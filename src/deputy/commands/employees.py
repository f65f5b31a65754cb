"""Employees commands -- browse and manage staff records.

Terminating or deleting an employee asks for confirmation unless ``--yes``
is given or the output mode is JSON.
"""

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
    require_date,
    yes_no,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.models import Employee
from deputy.output import Column

employees_app = typer.Typer(no_args_is_help=True)

EMPLOYEE_COLUMNS = (
    Column("ID", lambda e: str(e.id)),
    Column("NAME", lambda e: e.display_name),
    Column("EMAIL", lambda e: e.email),
    Column("ACTIVE", lambda e: yes_no(e.active)),
)


def employee_fields(employee: Employee) -> list[tuple[str, object]]:
    return [
        ("ID", employee.id),
        ("Name", employee.display_name),
        ("First Name", employee.first_name),
        ("Last Name", employee.last_name),
        ("Email", employee.email),
        ("Mobile", employee.mobile),
        ("Active", employee.active),
        ("Company", employee.company),
    ]


def employee_name(employee: Employee) -> str:
    return employee.display_name or f"{employee.first_name} {employee.last_name}".strip()


@employees_app.command("list")
def employees_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List employees."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        employees = client.employees.list(limit=limit, offset=offset)
    state.output.for_list(limit, offset, fail_empty).render_list(employees, EMPLOYEE_COLUMNS)


@employees_app.command("get")
def employees_get(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="ID", help="Employee ID."),
) -> None:
    """Show a single employee."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    with state.open_client() as client:
        employee = client.employees.get(emp_id)
    state.output.render_object(employee, employee_fields(employee))


@employees_app.command("add")
def employees_add(
    ctx: typer.Context,
    first_name: str = typer.Option(..., "--first-name", help="First name."),
    last_name: str = typer.Option(..., "--last-name", help="Last name."),
    company: int = typer.Option(..., "--company", help="Location (company) ID."),
    email: str = typer.Option("", "--email", help="Email address."),
    mobile: str = typer.Option("", "--mobile", help="Mobile number."),
    start_date: str = typer.Option("", "--start-date", help="Start date (YYYY-MM-DD)."),
    role: int = typer.Option(0, "--role", help="Role ID."),
) -> None:
    """Create an employee."""
    state = get_app_state(ctx)
    check_id_flag(company, "location")
    if not first_name.strip() or not last_name.strip():
        raise InvalidInputError("invalid name: --first-name and --last-name must not be empty")
    parse_date(start_date, "--start-date")
    with state.open_client() as client:
        employee = client.employees.create(
            first_name=first_name,
            last_name=last_name,
            company=company,
            email=email,
            mobile=mobile,
            start_date=start_date,
            role=role,
        )
    report(state.output, employee, f"Created employee {employee.id}: {employee_name(employee)}")


@employees_app.command("update")
def employees_update(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="ID", help="Employee ID."),
    first_name: str = typer.Option("", "--first-name", help="New first name."),
    last_name: str = typer.Option("", "--last-name", help="New last name."),
    email: str = typer.Option("", "--email", help="New email address."),
    mobile: str = typer.Option("", "--mobile", help="New mobile number."),
) -> None:
    """Update an employee's details."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    if not (first_name or last_name or email or mobile):
        raise InvalidInputError(
            "nothing to update: pass --first-name, --last-name, --email or --mobile"
        )
    with state.open_client() as client:
        employee = client.employees.update(
            emp_id, first_name=first_name, last_name=last_name, email=email, mobile=mobile,
        )
    report(state.output, employee, f"Updated employee {employee.id}: {employee_name(employee)}")


@employees_app.command("terminate")
def employees_terminate(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="ID", help="Employee ID."),
    termination_date: str = typer.Option(..., "--date", help="Termination date (YYYY-MM-DD)."),
    yes: bool = YesOption,
) -> None:
    """Terminate an employee."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    require_date(termination_date, "--date")
    confirm_destructive(state.output, yes, f"Are you sure you want to terminate employee {emp_id}?")
    with state.open_client() as client:
        client.employees.terminate(emp_id, termination_date)
    report(
        state.output,
        {"Id": emp_id, "Terminated": True, "TerminationDate": termination_date},
        f"Employee {emp_id} terminated as of {termination_date}",
    )


@employees_app.command("invite")
def employees_invite(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="ID", help="Employee ID."),
) -> None:
    """Send an app invitation to an employee."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    with state.open_client() as client:
        client.employees.invite(emp_id)
    report(state.output, {"Id": emp_id, "Invited": True}, f"Invitation sent to employee {emp_id}")


@employees_app.command("reactivate")
def employees_reactivate(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="ID", help="Employee ID."),
) -> None:
    """Reactivate a terminated employee."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    with state.open_client() as client:
        client.employees.reactivate(emp_id)
    report(state.output, {"Id": emp_id, "Active": True}, f"Employee {emp_id} reactivated")


@employees_app.command("delete")
def employees_delete(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="ID", help="Employee ID."),
    yes: bool = YesOption,
) -> None:
    """Delete an employee."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    confirm_destructive(state.output, yes, f"Are you sure you want to delete employee {emp_id}?")
    with state.open_client() as client:
        client.employees.delete(emp_id)
    report(state.output, {"Id": emp_id, "Deleted": True}, f"Employee {emp_id} deleted")


@employees_app.command("assign-location")
def employees_assign_location(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="EMPLOYEE_ID", help="Employee ID."),
    location: int = typer.Option(..., "--location", help="Location ID."),
) -> None:
    """Allow an employee to work at a location."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    check_id_flag(location, "location")
    with state.open_client() as client:
        client.employees.assign_location(emp_id, location)
    report(
        state.output,
        {"Id": emp_id, "Location": location, "Assigned": True},
        f"Employee {emp_id} assigned to location {location}",
    )


@employees_app.command("remove-location")
def employees_remove_location(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="EMPLOYEE_ID", help="Employee ID."),
    location: int = typer.Option(..., "--location", help="Location ID."),
) -> None:
    """Remove an employee from a location."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    check_id_flag(location, "location")
    with state.open_client() as client:
        client.employees.remove_location(emp_id, location)
    report(
        state.output,
        {"Id": emp_id, "Location": location, "Removed": True},
        f"Employee {emp_id} removed from location {location}",
    )


@employees_app.command("add-unavailability")
def employees_add_unavailability(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="EMPLOYEE_ID", help="Employee ID."),
    start_date: str = typer.Option(..., "--start-date", help="First unavailable day (YYYY-MM-DD)."),
    end_date: str = typer.Option(..., "--end-date", help="Last unavailable day (YYYY-MM-DD)."),
    comment: str = typer.Option("", "--comment", help="Reason shown to managers."),
) -> None:
    """Record a period when an employee cannot work."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    require_date(start_date, "--start-date")
    require_date(end_date, "--end-date")
    with state.open_client() as client:
        unavailability = client.employees.add_unavailability(emp_id, start_date, end_date, comment)
    report(
        state.output,
        unavailability,
        f"Added unavailability {unavailability.id} for employee {emp_id}",
    )

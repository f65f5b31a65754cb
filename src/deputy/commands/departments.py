"""Departments commands -- manage operational units.

Provides the ``deputy departments`` sub-command group::

    deputy departments list --limit 20
    deputy departments get 12
    deputy departments add --company 1 --name "Front of House"
    deputy departments update 12 --name "Kitchen" --active
    deputy departments delete 12 --yes
"""

from __future__ import annotations

from typing import Optional

import typer

from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    OffsetOption,
    YesOption,
    check_id_flag,
    check_page_flags,
    confirm_destructive,
    parse_id,
    report,
    yes_no,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.models import Department
from deputy.output import Column

departments_app = typer.Typer(no_args_is_help=True)

DEPARTMENT_COLUMNS = (
    Column("ID", lambda d: str(d.id)),
    Column("NAME", lambda d: d.company_name),
    Column("CODE", lambda d: d.company_code),
    Column("COMPANY", lambda d: str(d.company)),
    Column("ACTIVE", lambda d: yes_no(d.active)),
)


def department_fields(department: Department) -> list[tuple[str, object]]:
    return [
        ("ID", department.id),
        ("Name", department.company_name),
        ("Code", department.company_code),
        ("Company", department.company),
        ("Parent ID", department.parent_id),
        ("Sort Order", department.sort_order),
        ("Active", department.active),
    ]


@departments_app.command("list")
def departments_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List departments."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        departments = client.departments.list(limit=limit, offset=offset)
    state.output.for_list(limit, offset, fail_empty).render_list(departments, DEPARTMENT_COLUMNS)


@departments_app.command("get")
def departments_get(
    ctx: typer.Context,
    department_id: str = typer.Argument(..., metavar="ID", help="Department ID."),
) -> None:
    """Show a single department."""
    state = get_app_state(ctx)
    dept_id = parse_id(department_id, "department")
    with state.open_client() as client:
        department = client.departments.get(dept_id)
    state.output.render_object(department, department_fields(department))


@departments_app.command("add")
def departments_add(
    ctx: typer.Context,
    company: int = typer.Option(..., "--company", help="Location (company) ID."),
    name: str = typer.Option(..., "--name", help="Department name."),
    code: str = typer.Option("", "--code", help="Department code."),
    parent: int = typer.Option(0, "--parent", help="Parent department ID."),
    sort_order: int = typer.Option(0, "--sort-order", help="Sort order."),
) -> None:
    """Create a department."""
    state = get_app_state(ctx)
    check_id_flag(company, "location")
    if not name.strip():
        raise InvalidInputError("invalid --name: must not be empty")
    with state.open_client() as client:
        department = client.departments.create(
            company=company, name=name, code=code, parent_id=parent, sort_order=sort_order,
        )
    report(state.output, department, f"Created department {department.id}: {department.company_name}")


@departments_app.command("update")
def departments_update(
    ctx: typer.Context,
    department_id: str = typer.Argument(..., metavar="ID", help="Department ID."),
    name: str = typer.Option("", "--name", help="New name."),
    code: str = typer.Option("", "--code", help="New code."),
    active: Optional[bool] = typer.Option(
        None, "--active/--inactive", help="Activate or deactivate the department."
    ),
    sort_order: int = typer.Option(0, "--sort-order", help="New sort order."),
) -> None:
    """Update a department."""
    state = get_app_state(ctx)
    dept_id = parse_id(department_id, "department")
    if not (name or code or sort_order) and active is None:
        raise InvalidInputError(
            "nothing to update: pass --name, --code, --sort-order or --active/--inactive"
        )
    with state.open_client() as client:
        department = client.departments.update(
            dept_id, name=name, code=code, active=active, sort_order=sort_order,
        )
    report(state.output, department, f"Updated department {department.id}: {department.company_name}")


@departments_app.command("delete")
def departments_delete(
    ctx: typer.Context,
    department_id: str = typer.Argument(..., metavar="ID", help="Department ID."),
    yes: bool = YesOption,
) -> None:
    """Delete a department."""
    state = get_app_state(ctx)
    dept_id = parse_id(department_id, "department")
    confirm_destructive(state.output, yes, f"Are you sure you want to delete department {dept_id}?")
    with state.open_client() as client:
        client.departments.delete(dept_id)
    report(state.output, {"Id": dept_id, "Deleted": True}, f"Deleted department {dept_id}")

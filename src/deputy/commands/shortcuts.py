"""Top-level ``list`` and ``get`` shortcuts.

``deputy list emp`` runs ``deputy employees list`` and ``deputy get ts 42``
runs ``deputy timesheets get 42``. Names that are not a known alias are
matched case-insensitively against the API resource names and handled by
``resource query`` / ``resource get``, so ``deputy list employeeagreement``
works too. Global flags apply unchanged since the target command runs in
the same invocation.
"""

from __future__ import annotations

from typing import Any

import typer

from deputy.client import KNOWN_RESOURCES
from deputy.commands.common import FailEmptyOption, LimitOption, OffsetOption
from deputy.context import click_core

RESOURCE_ALIASES: dict[str, str] = {
    "employees": "employees",
    "employee": "employees",
    "emp": "employees",
    "e": "employees",
    "locations": "locations",
    "location": "locations",
    "loc": "locations",
    "timesheets": "timesheets",
    "timesheet": "timesheets",
    "ts": "timesheets",
    "t": "timesheets",
    "rosters": "rosters",
    "roster": "rosters",
    "shifts": "rosters",
    "shift": "rosters",
    "r": "rosters",
    "departments": "departments",
    "department": "departments",
    "dept": "departments",
    "area": "departments",
    "areas": "departments",
    "d": "departments",
    "leave": "leave",
    "webhooks": "webhooks",
    "webhook": "webhooks",
    "wh": "webhooks",
    "sales": "sales",
    "sale": "sales",
}

# Groups without a ``get`` command fetch single records generically.
GET_RESOURCES: dict[str, str] = {"sales": "SalesData"}


def resolve_resource_name(name: str) -> str:
    """Canonical API spelling of *name* when it is a known resource, else *name*."""
    key = name.strip().lower()
    for resource in KNOWN_RESOURCES:
        if resource.lower() == key:
            return resource
    return name


def _command(ctx: typer.Context, *path: str) -> Any:
    command: Any = ctx.find_root().command
    for name in path:
        command = command.get_command(ctx, name)
    return command


def list_command(
    ctx: typer.Context,
    resource: str = typer.Argument(..., metavar="RESOURCE", help="Resource or alias, e.g. emp."),
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List resources (shortcut for 'deputy <resource> list')."""
    group = RESOURCE_ALIASES.get(resource.strip().lower())
    if group is not None:
        ctx.invoke(_command(ctx, group, "list"), limit=limit, offset=offset, fail_empty=fail_empty)
        return
    ctx.invoke(
        _command(ctx, "resource", "query"),
        name=resolve_resource_name(resource),
        limit=limit,
        offset=offset,
        fail_empty=fail_empty,
    )


def get_command(
    ctx: typer.Context,
    resource: str = typer.Argument(..., metavar="RESOURCE", help="Resource or alias, e.g. emp."),
    record_id: str = typer.Argument(..., metavar="ID", help="Record ID."),
) -> None:
    """Show one resource by ID (shortcut for 'deputy <resource> get <id>')."""
    group = RESOURCE_ALIASES.get(resource.strip().lower())
    if group is not None and group not in GET_RESOURCES:
        target = _command(ctx, group, "get")
        argument = next(p for p in target.params if isinstance(p, click_core.Argument))
        ctx.invoke(target, **{argument.name: record_id})
        return
    name = GET_RESOURCES[group] if group is not None else resolve_resource_name(resource)
    ctx.invoke(_command(ctx, "resource", "get"), name=name, record_id=record_id)

"""Resource commands -- generic access to any Deputy resource type.

``resource list`` prints the resource names deputy knows about and
``resource info`` shows a resource's schema. ``resource query`` pages through
the records of a resource and ``resource get`` fetches one record as
returned by the API.
"""

from __future__ import annotations

import typer

from deputy.client import KNOWN_RESOURCES
from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    check_page_flags,
    parse_id,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.output import Column

resource_app = typer.Typer(no_args_is_help=True)

RESOURCE_COLUMNS = (Column("RESOURCE", str),)


def _check_name(name: str) -> str:
    name = name.strip()
    if not name or not name.isalnum():
        raise InvalidInputError(f"invalid resource name: {name!r}")
    return name


@resource_app.command("list")
def resource_list(ctx: typer.Context, fail_empty: bool = FailEmptyOption) -> None:
    """List known resource types."""
    state = get_app_state(ctx)
    state.output.for_list(fail_empty=fail_empty).render_list(list(KNOWN_RESOURCES), RESOURCE_COLUMNS)


@resource_app.command("info")
def resource_info(
    ctx: typer.Context,
    name: str = typer.Argument(..., metavar="RESOURCE", help="Resource name, e.g. Employee."),
) -> None:
    """Show the schema of a resource."""
    state = get_app_state(ctx)
    resource_name = _check_name(name)
    with state.open_client() as client:
        info = client.resource(resource_name).info()

    output = state.output
    if output.is_json:
        output.render_object(info.model_dump(mode="json"))
        return

    output.print_data(f"Resource: {info.name or resource_name}")
    output.print_data("")
    output.print_data("Fields:")
    for field_name in sorted(info.fields):
        output.print_data(f"  {field_name}: {info.fields[field_name]}")

    if isinstance(info.assocs, dict) and info.assocs:
        output.print_data("")
        output.print_data("Associations:")
        for assoc in info.association_names():
            output.print_data(f"  {assoc}: {info.assocs[assoc]}")
    elif info.association_names():
        output.print_data("")
        output.print_data("Associations:")
        for assoc in info.association_names():
            output.print_data(f"  {assoc}")


@resource_app.command("get")
def resource_get(
    ctx: typer.Context,
    name: str = typer.Argument(..., metavar="RESOURCE", help="Resource name, e.g. Employee."),
    record_id: str = typer.Argument(..., metavar="ID", help="Record ID."),
) -> None:
    """Fetch one record of any resource."""
    state = get_app_state(ctx)
    resource_name = _check_name(name)
    rid = parse_id(record_id, resource_name)
    with state.open_client() as client:
        record = client.resource(resource_name).get(rid)
    state.output.render_object(record, [(key, record[key]) for key in sorted(record)])


@resource_app.command("query")
def resource_query(
    ctx: typer.Context,
    name: str = typer.Argument(..., metavar="RESOURCE", help="Resource name, e.g. EmployeeAgreement."),
    limit: int = LimitOption,
    offset: int = typer.Option(0, "--offset", "--start", help="Number of results to skip."),
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List records of any resource."""
    state = get_app_state(ctx)
    resource_name = _check_name(name)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        records = client.resource(resource_name).query(limit=limit, offset=offset)

    output = state.output.for_list(limit, offset, fail_empty)
    if output.is_json:
        output.render_list(records, RESOURCE_COLUMNS)
        return
    if not records:
        output.print_data("No results found")
        return
    output.print_data(f"Found {len(records)} result(s)")
    for index, record in enumerate(records, start=1):
        output.print_data("")
        output.print_data(f"--- Result {index} ---")
        for key in sorted(record):
            output.print_data(f"  {key}: {record[key]}")

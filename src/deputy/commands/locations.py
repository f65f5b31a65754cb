"""Locations commands -- workplaces (``Company`` records) and their settings."""

from __future__ import annotations

import typer

from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    OffsetOption,
    YesOption,
    check_page_flags,
    confirm_destructive,
    parse_id,
    parse_json_object,
    report,
    yes_no,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.models import Location
from deputy.output import Column

locations_app = typer.Typer(no_args_is_help=True)


def location_code(location: Location) -> str:
    return location.code or location.company_code


LOCATION_COLUMNS = (
    Column("ID", lambda loc: str(loc.id)),
    Column("NAME", lambda loc: loc.company_name),
    Column("CODE", location_code),
    Column("ACTIVE", lambda loc: yes_no(loc.active)),
)


@locations_app.command("list")
def locations_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List locations."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        locations = client.locations.list(limit=limit, offset=offset)
    state.output.for_list(limit, offset, fail_empty).render_list(locations, LOCATION_COLUMNS)


@locations_app.command("get")
def locations_get(
    ctx: typer.Context,
    location_id: str = typer.Argument(..., metavar="ID", help="Location ID."),
) -> None:
    """Show a single location."""
    state = get_app_state(ctx)
    loc_id = parse_id(location_id, "location")
    with state.open_client() as client:
        location = client.locations.get(loc_id)
    state.output.render_object(
        location,
        [
            ("ID", location.id),
            ("Name", location.company_name),
            ("Code", location_code(location)),
            ("Address", location.address_text()),
            ("Timezone", location.timezone),
            ("Active", location.active),
        ],
    )


@locations_app.command("add")
def locations_add(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Location name."),
    code: str = typer.Option("", "--code", help="Short code."),
    address: str = typer.Option("", "--address", help="Street address."),
    timezone: str = typer.Option("", "--timezone", help="IANA timezone, e.g. Australia/Sydney."),
) -> None:
    """Create a location."""
    state = get_app_state(ctx)
    if not name.strip():
        raise InvalidInputError("invalid --name: must not be empty")
    with state.open_client() as client:
        location = client.locations.create(name, code=code, address=address, timezone=timezone)
    report(state.output, location, f"Created location {location.id}: {location.company_name or name}")


@locations_app.command("update")
def locations_update(
    ctx: typer.Context,
    location_id: str = typer.Argument(..., metavar="ID", help="Location ID."),
    name: str = typer.Option("", "--name", help="New name."),
    code: str = typer.Option("", "--code", help="New short code."),
    address: str = typer.Option("", "--address", help="New street address."),
    timezone: str = typer.Option("", "--timezone", help="New timezone."),
) -> None:
    """Update a location."""
    state = get_app_state(ctx)
    loc_id = parse_id(location_id, "location")
    if not (name or code or address or timezone):
        raise InvalidInputError("nothing to update: pass --name, --code, --address or --timezone")
    with state.open_client() as client:
        location = client.locations.update(
            loc_id, name=name, code=code, address=address, timezone=timezone,
        )
    report(state.output, location, f"Updated location {loc_id}: {location.company_name or name}")


@locations_app.command("archive")
def locations_archive(
    ctx: typer.Context,
    location_id: str = typer.Argument(..., metavar="ID", help="Location ID."),
    yes: bool = YesOption,
) -> None:
    """Archive a location."""
    state = get_app_state(ctx)
    loc_id = parse_id(location_id, "location")
    confirm_destructive(state.output, yes, f"Are you sure you want to archive location {loc_id}?")
    with state.open_client() as client:
        client.locations.archive(loc_id)
    report(state.output, {"Id": loc_id, "Archived": True}, f"Location {loc_id} archived")


@locations_app.command("delete")
def locations_delete(
    ctx: typer.Context,
    location_id: str = typer.Argument(..., metavar="ID", help="Location ID."),
    yes: bool = YesOption,
) -> None:
    """Delete a location."""
    state = get_app_state(ctx)
    loc_id = parse_id(location_id, "location")
    confirm_destructive(state.output, yes, f"Are you sure you want to delete location {loc_id}?")
    with state.open_client() as client:
        client.locations.delete(loc_id)
    report(state.output, {"Id": loc_id, "Deleted": True}, f"Location {loc_id} deleted")


@locations_app.command("settings")
def locations_settings(
    ctx: typer.Context,
    location_id: str = typer.Argument(..., metavar="ID", help="Location ID."),
) -> None:
    """Show the settings of a location."""
    state = get_app_state(ctx)
    loc_id = parse_id(location_id, "location")
    with state.open_client() as client:
        settings = client.locations.settings(loc_id)

    output = state.output
    if output.is_json:
        output.render_object(settings)
        return
    output.print_data(f"Location {settings.id or loc_id} Settings:")
    for key in sorted(settings.settings):
        output.print_data(f"  {key}: {settings.settings[key]}")


@locations_app.command("settings-update")
def locations_settings_update(
    ctx: typer.Context,
    location_id: str = typer.Argument(..., metavar="ID", help="Location ID."),
    settings: str = typer.Option(
        ..., "--settings", help='Settings as a JSON object, e.g. \'{"TimesheetRounding": 15}\'.'
    ),
) -> None:
    """Change settings of a location."""
    state = get_app_state(ctx)
    loc_id = parse_id(location_id, "location")
    values = parse_json_object(settings, "--settings")
    if not values:
        raise InvalidInputError("invalid --settings: no settings given")
    with state.open_client() as client:
        client.locations.update_settings(loc_id, values)
    report(
        state.output,
        {"Id": loc_id, "Settings": values},
        f"Updated settings for location {loc_id}",
    )

"""Pay commands -- award library and employee agreements.

Provides the ``deputy pay`` sub-command group::

    deputy pay awards list --limit 10
    deputy pay awards get hospitality-award
    deputy pay awards set 42 --award hospitality-award --country au --override 304:31.50
    deputy pay agreements list --employee 42 --active-only
    deputy pay agreements update 7 --base-rate 29.5
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    OffsetOption,
    check_id_flag,
    check_page_flags,
    parse_id,
    parse_json_object,
    report,
    yes_no,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.models import Agreement
from deputy.output import Column, apply_pagination

pay_app = typer.Typer(no_args_is_help=True)
awards_app = typer.Typer(no_args_is_help=True)
agreements_app = typer.Typer(no_args_is_help=True)
pay_app.add_typer(awards_app, name="awards", help="Award library.")
pay_app.add_typer(agreements_app, name="agreements", help="Employee pay agreements.")


def first_value(record: dict[str, Any], *keys: str) -> str:
    """The first of *keys* present (and not null) in *record*, as text."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return str(value)
    return ""


AWARD_COLUMNS = (
    Column("CODE", lambda a: first_value(a, "AwardCode", "Code", "Id")),
    Column("NAME", lambda a: first_value(a, "Name", "AwardName", "Description")),
    Column("COUNTRY", lambda a: first_value(a, "CountryCode", "Country")),
)


def base_rate_text(agreement: Agreement) -> str:
    return "" if agreement.base_rate is None else f"{agreement.base_rate:.2f}"


AGREEMENT_COLUMNS = (
    Column("ID", lambda a: str(a.id)),
    Column("EMPLOYEE", lambda a: str(a.employee)),
    Column("ACTIVE", lambda a: yes_no(a.active)),
    Column("BASE RATE", base_rate_text),
)


def parse_override(value: str) -> tuple[str, float]:
    """Parse ``<pay rule id>:<hourly rate>`` (``=`` is accepted too).

    Raises:
        InvalidInputError: Malformed pair or a rate that is not positive.
    """
    rule_id = rate_text = ""
    for separator in ("=", ":"):
        if separator in value:
            rule_id, _, rate_text = value.partition(separator)
            break
    if not rule_id or not rate_text:
        raise InvalidInputError(f"invalid override {value!r} (expected payRuleId:hourlyRate)")
    try:
        rate = float(rate_text)
    except ValueError:
        raise InvalidInputError(f"invalid override rate {rate_text!r}") from None
    if rate <= 0:
        raise InvalidInputError(f"invalid override rate {rate_text!r} (must be greater than 0)")
    return rule_id, rate


# --- awards ---


@awards_app.command("list")
def awards_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List awards in the library."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        awards = client.pay.awards()
    state.output.for_list(limit, offset, fail_empty).render_list(
        apply_pagination(awards, offset, limit), AWARD_COLUMNS
    )


@awards_app.command("get")
def awards_get(
    ctx: typer.Context,
    award_code: str = typer.Argument(..., metavar="AWARD_CODE", help="Award code."),
) -> None:
    """Show an award from the library."""
    state = get_app_state(ctx)
    if not award_code.strip():
        raise InvalidInputError("invalid award code: must not be empty")
    with state.open_client() as client:
        award = client.pay.award(award_code)

    if state.output.is_json:
        state.output.render_object(award)
        return
    for key in sorted(award):
        state.output.print_data(f"{key}: {award[key]}")


@awards_app.command("set")
def awards_set(
    ctx: typer.Context,
    employee_id: str = typer.Argument(..., metavar="EMPLOYEE_ID", help="Employee ID."),
    award: str = typer.Option(..., "--award", help="Award code from the library."),
    country: str = typer.Option(..., "--country", help="Country code, e.g. au."),
    overrides: Optional[list[str]] = typer.Option(
        None, "--override", help="Override a pay rule rate as payRuleId:hourlyRate (repeatable)."
    ),
) -> None:
    """Assign a library award to an employee."""
    state = get_app_state(ctx)
    emp_id = parse_id(employee_id, "employee")
    if not award.strip():
        raise InvalidInputError("invalid --award: must not be empty")
    if not country.strip():
        raise InvalidInputError("invalid --country: must not be empty")
    parsed = [parse_override(value) for value in overrides or []]
    with state.open_client() as client:
        result = client.pay.set_award(emp_id, country, award, parsed)
    report(
        state.output,
        result if result is not None else {"Employee": emp_id, "AwardCode": award},
        f"Assigned award {award} to employee {emp_id}",
    )


# --- agreements ---


def agreement_fields(agreement: Agreement) -> list[tuple[str, object]]:
    fields: list[tuple[str, object]] = [
        ("ID", agreement.id),
        ("Employee", agreement.employee),
        ("Active", agreement.active),
    ]
    if agreement.base_rate is not None:
        fields.append(("Base Rate", base_rate_text(agreement)))
    if agreement.config is not None:
        fields.append(("Config", agreement.config))
    return fields


@agreements_app.command("list")
def agreements_list(
    ctx: typer.Context,
    employee: int = typer.Option(..., "--employee", help="Employee ID."),
    active_only: bool = typer.Option(False, "--active-only", help="Only active agreements."),
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List an employee's agreements."""
    state = get_app_state(ctx)
    check_id_flag(employee, "employee")
    check_page_flags(limit, offset)
    with state.open_client() as client:
        agreements = client.pay.agreements(employee, active_only=active_only)
    state.output.for_list(limit, offset, fail_empty).render_list(
        apply_pagination(agreements, offset, limit), AGREEMENT_COLUMNS
    )


@agreements_app.command("get")
def agreements_get(
    ctx: typer.Context,
    agreement_id: str = typer.Argument(..., metavar="ID", help="Agreement ID."),
) -> None:
    """Show a single agreement."""
    state = get_app_state(ctx)
    aid = parse_id(agreement_id, "agreement")
    with state.open_client() as client:
        agreement = client.pay.agreement(aid)
    state.output.render_object(agreement, agreement_fields(agreement))


@agreements_app.command("update")
def agreements_update(
    ctx: typer.Context,
    agreement_id: str = typer.Argument(..., metavar="ID", help="Agreement ID."),
    base_rate: Optional[float] = typer.Option(None, "--base-rate", help="New base hourly rate."),
    config: Optional[str] = typer.Option(None, "--config", help="Agreement config as a JSON object."),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", help="File holding the agreement config JSON."
    ),
) -> None:
    """Change an agreement's base rate or config."""
    state = get_app_state(ctx)
    aid = parse_id(agreement_id, "agreement")
    if base_rate is None and config is None and config_file is None:
        raise InvalidInputError("at least one of --base-rate, --config or --config-file is required")
    if base_rate is not None and base_rate <= 0:
        raise InvalidInputError("invalid --base-rate: must be greater than 0")
    if config is not None and config_file is not None:
        raise InvalidInputError("use either --config or --config-file, not both")

    config_data = None
    if config is not None:
        config_data = parse_json_object(config, "--config")
    elif config_file is not None:
        try:
            text = config_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidInputError(f"cannot read --config-file {config_file}: {exc}") from exc
        config_data = parse_json_object(text, "--config-file")

    with state.open_client() as client:
        agreement = client.pay.update_agreement(aid, base_rate=base_rate, config=config_data)
    report(state.output, agreement, f"Updated agreement {agreement.id or aid}")

"""Sales commands -- sales figures used for labour forecasting."""

from __future__ import annotations

from datetime import datetime

import typer

from deputy.commands.common import (
    FailEmptyOption,
    LimitOption,
    OffsetOption,
    check_id_flag,
    check_page_flags,
    report,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.output import Column, apply_pagination

sales_app = typer.Typer(no_args_is_help=True)


def timestamp_text(timestamp: int) -> str:
    """Format a Unix timestamp as local ISO 8601 with offset; ``-`` when unset."""
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp).astimezone().isoformat(timespec="seconds")


SALES_COLUMNS = (
    Column("ID", lambda s: str(s.id)),
    Column("COMPANY", lambda s: str(s.company)),
    Column("TIMESTAMP", lambda s: timestamp_text(s.timestamp)),
    Column("VALUE", lambda s: f"{s.value:.2f}"),
    Column("TYPE", lambda s: s.type),
)


@sales_app.command("list")
def sales_list(
    ctx: typer.Context,
    company: int = typer.Option(0, "--company", help="Only sales of this location."),
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List sales data."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    if company < 0:
        raise InvalidInputError(f"invalid location ID: {company}")
    with state.open_client() as client:
        sales = client.sales.list(company)
    state.output.for_list(limit, offset, fail_empty).render_list(
        apply_pagination(sales, offset, limit), SALES_COLUMNS
    )


@sales_app.command("add")
def sales_add(
    ctx: typer.Context,
    company: int = typer.Option(..., "--company", help="Location (company) ID."),
    timestamp: int = typer.Option(..., "--timestamp", help="Time of the sale (Unix timestamp)."),
    value: float = typer.Option(0.0, "--value", help="Sales value."),
    area: int = typer.Option(0, "--area", help="Area (operational unit) ID."),
    sales_type: str = typer.Option("", "--type", help="Sales type, e.g. Sales or Transactions."),
) -> None:
    """Record a sales data point."""
    state = get_app_state(ctx)
    check_id_flag(company, "location")
    if timestamp <= 0:
        raise InvalidInputError(f"invalid --timestamp {timestamp}: must be a positive Unix timestamp")
    with state.open_client() as client:
        sale = client.sales.add(company, timestamp, value, area=area, sales_type=sales_type)
    report(state.output, sale, f"Created sales data {sale.id} for company {sale.company or company}")

"""Webhooks commands -- manage event subscriptions."""

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
    report,
    yes_no,
)
from deputy.context import get_app_state
from deputy.exceptions import InvalidInputError
from deputy.output import Column

webhooks_app = typer.Typer(no_args_is_help=True)

WEBHOOK_COLUMNS = (
    Column("ID", lambda w: str(w.id)),
    Column("TOPIC", lambda w: w.topic),
    Column("URL", lambda w: w.url),
    Column("ENABLED", lambda w: yes_no(w.enabled)),
)


@webhooks_app.command("list")
def webhooks_list(
    ctx: typer.Context,
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List webhooks."""
    state = get_app_state(ctx)
    check_page_flags(limit, offset)
    with state.open_client() as client:
        webhooks = client.webhooks.list(limit=limit, offset=offset)
    state.output.for_list(limit, offset, fail_empty).render_list(webhooks, WEBHOOK_COLUMNS)


@webhooks_app.command("get")
def webhooks_get(
    ctx: typer.Context,
    webhook_id: str = typer.Argument(..., metavar="ID", help="Webhook ID."),
) -> None:
    """Show a single webhook."""
    state = get_app_state(ctx)
    wid = parse_id(webhook_id, "webhook")
    with state.open_client() as client:
        webhook = client.webhooks.get(wid)
    state.output.render_object(
        webhook,
        [
            ("ID", webhook.id),
            ("Topic", webhook.topic),
            ("URL", webhook.url),
            ("Type", webhook.type),
            ("Enabled", webhook.enabled),
        ],
    )


@webhooks_app.command("delete")
def webhooks_delete(
    ctx: typer.Context,
    webhook_id: str = typer.Argument(..., metavar="ID", help="Webhook ID."),
    yes: bool = YesOption,
) -> None:
    """Delete a webhook."""
    state = get_app_state(ctx)
    wid = parse_id(webhook_id, "webhook")
    confirm_destructive(state.output, yes, f"Are you sure you want to delete webhook {wid}?")
    with state.open_client() as client:
        client.webhooks.delete(wid)
    report(state.output, {"Id": wid, "Deleted": True}, f"Deleted webhook {wid}")


@webhooks_app.command("add")
def webhooks_add(
    ctx: typer.Context,
    topic: str = typer.Option(..., "--topic", help="Event topic, e.g. Timesheet.Insert."),
    url: str = typer.Option(..., "--url", help="URL the event is delivered to."),
    webhook_type: str = typer.Option("", "--type", help="Delivery type, e.g. URL."),
    enabled: bool = typer.Option(True, "--enabled/--disabled", help="Enable the webhook."),
) -> None:
    """Create a webhook."""
    state = get_app_state(ctx)
    if not topic.strip():
        raise InvalidInputError("invalid --topic: must not be empty")
    if not url.startswith(("http://", "https://")):
        raise InvalidInputError(f"invalid --url {url!r}: must start with http:// or https://")
    with state.open_client() as client:
        webhook = client.webhooks.create(topic, url, webhook_type=webhook_type, enabled=enabled)
    report(state.output, webhook, f"Created webhook {webhook.id} for topic {webhook.topic or topic}")

"""Management commands -- memos to staff and employee journal entries."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

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

management_app = typer.Typer(no_args_is_help=True)
memo_app = typer.Typer(no_args_is_help=True)
journal_app = typer.Typer(no_args_is_help=True)
management_app.add_typer(memo_app, name="memo", help="Memos shown on the news feed.")
management_app.add_typer(journal_app, name="journal", help="Journal entries about employees.")

PREVIEW_LENGTH = 50


def created_date(timestamp: int) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


def preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


MEMO_COLUMNS = (
    Column("ID", lambda m: str(m.id)),
    Column("CREATED", lambda m: created_date(m.created)),
    Column("CONTENT", lambda m: preview(m.content)),
)

JOURNAL_COLUMNS = (
    Column("ID", lambda j: str(j.id)),
    Column("CREATED", lambda j: created_date(j.created)),
    Column("COMMENT", lambda j: preview(j.comment)),
)


@memo_app.command("list")
def memo_list(
    ctx: typer.Context,
    company: int = typer.Option(..., "--company", help="Location (company) ID."),
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List memos of a location."""
    state = get_app_state(ctx)
    check_id_flag(company, "location")
    check_page_flags(limit, offset)
    with state.open_client() as client:
        memos = client.management.memos(company)
    state.output.for_list(limit, offset, fail_empty).render_list(
        apply_pagination(memos, offset, limit), MEMO_COLUMNS
    )


@memo_app.command("add")
def memo_add(
    ctx: typer.Context,
    company: int = typer.Option(..., "--company", help="Location (company) ID."),
    content: str = typer.Option(..., "--content", help="Memo text."),
    locations: Optional[list[int]] = typer.Option(
        None, "--location", help="Location to show the memo at (repeatable)."
    ),
    employees: Optional[list[int]] = typer.Option(
        None, "--employee", help="Employee to show the memo to (repeatable)."
    ),
) -> None:
    """Post a memo to locations or employees."""
    state = get_app_state(ctx)
    check_id_flag(company, "location")
    if not content.strip():
        raise InvalidInputError("invalid --content: must not be empty")
    if not locations and not employees:
        raise InvalidInputError("at least one --location or --employee is required")
    with state.open_client() as client:
        memo = client.management.create_memo(
            company, content, locations=locations or [], employees=employees or [],
        )
    report(state.output, memo, f"Created memo {memo.id}")


@journal_app.command("list")
def journal_list(
    ctx: typer.Context,
    employee: int = typer.Option(..., "--employee", help="Employee ID."),
    limit: int = LimitOption,
    offset: int = OffsetOption,
    fail_empty: bool = FailEmptyOption,
) -> None:
    """List journal entries about an employee."""
    state = get_app_state(ctx)
    check_id_flag(employee, "employee")
    check_page_flags(limit, offset)
    with state.open_client() as client:
        journals = client.management.journals(employee)
    state.output.for_list(limit, offset, fail_empty).render_list(
        apply_pagination(journals, offset, limit), JOURNAL_COLUMNS
    )


@journal_app.command("add")
def journal_add(
    ctx: typer.Context,
    employee: int = typer.Option(..., "--employee", help="Employee ID."),
    company: int = typer.Option(..., "--company", help="Location (company) ID."),
    comment: str = typer.Option(..., "--comment", help="Journal text."),
    category: int = typer.Option(0, "--category", help="Journal category ID."),
) -> None:
    """Post a journal entry about an employee."""
    state = get_app_state(ctx)
    check_id_flag(employee, "employee")
    check_id_flag(company, "location")
    if not comment.strip():
        raise InvalidInputError("invalid --comment: must not be empty")
    with state.open_client() as client:
        journal = client.management.post_journal(employee, company, comment, category=category)
    report(
        state.output,
        journal,
        f"Posted journal {journal.id} for employee {journal.employee or employee}",
    )

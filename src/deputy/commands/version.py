"""Version command."""

from __future__ import annotations

import typer

from deputy import __version__
from deputy.context import get_app_state


def version_command(ctx: typer.Context) -> None:
    """Print version information."""
    output = get_app_state(ctx).output
    if output.is_json:
        output.render_object({"Version": __version__})
    else:
        output.print_data(f"deputy version {__version__}")

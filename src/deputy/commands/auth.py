"""Auth commands -- inspect and verify API credentials.

Credentials come from the environment (optionally seeded from ``.env``)::

    export DEPUTY_TOKEN=...        # required
    export DEPUTY_INSTALL=acme     # or DEPUTY_BASE_URL=https://acme.au.deputy.com
    export DEPUTY_GEO=au           # optional

    deputy auth status   # where credentials come from (token masked)
    deputy auth test     # call /me to verify them
"""

from __future__ import annotations

import typer

from deputy.config import load_credentials
from deputy.context import get_app_state
from deputy.exceptions import CredentialsError, DeputyError

auth_app = typer.Typer(no_args_is_help=True)

NOT_AUTHENTICATED = (
    "Not authenticated. Set DEPUTY_TOKEN and DEPUTY_INSTALL (env or .env) to configure."
)


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show the current authentication settings.

    Reports ``Not authenticated`` (exit 0) when no token is configured.
    Never calls the API.
    """
    state = get_app_state(ctx)
    output = state.output
    try:
        creds = load_credentials()
    except CredentialsError:
        if output.is_json:
            output.render_object({"Authenticated": False})
        else:
            output.print_data(NOT_AUTHENTICATED)
        return

    status = {
        "Authenticated": True,
        "Install": creds.install,
        "Region": creds.geo.upper(),
        "BaseURL": creds.base_url(),
        "Token": creds.masked_token(),
        "AuthScheme": creds.auth_scheme,
        "Source": creds.source,
    }
    output.render_object(
        status,
        [
            ("Install", status["Install"]),
            ("Region", status["Region"]),
            ("Base URL", status["BaseURL"]),
            ("Token", status["Token"]),
            ("Scheme", status["AuthScheme"]),
            ("Source", status["Source"]),
        ],
    )


@auth_app.command("test")
def auth_test(ctx: typer.Context) -> None:
    """Verify credentials by calling the ``/me`` endpoint."""
    state = get_app_state(ctx)
    with state.open_client() as client:
        try:
            me = client.me.info()
        except DeputyError as exc:
            raise DeputyError(f"authentication failed: {exc}") from exc

    output = state.output
    if output.is_json:
        output.render_object(
            {
                "Authenticated": True,
                "Name": me.name,
                "Email": me.primary_email,
                "EmployeeId": me.employee_id,
            }
        )
        return
    output.print_data("Authentication successful!")
    output.print_data(f"User: {me.name} ({me.primary_email})")
    output.print_data(f"ID:   {me.employee_id}")

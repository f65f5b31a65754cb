"""Built-in CLI sub-commands for deputy.

Each module exports a :class:`typer.Typer` sub-application for one API
area (``departments``, ``employees``, ``me``, ...) or, for single commands
like ``version``, a plain callback registered on the root app by
:func:`deputy.app.create_app`. Shared argument parsing and list flags live in
:mod:`~deputy.commands.common`.

Commands never pick exit codes or print errors themselves: they raise, and
the entry point classifies and formats the exception.
"""

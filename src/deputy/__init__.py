"""deputy -- command-line client for the Deputy workforce management API.

The CLI is built for two audiences at once: people at a terminal, who get
aligned tables and hints, and automation agents, who get JSON on stdout,
structured JSON errors on stderr, and a small set of stable exit codes.

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models and value types shared across the package.
    config: ``.env`` loading, credential and request settings resolution.
    exceptions: Exception hierarchy and the machine error taxonomy.
    exit_codes: Stable process exit codes and error classification.
    error_format: Human and JSON renderings of errors.
    output: Output-mode resolution and the result renderer.
    client: httpx-based Deputy API client.
"""

__version__ = "0.3.0"

"""Environment-driven configuration: dotenv loading, credentials, request settings.

deputy keeps no configuration files of its own. Everything comes from the
process environment, optionally seeded from a ``.env`` file:

* **Dotenv** -- :func:`load_dotenv_files` loads ``$DEPUTY_ENV_FILE`` when
  set, otherwise ``./.env`` followed by ``~/.openclaw/.env``. Variables
  already present in the environment are never overridden. Runs once per
  process.
* **Credentials** -- :func:`credentials_from_env` / :func:`load_credentials`
  read ``DEPUTY_TOKEN``, ``DEPUTY_INSTALL``, ``DEPUTY_GEO``,
  ``DEPUTY_BASE_URL`` and ``DEPUTY_AUTH_SCHEME``.
* **Request settings** -- :func:`load_request_config` reads
  ``DEPUTY_TIMEOUT`` and ``DEPUTY_MAX_RETRIES``.
* **Directories** -- :func:`get_data_dir` uses the XDG Base Directory
  layout on Linux/BSD and falls back to ``~/.deputy/`` elsewhere. Crash logs
  are written there.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from deputy.exceptions import ConfigError, CredentialsError
from deputy.models import Credentials, RequestConfig

logger = logging.getLogger(__name__)

_APP_NAME = "deputy"

ENV_FILE_VAR = "DEPUTY_ENV_FILE"
TOKEN_VAR = "DEPUTY_TOKEN"
INSTALL_VAR = "DEPUTY_INSTALL"
GEO_VAR = "DEPUTY_GEO"
BASE_URL_VAR = "DEPUTY_BASE_URL"
AUTH_SCHEME_VAR = "DEPUTY_AUTH_SCHEME"
TIMEOUT_VAR = "DEPUTY_TIMEOUT"
MAX_RETRIES_VAR = "DEPUTY_MAX_RETRIES"

_dotenv_loaded = False


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/deputy/`` (default ``~/.local/share/deputy/``).
    On macOS/Windows: ``~/.deputy/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Dotenv ---


def default_dotenv_paths() -> list[Path]:
    """Candidate ``.env`` files in load order when ``DEPUTY_ENV_FILE`` is unset."""
    return [Path.cwd() / ".env", Path.home() / ".openclaw" / ".env"]


def load_dotenv_files(force: bool = False) -> list[Path]:
    """Load ``.env`` files into ``os.environ`` without overriding existing values.

    Args:
        force: Load again even if this process already did.

    Returns:
        The files that existed and were loaded.
    """
    global _dotenv_loaded
    if _dotenv_loaded and not force:
        return []
    _dotenv_loaded = True

    explicit = os.environ.get(ENV_FILE_VAR, "").strip()
    candidates = [Path(explicit).expanduser()] if explicit else default_dotenv_paths()

    loaded: list[Path] = []
    for path in candidates:
        if not path.is_file():
            continue
        load_dotenv(path, override=False)
        logger.debug("Loaded environment from %s", path)
        loaded.append(path)
    return loaded


# --- Credentials ---


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def credentials_from_env() -> Optional[Credentials]:
    """Build :class:`Credentials` from the environment.

    Returns:
        The credentials, or ``None`` when ``DEPUTY_TOKEN`` is not set.

    Raises:
        ConfigError: ``DEPUTY_TOKEN`` is set but neither ``DEPUTY_INSTALL``
            nor ``DEPUTY_BASE_URL`` is.
    """
    token = _env(TOKEN_VAR)
    if not token:
        return None

    install = _env(INSTALL_VAR)
    base_url = _env(BASE_URL_VAR)
    if not install and not base_url:
        raise ConfigError(
            f"{TOKEN_VAR} is set, but neither {BASE_URL_VAR} nor {INSTALL_VAR} is set"
        )

    return Credentials(
        token=token,
        install=install.lower(),
        geo=_env(GEO_VAR).lower(),
        base_url_override=base_url,
        auth_scheme=_env(AUTH_SCHEME_VAR) or "Bearer",
        source="env",
    )


def load_credentials() -> Credentials:
    """Load dotenv files, then return credentials or raise.

    Raises:
        CredentialsError: No token is configured.
        ConfigError: The environment is incomplete.
    """
    load_dotenv_files()
    creds = credentials_from_env()
    if creds is None:
        raise CredentialsError(
            f"not authenticated: set {TOKEN_VAR} and {INSTALL_VAR} (or {BASE_URL_VAR})"
        )
    return creds


# --- Request settings ---


def load_request_config() -> RequestConfig:
    """Read ``DEPUTY_TIMEOUT`` (seconds) and ``DEPUTY_MAX_RETRIES``.

    Raises:
        ConfigError: A value is not a number or is negative.
    """
    config = RequestConfig()

    raw_timeout = _env(TIMEOUT_VAR)
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"invalid {TIMEOUT_VAR} {raw_timeout!r}: expected seconds") from None
        if timeout <= 0:
            raise ConfigError(f"invalid {TIMEOUT_VAR} {raw_timeout!r}: must be positive")
        config.timeout = timeout

    raw_retries = _env(MAX_RETRIES_VAR)
    if raw_retries:
        try:
            retries = int(raw_retries)
        except ValueError:
            raise ConfigError(f"invalid {MAX_RETRIES_VAR} {raw_retries!r}: expected an integer") from None
        if retries < 0:
            raise ConfigError(f"invalid {MAX_RETRIES_VAR} {raw_retries!r}: must not be negative")
        config.max_retries = retries

    return config

"""HTTP client module for deputy.

Provides :class:`DeputyClient`, a blocking client backed by
:class:`httpx.Client` with auth injection, retry with exponential backoff,
and mapping of failed responses onto :class:`~deputy.exceptions.APIError`.
Resource-specific calls live on the services in
:mod:`deputy.client.resources`.

Example::

    from deputy.client import DeputyClient

    with DeputyClient(credentials) as client:
        me = client.me.info()
"""

from deputy.client.resources import KNOWN_RESOURCES
from deputy.client.sync_client import DeputyClient

__all__ = ["DeputyClient", "KNOWN_RESOURCES"]

"""HTTP sessions for talking to the configured MicroMDM server."""

from __future__ import annotations

import requests

from mdmctl.core.config import ServerConfig


def skip_verify_session(skip_verify: bool) -> requests.Session:
    """Return a requests session, with certificate checks off if ``skip_verify``.

    Skipping verification allows self-signed server certificates.
    """
    session = requests.Session()
    if skip_verify:
        session.verify = False
    return session


def server_session(server: ServerConfig) -> requests.Session:
    """Return a session honouring the TLS policy of ``server``."""
    return skip_verify_session(server.skip_verify)

"""
mdmctl - command-line client configuration for MicroMDM.

Keeps named server profiles and tracks which one is active.
"""

from __future__ import annotations

__version__ = "0.1.0"

from mdmctl.core.config import (
    ClientConfig,
    ServerConfig,
    load_client_config,
    load_server_config,
)

__all__ = [
    "ClientConfig",
    "ServerConfig",
    "load_client_config",
    "load_server_config",
    "__version__",
]

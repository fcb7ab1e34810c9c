"""
Command handlers for mdmctl.

Each handler module exports:
- COMMANDS: list[str] - command names this handler serves
- run(args: list[str]) -> int - run the command, return the exit status
"""

from __future__ import annotations

import importlib
from functools import lru_cache
from pathlib import Path
from typing import Optional, Protocol


class CommandHandler(Protocol):
    """Protocol for command handler modules."""

    def run(self, args: list[str]) -> int:
        """Run the command.

        Args:
            args: Arguments following the command name

        Returns the process exit status.
        """
        ...


def _discover_handlers() -> dict[str, str]:
    """Discover handler modules and build command -> module mapping."""
    handlers = {}
    cli_dir = Path(__file__).parent
    for file in cli_dir.glob("*.py"):
        if file.name.startswith("_"):
            continue
        module_name = file.stem
        module = importlib.import_module(f".{module_name}", package="mdmctl.cli")
        for cmd in getattr(module, "COMMANDS", []):
            handlers[cmd] = module_name
    return handlers


# Build handler mapping at import time
KNOWN_HANDLERS = _discover_handlers()


def get_handler(command_name: str) -> Optional[CommandHandler]:
    """
    Get the handler module for a command.

    Returns None if no handler exists for the command.
    """
    module_name = KNOWN_HANDLERS.get(command_name)
    if not module_name:
        return None

    return _load_handler(module_name)


@lru_cache(maxsize=8)
def _load_handler(module_name: str) -> CommandHandler:
    """Load a handler module by name (cached within process)."""
    return importlib.import_module(f".{module_name}", package="mdmctl.cli")

"""mdmctl command-line entry point.

Dispatches ``mdmctl <command> [args]`` to the handler registered for
``<command>`` in :mod:`mdmctl.cli`.

Logging:
- Warnings and errors are rendered to stderr.
- If $MDMCTL_LOG names a file, every event from INFO up is also appended to
  it as a JSON line.

Exit codes:
- 0: Success.
- 1: Usage error, unknown command, or a failed config operation.
- 2: Invalid flags.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import structlog

from mdmctl.cli import get_handler

LOGGER_NAME = "mdmctl"
ENV_LOG = "MDMCTL_LOG"

USAGE = """USAGE
  mdmctl <COMMAND>

Available Commands:
  config    Manage the server profiles mdmctl connects to
"""


def setup_logging(log_path: Path | None = None) -> None:
    """Configure structlog on top of the ``mdmctl`` stdlib logger.

    Safe to call more than once; previous handlers are replaced.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.INFO)
    logger.propagate = False

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING)
    console.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False)
        )
    )
    logger.addHandler(console)

    if log_path is None:
        return
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return  # Logging is optional - don't fail the command
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
    )
    logger.addHandler(file_handler)


def _log_path_from_env() -> Path | None:
    value = os.environ.get(ENV_LOG)
    return Path(value).expanduser() if value else None


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    setup_logging(_log_path_from_env())

    if not args:
        print(USAGE)
        return 1
    if args[0] in ("help", "-h", "--help"):
        print(USAGE)
        return 0

    handler = get_handler(args[0].lower())
    if handler is None:
        print(USAGE)
        return 1
    return handler.run(args[1:])


if __name__ == "__main__":
    sys.exit(main())

"""Console entry point for the tuneboxed CLI."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from .. import logging_manager as log_mgr
from ..environment import load_environment
from .args import parse_cli_args
from .user_commands import execute_user_command

logger = log_mgr.get_logger("cli")


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    """Parse ``argv`` and run the selected command, returning its exit status."""

    load_environment()
    args = parse_cli_args(argv)
    command = getattr(args, "command", None)

    if command == "user":
        return execute_user_command(args)

    log_mgr.console_error("Unknown command: %s", command, logger_obj=logger)
    return 2


def main() -> None:
    sys.exit(run_cli())


__all__ = ["main", "run_cli"]

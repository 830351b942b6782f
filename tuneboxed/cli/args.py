"""Argument parsing helpers for the tuneboxed CLI."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence


def _add_shared_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a configuration JSON file (defaults to ~/.tuneboxed/config.json).",
    )
    parser.add_argument(
        "--store",
        dest="storage_path",
        help="Path to the account storage JSON file (defaults to ~/.tuneboxed/storage.json).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Emit debug logging.",
    )
    return parser


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must be zero or greater")
    return number


def _add_user_commands(user_parser: argparse.ArgumentParser) -> None:
    user_subparsers = user_parser.add_subparsers(dest="user_command", required=True)

    register_parser = user_subparsers.add_parser(
        "register", help="Create a new account and sign in", allow_abbrev=False
    )
    register_parser.add_argument("username", help="Username for the new account.")
    register_parser.add_argument("--email", required=True, help="Email address for the account.")
    register_parser.add_argument(
        "--password",
        help="Password for the new account (prompts interactively when omitted).",
    )
    register_parser.add_argument(
        "--confirm-password",
        dest="confirm_password",
        help="Password confirmation (defaults to --password, prompts when both are omitted).",
    )

    login_parser = user_subparsers.add_parser(
        "login", help="Sign in to an existing account", allow_abbrev=False
    )
    login_parser.add_argument("username", help="Username to authenticate.")
    login_parser.add_argument(
        "--password",
        help="Password for the account (prompts interactively when omitted).",
    )

    user_subparsers.add_parser("logout", help="Sign out of the current account", allow_abbrev=False)
    user_subparsers.add_parser(
        "whoami", help="Show the signed-in account", allow_abbrev=False
    )
    user_subparsers.add_parser("list", help="List registered accounts", allow_abbrev=False)

    profile_parser = user_subparsers.add_parser(
        "profile", help="Update profile fields of the signed-in account", allow_abbrev=False
    )
    profile_parser.add_argument("--first-name", dest="first_name")
    profile_parser.add_argument("--last-name", dest="last_name")
    profile_parser.add_argument("--bio")
    profile_parser.add_argument("--picture-url", dest="profile_picture_url")

    rename_parser = user_subparsers.add_parser(
        "rename", help="Change the username of the signed-in account", allow_abbrev=False
    )
    rename_parser.add_argument("new_username", help="The new username.")

    user_subparsers.add_parser(
        "verify", help="Mark the signed-in account as verified", allow_abbrev=False
    )

    counts_parser = user_subparsers.add_parser(
        "counts", help="Set follower/following/post counters", allow_abbrev=False
    )
    counts_parser.add_argument("--followers", type=_non_negative_int)
    counts_parser.add_argument("--following", type=_non_negative_int)
    counts_parser.add_argument("--posts", type=_non_negative_int)

    premium_parser = user_subparsers.add_parser(
        "premium", help="Change the premium flag of the signed-in account", allow_abbrev=False
    )
    premium_parser.add_argument("state", choices=["on", "off", "toggle"])


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tuneboxed", description="TuneBoxed account and session tools.", allow_abbrev=False
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    user_parser = subparsers.add_parser(
        "user", help="Manage tuneboxed accounts and the active session", allow_abbrev=False
    )
    _add_shared_arguments(user_parser)
    user_parser.set_defaults(command="user")
    _add_user_commands(user_parser)
    return parser


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse ``argv`` into a namespace; argparse exits with status 2 on usage errors."""

    return build_cli_parser().parse_args(argv)


__all__ = ["build_cli_parser", "parse_cli_args"]

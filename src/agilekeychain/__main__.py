# Agile Keychain - Console Entry Point
#
#   agilekeychain --path VAULT entries
#   agilekeychain --path VAULT unlock [-p PASSWORD]
#
# The vault path and logging options default to AGILEKEYCHAIN_* settings
# (environment or .env). Key bytes are never printed.

import argparse
import sys
from getpass import getpass
from typing import List, Optional

import structlog

from . import __version__
from .core import KeychainSettings, configure_logging
from .exceptions import KeychainError
from .keychain import AgileKeychain
from .keys.recovery import log_recovered_key

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser(settings: KeychainSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agilekeychain",
        description="Read a 1Password Agile Keychain vault directory",
    )

    parser.add_argument(
        "--path",
        default=settings.path,
        help="Vault directory (default: $AGILEKEYCHAIN_PATH)"
    )

    parser.add_argument(
        "--profile",
        default=settings.profile,
        help=f"Profile under data/ (default: {settings.profile})"
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})"
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=settings.log_json,
        help="Emit logs as JSON lines"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"agilekeychain v{__version__}"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("entries", help="List the entry index")

    unlock = commands.add_parser("unlock", help="Recover and validate the vault keys")
    unlock.add_argument(
        "-p", "--password",
        help="Master password (will prompt if omitted)"
    )

    return parser


def _list_entries(keychain: AgileKeychain) -> None:
    for entry in keychain.load_entries():
        try:
            stamp = entry.modified_at.strftime("%Y-%m-%d %H:%M")
        except (OverflowError, OSError, ValueError):
            stamp = str(entry.date)  # outside the platform's datetime range
        print(f"{stamp}  {entry.entry_type:<24} {entry.title}  {entry.site}".rstrip())


def _unlock(keychain: AgileKeychain, password: Optional[str]) -> None:
    password = password or getpass("Master password: ")
    if not password:
        raise SystemExit("Password is required")

    keys = keychain.unlock(password, on_recovered=log_recovered_key)
    for key in keys.values():
        print(f"{key.identifier}  {key.level}  {len(key.key)} bytes")
    print(f"{len(keys)} key(s) validated")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``agilekeychain`` console script."""
    settings = KeychainSettings.from_env()
    args = build_parser(settings).parse_args(argv)

    configure_logging(args.log_level, json_output=args.json_logs)
    log = structlog.get_logger("agilekeychain.cli")

    if not args.path:
        raise SystemExit("No vault path given (use --path or AGILEKEYCHAIN_PATH)")

    try:
        keychain = AgileKeychain(args.path, profile=args.profile)
        if args.command == "entries":
            _list_entries(keychain)
        else:
            _unlock(keychain, args.password)
    except KeychainError as e:
        log.error(
            "command_failed",
            command=args.command,
            error=type(e).__name__,
            identifier=e.identifier,
        )
        raise SystemExit(f"Error: {e}")

    log.info("command_completed", command=args.command, path=str(keychain.base_dir))
    return 0


if __name__ == "__main__":
    sys.exit(main())

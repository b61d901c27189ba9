"""CLI entry point: user-import [options] <file or pattern ...>"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

import requests

from scripts.user_import.config import load_config
from scripts.user_import.errors import (
    ConfigurationError,
    MissingSettingError,
    UserImportError,
)
from scripts.user_import.importer import UserImporter
from scripts.user_import.logging_config import configure_logging
from scripts.user_import.report import render_summary, write_results

logger = logging.getLogger("user_import.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="user-import",
        usage="%(prog)s [options] <file1 file2 pattern ...>",
        description="Import users into an Auth0 database connection",
    )
    parser.add_argument("files", nargs="*", help="Files or glob patterns to import")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=None,
        help="Write additional information into the output",
    )
    parser.add_argument(
        "-c", "--config-file",
        metavar="configuration.json",
        help="JSON configuration file. Command line options override it",
    )
    parser.add_argument(
        "-o", "--out",
        metavar="results.json",
        help="File where the detailed results will be stored",
    )
    parser.add_argument(
        "--auth0domain",
        metavar="*.auth0.com",
        help="Auth0 domain where the user accounts will be imported",
    )
    parser.add_argument(
        "--connection-name",
        metavar="name",
        help="Name of the connection into where the users will be imported",
    )
    parser.add_argument(
        "--client-id",
        metavar="client ID",
        help="Client ID used to obtain a Management API token",
    )
    parser.add_argument(
        "--client-secret",
        metavar="client secret",
        help="Client secret used to obtain a Management API token",
    )
    parser.add_argument(
        "--upsert",
        action="store_true",
        default=None,
        help="Update existing users (matched by email) as well as creating new ones",
    )
    parser.add_argument(
        "--email",
        action="store_true",
        default=None,
        help="Send a completion email once each import job finishes",
    )
    return parser


def _print_help_and_exit(
    parser: argparse.ArgumentParser, exit_code: int, message: Optional[str] = None
) -> None:
    if message:
        sys.stderr.write(f"{message}\n")
    parser.print_help(sys.stderr)
    sys.exit(exit_code)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    try:
        config = load_config(
            {
                "files": args.files or None,
                "domain": args.auth0domain,
                "client_id": args.client_id,
                "client_secret": args.client_secret,
                "connection_name": args.connection_name,
                "upsert": args.upsert,
                "email": args.email,
                "verbose": args.verbose,
                "out": args.out,
            },
            config_file=args.config_file,
        )
    except MissingSettingError as exc:
        _print_help_and_exit(parser, exc.exit_code, exc.message)
    except ConfigurationError as exc:
        _print_help_and_exit(parser, 1, exc.message)

    level = os.environ.get("LOG_LEVEL") or ("DEBUG" if config.verbose else "INFO")
    configure_logging(level, json_output=os.environ.get("LOG_FORMAT") == "json")

    try:
        stats = UserImporter.from_config(config).import_users(
            config.connection_name,
            config.files,
            upsert=config.upsert,
            email=config.email,
        )
    except (UserImportError, requests.RequestException) as exc:
        logger.debug("Import aborted", exc_info=True)
        sys.stderr.write(f"An error occurred while trying to import the files: {exc}\n")
        sys.exit(1)

    print(render_summary(stats))
    if config.out:
        try:
            write_results(config.out, stats)
        except OSError as exc:
            sys.stderr.write(f"Unable to write results file: {exc}\n")
            sys.exit(1)
        print(f"Detailed results saved to {config.out}\n")


if __name__ == "__main__":
    main()

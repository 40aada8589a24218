#!/usr/bin/env python3
"""
Bump the database schema version recorded in `.db-versions.yml`.

CI calls this when a PR carrying schema changes is merged:

    update-db-version 123
    Successfully updated DB version from 41 to 42 (PR #123)

Every failure prints one `Error: ...` line on stderr and exits with 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .errors import BumpError, UsageError
from .logging_utils import configure_logging
from .service import VersionBumper

logger = logging.getLogger(__name__)

PROG = "update-db-version"
USAGE_LINE = f"Usage: {PROG} PR_NUMBER"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = _ArgumentParser(prog=PROG, description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("pr_number", nargs="?", metavar="PR_NUMBER", help="Pull request that introduced the schema change")
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Version document (defaults to DB_VERSIONS_FILE or .db-versions.yml)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Report the bump without writing")
    parser.add_argument("--current", action="store_true", help="Print the current version and exit")
    parser.add_argument(
        "--lock-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the lock file (0 disables locking)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(argv)
    except UsageError as exc:
        print(f"Error: {exc.detail}", file=sys.stderr)
        print(USAGE_LINE, file=sys.stderr)
        return 1

    if args.pr_number is None and not args.current:
        print(USAGE_LINE, file=sys.stderr)
        return 1
    if args.pr_number is not None and args.current:
        print("Error: --current does not take a PR_NUMBER", file=sys.stderr)
        print(USAGE_LINE, file=sys.stderr)
        return 1

    try:
        config = load_config(
            document_path=args.file,
            lock_timeout_seconds=args.lock_timeout,
            log_level=args.log_level,
        )
        configure_logging(config.log_level)
        logger.debug("Arguments: %s", args)
        bumper = VersionBumper.from_config(config)

        if args.current:
            document = bumper.inspect()
            print(document.current_version)
            return 0

        result = bumper.bump(args.pr_number, dry_run=args.dry_run)
    except UsageError as exc:
        print(f"Error: {exc.detail}", file=sys.stderr)
        print(USAGE_LINE, file=sys.stderr)
        return 1
    except BumpError as exc:
        logger.debug("Bump failed with %s", exc.code)
        print(f"Error: {exc.detail}", file=sys.stderr)
        return 1

    if result.dry_run:
        print(
            f"Dry run: would update DB version from {result.old_version} "
            f"to {result.new_version} (PR #{result.pr_number})"
        )
    else:
        print(
            f"Successfully updated DB version from {result.old_version} "
            f"to {result.new_version} (PR #{result.pr_number})"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

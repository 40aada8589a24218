"""Version bumper: advance `current_version` and record the originating PR."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .config import DEFAULT_DOCUMENT_PATH, BumperConfig
from .document import document_lock, read_document, write_document
from .errors import DocumentNotFoundError, DuplicatePRError, UsageError
from .models import (
    BumpResult,
    VersionDocument,
    bumped_payload,
    find_pr,
    parse_current_version,
    parse_history,
)

logger = logging.getLogger(__name__)

_PR_PATTERN = re.compile(r"[0-9]+")


def coerce_pr_number(value: object) -> int:
    """Accept a non-negative int or an ASCII digit string; anything else is a usage error."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise UsageError("PR_NUMBER is required")
    if isinstance(value, bool):
        raise UsageError(f"PR_NUMBER must be a non-negative integer, got {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _PR_PATTERN.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        raise UsageError(f"PR_NUMBER must be a non-negative integer, got {value!r}")
    if number < 0:
        raise UsageError(f"PR_NUMBER must be a non-negative integer, got {value!r}")
    return number


class VersionBumper:
    """Performs one read-mutate-write cycle against the version document."""

    def __init__(self, path: Path | str = DEFAULT_DOCUMENT_PATH, *, lock_timeout_seconds: float = 5.0) -> None:
        self.path = Path(path)
        self.lock_timeout_seconds = lock_timeout_seconds

    @classmethod
    def from_config(cls, config: BumperConfig) -> "VersionBumper":
        return cls(config.document_path, lock_timeout_seconds=config.lock_timeout_seconds)

    def inspect(self) -> VersionDocument:
        """Load and validate the document without modifying it."""
        payload = read_document(self.path)
        return VersionDocument.from_payload(payload, str(self.path))

    def bump(self, pr_number: Optional[int | str], *, dry_run: bool = False) -> BumpResult:
        """
        Advance the document by one version on behalf of `pr_number`.

        Every failure raises a BumpError subclass before anything is written.
        """
        pr = coerce_pr_number(pr_number)
        if not self.path.is_file():
            raise DocumentNotFoundError(f"{self.path} not found")

        if dry_run:
            return self._apply(pr, dry_run=True)
        with document_lock(self.path, self.lock_timeout_seconds):
            return self._apply(pr, dry_run=False)

    def _apply(self, pr: int, *, dry_run: bool) -> BumpResult:
        source = str(self.path)
        payload = read_document(self.path)

        history = parse_history(payload, source)
        existing = find_pr(history, pr)
        if existing is not None:
            raise DuplicatePRError(f"PR #{pr} already exists in version history")

        old_version = parse_current_version(payload, source)
        new_version = old_version + 1
        logger.info("Bumping %s from %d to %d for PR #%d", source, old_version, new_version, pr)

        if dry_run:
            logger.info("Dry run: %s left unchanged", source)
        else:
            write_document(self.path, bumped_payload(payload, new_version, pr))
        return BumpResult(
            old_version=old_version,
            new_version=new_version,
            pr_number=pr,
            path=self.path,
            dry_run=dry_run,
        )


def bump_version(
    pr_number: Optional[int | str],
    path: Path | str = DEFAULT_DOCUMENT_PATH,
    *,
    dry_run: bool = False,
    lock_timeout_seconds: float = 5.0,
) -> BumpResult:
    bumper = VersionBumper(path, lock_timeout_seconds=lock_timeout_seconds)
    return bumper.bump(pr_number, dry_run=dry_run)

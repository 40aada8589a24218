"""Version document models and field parsers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .errors import MalformedDocumentError, VersionParseError

_VERSION_PATTERN = re.compile(r"[0-9]+")


class VersionRecord(BaseModel):
    """One history entry: the version a PR introduced."""

    version: StrictInt
    pr: StrictInt

    model_config = ConfigDict(extra="allow")


class VersionDocument(BaseModel):
    """Validated view of `.db-versions.yml`; unknown top-level keys ride along."""

    current_version: int = Field(..., ge=0)
    versions: list[VersionRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_payload(cls, payload: dict[str, Any], source: str) -> "VersionDocument":
        history = parse_history(payload, source)
        current = parse_current_version(payload, source)
        extras = {str(k): v for k, v in payload.items() if k not in ("current_version", "versions")}
        return cls(current_version=current, versions=history, **extras)

    @property
    def latest(self) -> Optional[VersionRecord]:
        return self.versions[0] if self.versions else None

    def find_record(self, pr_number: int) -> Optional[VersionRecord]:
        return find_pr(self.versions, pr_number)


@dataclass(frozen=True)
class BumpResult:
    old_version: int
    new_version: int
    pr_number: int
    path: Path
    dry_run: bool = False


def parse_history(payload: dict[str, Any], source: str) -> list[VersionRecord]:
    """Validate the `versions` sequence; a missing or null key is an empty history."""
    raw = payload.get("versions")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedDocumentError(f"versions in {source} must be a sequence")
    records: list[VersionRecord] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedDocumentError(f"versions[{index}] in {source} must be a mapping")
        try:
            records.append(VersionRecord.model_validate(item))
        except ValidationError as exc:
            fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
            raise MalformedDocumentError(
                f"versions[{index}] in {source} has invalid fields: {fields}"
            ) from exc
    return records


def parse_current_version(payload: dict[str, Any], source: str) -> int:
    """Return `current_version` as an int; digits-only strings are accepted."""
    value = payload.get("current_version")
    if isinstance(value, bool):
        raise VersionParseError(f"Failed to read current_version from {source}")
    if isinstance(value, int):
        if value < 0:
            raise VersionParseError(f"Failed to read current_version from {source}")
        return value
    if isinstance(value, str) and _VERSION_PATTERN.fullmatch(value):
        return int(value)
    raise VersionParseError(f"Failed to read current_version from {source}")


def find_pr(records: list[VersionRecord], pr_number: int) -> Optional[VersionRecord]:
    for record in records:
        if record.pr == pr_number:
            return record
    return None


def bumped_payload(payload: dict[str, Any], new_version: int, pr_number: int) -> dict[str, Any]:
    """Return a copy of the raw document with the version advanced and a record prepended.

    Key order and existing records are kept as read so the rewrite only
    touches the two tracked fields.
    """
    updated = dict(payload)
    updated["current_version"] = new_version
    history = list(payload.get("versions") or [])
    updated["versions"] = [{"version": new_version, "pr": pr_number}, *history]
    return updated

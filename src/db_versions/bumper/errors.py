"""Bumper error taxonomy and helpers."""

from __future__ import annotations


class BumpError(RuntimeError):
    """Stable failure surfaced with a reason code; the document is left untouched."""

    code = "BUMP_FAILED"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self.code}:{detail}")


class UsageError(BumpError):
    code = "USAGE"


class DocumentNotFoundError(BumpError):
    code = "DOCUMENT_MISSING"


class DuplicatePRError(BumpError):
    code = "DUPLICATE_PR"


class VersionParseError(BumpError):
    code = "VERSION_INVALID"


class MalformedDocumentError(BumpError):
    code = "DOCUMENT_MALFORMED"


class PersistError(BumpError):
    code = "PERSIST_FAILED"


class DocumentLockedError(BumpError):
    code = "DOCUMENT_LOCKED"

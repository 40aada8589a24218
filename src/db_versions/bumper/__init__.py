"""Database schema version bumper."""

from .config import BumperConfig, load_config
from .errors import (
    BumpError,
    DocumentLockedError,
    DocumentNotFoundError,
    DuplicatePRError,
    MalformedDocumentError,
    PersistError,
    UsageError,
    VersionParseError,
)
from .models import BumpResult, VersionDocument, VersionRecord
from .service import VersionBumper, bump_version

__all__ = [
    "BumpError",
    "BumpResult",
    "BumperConfig",
    "DocumentLockedError",
    "DocumentNotFoundError",
    "DuplicatePRError",
    "MalformedDocumentError",
    "PersistError",
    "UsageError",
    "VersionBumper",
    "VersionDocument",
    "VersionParseError",
    "VersionRecord",
    "bump_version",
    "load_config",
]

"""YAML read/write helpers for the version document (local file only)."""

from __future__ import annotations

import contextlib
import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml  # type: ignore

from .errors import DocumentLockedError, DocumentNotFoundError, MalformedDocumentError, PersistError

logger = logging.getLogger(__name__)

_LOCK_POLL_SECONDS = 0.05


class _DocumentLoader(yaml.SafeLoader):
    """Resolve only plain decimal digits as ints; hex, octal, sexagesimal, `_` and `+` forms stay strings."""


_INT_TAG = "tag:yaml.org,2002:int"

_DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _INT_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_DocumentLoader.add_implicit_resolver(_INT_TAG, re.compile(r"^-?[0-9]+$"), list("-0123456789"))


def _construct_decimal_int(loader: yaml.SafeLoader, node: yaml.nodes.ScalarNode) -> int:
    value = loader.construct_scalar(node)
    try:
        return int(value, 10)
    except ValueError as exc:
        raise yaml.constructor.ConstructorError(
            None, None, f"expected a decimal integer, found {value!r}", node.start_mark
        ) from exc


_DocumentLoader.add_constructor(_INT_TAG, _construct_decimal_int)


class _DocumentDumper(yaml.SafeDumper):
    """Indent block sequences under their parent key (`  - version: 1`)."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


def read_document(path: Path) -> dict[str, Any]:
    """
    Load the version document as a plain mapping.

    Raises
    ------
    DocumentNotFoundError
        If the file does not exist or cannot be read.
    MalformedDocumentError
        If the file is not valid YAML or its top level is not a mapping.
    """
    if not path.is_file():
        raise DocumentNotFoundError(f"{path} not found")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedDocumentError(f"{path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise DocumentNotFoundError(f"{path} could not be read: {exc}") from exc
    try:
        data = yaml.load(text, Loader=_DocumentLoader)
    except yaml.YAMLError as exc:
        raise MalformedDocumentError(f"{path} is not valid YAML: {exc}") from exc
    if data is None:
        raise MalformedDocumentError(f"{path} is empty")
    if not isinstance(data, dict):
        raise MalformedDocumentError(f"{path} must contain a mapping at the top level")
    return data


def render_document(payload: dict[str, Any]) -> str:
    return yaml.dump(
        payload,
        Dumper=_DocumentDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def write_document(path: Path, payload: dict[str, Any]) -> Path:
    """Replace the document in one step via a sibling temp file."""
    rendered = render_document(payload)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_text(rendered, encoding="utf-8")
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
        raise PersistError(f"failed to write {path}: {exc}") from exc
    logger.debug("Wrote %s (%d bytes)", path, len(rendered.encode("utf-8")))
    return path


@contextlib.contextmanager
def document_lock(path: Path, timeout_seconds: float) -> Iterator[Optional[Path]]:
    """Hold `<document>.lock` for the duration of the block; 0 disables locking."""
    if timeout_seconds <= 0:
        yield None
        return
    lock_path = path.with_suffix(path.suffix + ".lock")
    deadline = time.monotonic() + timeout_seconds
    while True:
        try:
            with lock_path.open("x", encoding="utf-8") as handle:
                handle.write(f"{os.getpid()}\n")
            break
        except FileExistsError:
            if time.monotonic() >= deadline:
                raise DocumentLockedError(
                    f"{lock_path} is held by another process (remove it if stale)"
                ) from None
            time.sleep(_LOCK_POLL_SECONDS)
        except OSError as exc:
            raise PersistError(f"failed to create {lock_path}: {exc}") from exc
    logger.debug("Acquired %s", lock_path)
    try:
        yield lock_path
    finally:
        lock_path.unlink(missing_ok=True)
        logger.debug("Released %s", lock_path)

from __future__ import annotations

from pathlib import Path

import pytest
import yaml  # type: ignore

from db_versions.bumper import (
    BumpResult,
    DocumentNotFoundError,
    DuplicatePRError,
    MalformedDocumentError,
    UsageError,
    VersionBumper,
    VersionParseError,
    bump_version,
)

BASE_DOC = """current_version: 41
versions:
  - version: 41
    pr: 120
"""


def _write(tmp_path: Path, text: str = BASE_DOC) -> Path:
    path = tmp_path / ".db-versions.yml"
    path.write_text(text, encoding="utf-8")
    return path


def test_bump_advances_version_and_prepends_record(tmp_path: Path) -> None:
    path = _write(tmp_path)

    result = VersionBumper(path).bump(123)

    assert result == BumpResult(old_version=41, new_version=42, pr_number=123, path=path)
    doc = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert doc["current_version"] == 42
    assert doc["versions"] == [{"version": 42, "pr": 123}, {"version": 41, "pr": 120}]
    assert not (tmp_path / ".db-versions.yml.lock").exists()
    assert not (tmp_path / ".db-versions.yml.tmp").exists()


def test_bump_accepts_digit_string_pr(tmp_path: Path) -> None:
    path = _write(tmp_path)

    result = bump_version("123", path)

    assert result.pr_number == 123
    assert yaml.safe_load(path.read_text())["versions"][0] == {"version": 42, "pr": 123}


def test_missing_pr_is_usage_error_before_file_access(tmp_path: Path) -> None:
    missing = tmp_path / "nope.yml"

    with pytest.raises(UsageError):
        VersionBumper(missing).bump(None)
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize("bad", ["", "abc", "12a", "-5", "\u00b2", "\u0663", "0x7b", -1, True])
def test_invalid_pr_is_usage_error(tmp_path: Path, bad: object) -> None:
    path = _write(tmp_path)

    with pytest.raises(UsageError):
        VersionBumper(path).bump(bad)  # type: ignore[arg-type]
    assert path.read_text(encoding="utf-8") == BASE_DOC


def test_missing_document(tmp_path: Path) -> None:
    with pytest.raises(DocumentNotFoundError) as exc:
        VersionBumper(tmp_path / ".db-versions.yml").bump(123)
    assert exc.value.code == "DOCUMENT_MISSING"
    assert "not found" in exc.value.detail
    assert list(tmp_path.iterdir()) == []


def test_duplicate_pr_leaves_document_unchanged(tmp_path: Path) -> None:
    path = _write(tmp_path)
    before = path.read_bytes()

    with pytest.raises(DuplicatePRError) as exc:
        VersionBumper(path).bump(120)

    assert exc.value.detail == "PR #120 already exists in version history"
    assert path.read_bytes() == before


def test_duplicate_is_checked_before_version(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        'current_version: "abc"\nversions:\n  - version: 41\n    pr: 120\n',
    )

    with pytest.raises(DuplicatePRError):
        VersionBumper(path).bump(120)


@pytest.mark.parametrize(
    "text",
    [
        'current_version: "abc"\nversions: []\n',
        "versions:\n  - version: 41\n    pr: 120\n",
        "current_version: -3\nversions: []\n",
        "current_version: 4.5\nversions: []\n",
        "current_version: true\nversions: []\n",
        "current_version:\nversions: []\n",
        "current_version: 0x29\nversions: []\n",
        "current_version: 4_1\nversions: []\n",
        "current_version: +41\nversions: []\n",
        "current_version: 0:41\nversions: []\n",
        "current_version: 0o51\nversions: []\n",
        "current_version: 1e3\nversions: []\n",
    ],
)
def test_unparseable_version_leaves_document_unchanged(tmp_path: Path, text: str) -> None:
    path = _write(tmp_path, text)

    with pytest.raises(VersionParseError) as exc:
        VersionBumper(path).bump(123)

    assert "Failed to read current_version" in exc.value.detail
    assert path.read_text(encoding="utf-8") == text


def test_digit_string_version_is_accepted(tmp_path: Path) -> None:
    path = _write(tmp_path, 'current_version: "7"\nversions: []\n')

    result = VersionBumper(path).bump(9)

    assert (result.old_version, result.new_version) == (7, 8)
    assert yaml.safe_load(path.read_text())["current_version"] == 8


@pytest.mark.parametrize(
    "text",
    [
        "current_version: 1\nversions: nope\n",
        "current_version: 1\nversions:\n  - 5\n",
        "current_version: 1\nversions:\n  - version: 1\n",
        "current_version: 1\nversions:\n  - version: 1\n    pr: abc\n",
        "- just\n- a list\n",
        "current_version: [1\n",
        "current_version: !!int 0x29\nversions: []\n",
        "current_version: 1\nversions:\n  - version: 1\n    pr: 0x78\n",
        "",
    ],
)
def test_malformed_document(tmp_path: Path, text: str) -> None:
    path = _write(tmp_path, text)

    with pytest.raises(MalformedDocumentError):
        VersionBumper(path).bump(123)
    assert path.read_text(encoding="utf-8") == text


def test_missing_history_starts_fresh(tmp_path: Path) -> None:
    path = _write(tmp_path, "current_version: 3\n")

    VersionBumper(path).bump(10)

    doc = yaml.safe_load(path.read_text())
    assert doc == {"current_version": 4, "versions": [{"version": 4, "pr": 10}]}


def test_failures_are_idempotent(tmp_path: Path) -> None:
    path = _write(tmp_path)
    before = path.read_bytes()
    bumper = VersionBumper(path)

    for _ in range(3):
        with pytest.raises(DuplicatePRError):
            bumper.bump(120)
        with pytest.raises(DocumentNotFoundError):
            VersionBumper(tmp_path / "other.yml").bump(121)

    assert path.read_bytes() == before
    assert sorted(p.name for p in tmp_path.iterdir()) == [".db-versions.yml"]


def test_sequential_bumps_are_monotonic(tmp_path: Path) -> None:
    path = _write(tmp_path)
    bumper = VersionBumper(path)
    prs = [200, 201, 202, 203, 204]

    for pr in prs:
        bumper.bump(pr)

    doc = yaml.safe_load(path.read_text())
    assert doc["current_version"] == 41 + len(prs)
    assert len(doc["versions"]) == 1 + len(prs)
    assert [r["version"] for r in doc["versions"]] == [46, 45, 44, 43, 42, 41]
    assert [r["pr"] for r in doc["versions"]] == [204, 203, 202, 201, 200, 120]
    assert doc["current_version"] == doc["versions"][0]["version"]


def test_extra_keys_and_record_fields_survive(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "# tracked by CI\n"
        "project: node\n"
        "current_version: 2\n"
        "versions:\n"
        "  - version: 2\n"
        "    pr: 8\n"
        "    note: add index\n",
    )

    VersionBumper(path).bump(9)

    doc = yaml.safe_load(path.read_text())
    assert list(doc) == ["project", "current_version", "versions"]
    assert doc["project"] == "node"
    assert doc["versions"][1] == {"version": 2, "pr": 8, "note": "add index"}


def test_dry_run_reports_without_writing(tmp_path: Path) -> None:
    path = _write(tmp_path)
    before = path.read_bytes()

    result = VersionBumper(path).bump(123, dry_run=True)

    assert result.dry_run
    assert (result.old_version, result.new_version) == (41, 42)
    assert path.read_bytes() == before


def test_inspect_returns_validated_document(tmp_path: Path) -> None:
    path = _write(tmp_path)

    doc = VersionBumper(path).inspect()

    assert doc.current_version == 41
    assert doc.latest is not None and doc.latest.pr == 120
    assert doc.find_record(120) is not None
    assert doc.find_record(999) is None


def test_zero_pr_is_accepted(tmp_path: Path) -> None:
    path = _write(tmp_path)

    result = VersionBumper(path).bump("0")

    assert result.pr_number == 0
    assert yaml.safe_load(path.read_text())["versions"][0] == {"version": 42, "pr": 0}


def test_leading_zero_version_is_decimal(tmp_path: Path) -> None:
    path = _write(tmp_path, "current_version: 041\nversions: []\n")

    result = VersionBumper(path).bump(5)

    assert (result.old_version, result.new_version) == (41, 42)


def test_non_utf8_document_is_malformed(tmp_path: Path) -> None:
    path = tmp_path / ".db-versions.yml"
    raw = BASE_DOC.encode("utf-8") + b"# \xff\xfe\n"
    path.write_bytes(raw)

    with pytest.raises(MalformedDocumentError) as exc:
        VersionBumper(path).bump(123)

    assert "not valid UTF-8" in exc.value.detail
    assert path.read_bytes() == raw

"""Starter contract generation for `contract init`."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from repo_contract.contract.loader import DEFAULT_CONTRACT_FILENAME
from repo_contract.contract.types import Severity
from repo_contract.errors import AlreadyExistsError
from repo_contract.utils.repo import infer_project_type
from repo_contract.utils.schema_registry import get_schema_json

logger = logging.getLogger(__name__)

CONTRACT_VERSION = "1.0"

# (path, severity); None means the default (error) and is left out of the file
DEFAULT_FILES: tuple[tuple[str, Severity | None], ...] = (
    ("README.md", None),
    ("LICENSE", None),
    (".gitignore", None),
    ("AGENTS.md", Severity.INFO),
)

REPO_CANDIDATES: tuple[tuple[str, Severity | None], ...] = (
    ("README.md", None),
    ("LICENSE", None),
    ("CONTRIBUTING.md", Severity.WARNING),
    ("CHANGELOG.md", Severity.WARNING),
    ("SECURITY.md", Severity.WARNING),
    (".gitignore", None),
    ("AGENTS.md", Severity.INFO),
)

PROFILE_FILES: dict[str, tuple[tuple[str, Severity | None], ...]] = {
    "rust": (
        ("Cargo.toml", None),
        ("src/main.rs", Severity.WARNING),
        ("rust-toolchain.toml", Severity.WARNING),
    ),
    "python": (
        ("pyproject.toml", None),
        ("tests", Severity.WARNING),
    ),
}


@dataclass(frozen=True)
class InitOptions:
    output_path: Path = Path(DEFAULT_CONTRACT_FILENAME)
    profile: str | None = None
    from_repo: bool = False
    force: bool = False


@dataclass
class InitOutcome:
    created: list[Path] = field(default_factory=list)
    profile: str | None = None


def _schema_url() -> str:
    return str(get_schema_json("contract")["$id"])


def _entries(files: tuple[tuple[str, Severity | None], ...]) -> list[dict[str, str]]:
    entries = []
    for path, severity in files:
        entry = {"path": path}
        if severity is not None:
            entry["severity"] = severity.value
        entries.append(entry)
    return entries


def contract_template(profile: str | None, files: tuple[tuple[str, Severity | None], ...]) -> dict[str, Any]:
    data: dict[str, Any] = {"$schema": _schema_url(), "version": CONTRACT_VERSION}
    if profile:
        data["profile"] = profile
    if files:
        data["required_files"] = _entries(files)
    return data


def profile_template(profile: str) -> dict[str, Any]:
    data: dict[str, Any] = {
        "$schema": _schema_url(),
        "version": CONTRACT_VERSION,
        "language": profile,
    }
    files = PROFILE_FILES.get(profile, ())
    if files:
        data["required_files"] = _entries(files)
    return data


def repo_files(root: Path) -> tuple[tuple[str, Severity | None], ...]:
    """Candidates that already exist under `root`."""
    return tuple((path, severity) for path, severity in REPO_CANDIDATES if (root / path).exists())


def init_contract_files(root: Path, options: InitOptions) -> InitOutcome:
    """Write a starter contract, plus a profile file when a profile is named.

    With `from_repo`, only candidate files that exist are listed and, when
    no profile is given, one is inferred from the project's marker files.

    Raises:
        AlreadyExistsError: If a target exists and `force` is not set
    """
    profile = options.profile
    if options.from_repo:
        files = repo_files(root)
        if profile is None:
            inferred = infer_project_type(root)
            if inferred in PROFILE_FILES:
                profile = inferred
                logger.info("Inferred profile '%s' from project markers", profile)
    else:
        files = DEFAULT_FILES

    output_path = options.output_path if options.output_path.is_absolute() else root / options.output_path
    outcome = InitOutcome(profile=profile)

    targets = [(output_path, contract_template(profile, files))]
    if profile:
        targets.append((output_path.parent / f"contract.{profile}.yml", profile_template(profile)))

    # Refuse before writing anything so a partial scaffold is never left behind
    if not options.force:
        for path, _ in targets:
            if path.exists():
                raise AlreadyExistsError(str(path))

    for path, data in targets:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        outcome.created.append(path)
    return outcome

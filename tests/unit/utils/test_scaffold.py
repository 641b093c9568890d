"""Tests for starter contract generation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from repo_contract.contract.document import ContractDocument
from repo_contract.errors import AlreadyExistsError
from repo_contract.scaffold import InitOptions, init_contract_files
from repo_contract.schemas.validator import validate


def _load(path: Path) -> dict:
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def test_default_contract(tmp_path: Path) -> None:
    outcome = init_contract_files(tmp_path, InitOptions())

    assert outcome.created == [tmp_path / "contract.yml"]
    data = _load(tmp_path / "contract.yml")
    assert data["version"] == "1.0"
    assert [f["path"] for f in data["required_files"]] == ["README.md", "LICENSE", ".gitignore", "AGENTS.md"]
    assert data["required_files"][3]["severity"] == "info"
    assert "severity" not in data["required_files"][0]


def test_written_files_are_valid_contracts(tmp_path: Path) -> None:
    init_contract_files(tmp_path, InitOptions(profile="rust"))

    for name in ("contract.yml", "contract.rust.yml"):
        document = ContractDocument.from_file(tmp_path / name)
        assert validate(document) == []


def test_profile_files(tmp_path: Path) -> None:
    outcome = init_contract_files(tmp_path, InitOptions(profile="rust"))

    assert outcome.created == [tmp_path / "contract.yml", tmp_path / "contract.rust.yml"]
    assert _load(tmp_path / "contract.yml")["profile"] == "rust"
    profile = _load(tmp_path / "contract.rust.yml")
    assert profile["language"] == "rust"
    assert [f["path"] for f in profile["required_files"]] == ["Cargo.toml", "src/main.rs", "rust-toolchain.toml"]


def test_unknown_profile_has_no_required_files(tmp_path: Path) -> None:
    init_contract_files(tmp_path, InitOptions(profile="haskell"))
    assert "required_files" not in _load(tmp_path / "contract.haskell.yml")


def test_from_repo_lists_existing_files_and_infers_profile(make_tree) -> None:
    root = make_tree("README.md", "SECURITY.md", "pyproject.toml")

    outcome = init_contract_files(root, InitOptions(from_repo=True))

    data = _load(root / "contract.yml")
    assert data["required_files"] == [{"path": "README.md"}, {"path": "SECURITY.md", "severity": "warning"}]
    assert outcome.profile == "python"
    assert (root / "contract.python.yml").exists()


def test_refuses_to_overwrite(tmp_path: Path) -> None:
    (tmp_path / "contract.yml").write_text("keep me\n")

    with pytest.raises(AlreadyExistsError):
        init_contract_files(tmp_path, InitOptions(profile="rust"))

    assert (tmp_path / "contract.yml").read_text() == "keep me\n"
    assert not (tmp_path / "contract.rust.yml").exists()


def test_force_overwrites(tmp_path: Path) -> None:
    (tmp_path / "contract.yml").write_text("old\n")
    init_contract_files(tmp_path, InitOptions(force=True))
    assert _load(tmp_path / "contract.yml")["version"] == "1.0"

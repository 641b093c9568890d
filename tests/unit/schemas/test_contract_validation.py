"""Tests for structural contract validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from repo_contract.contract.document import ContractDocument
from repo_contract.errors import DocumentDecodeError
from repo_contract.schemas.validator import format_path, validate, validate_data, validate_file


def _errors(text: str):
    return validate(ContractDocument.from_text(text))


def test_minimal_contract_is_valid() -> None:
    assert _errors('version: "1.0"\n') == []


def test_full_contract_is_valid() -> None:
    text = """\
$schema: https://repo-contract.dev/schemas/v1.json
version: "1.0"
profile: rust
metadata:
  tier: critical
  owner: platform
required_files:
  - path: README.md
  - path: LICENSE
    alternatives: [COPYING, LICENSE.md]
  - pattern: "docs/.*\\\\.md"
    severity: warning
    case_insensitive: true
branch_protection:
  branches: [main, "release/*"]
  rules:
    required_pull_request_reviews:
      required_approving_review_count: 2
    required_status_checks:
      strict: true
      checks:
        - ci
        - context: lint
          app_id: 15368
    enforce_admins: true
"""
    assert _errors(text) == []


def test_missing_version_is_reported() -> None:
    errors = _errors("required_files: []\n")

    assert len(errors) == 1
    assert errors[0].code == "E020"
    assert errors[0].path == "$"
    assert "version" in errors[0].message


def test_bad_version_format() -> None:
    errors = _errors('version: "1"\n')

    assert [e.path for e in errors] == ["version"]
    assert errors[0].line == 1


def test_required_file_needs_path_or_pattern() -> None:
    errors = _errors('version: "1.0"\nrequired_files:\n  - severity: warning\n')

    assert len(errors) == 1
    assert errors[0].path == "required_files[0]"
    assert errors[0].message == "required_files entry must include path or pattern"
    assert (errors[0].line, errors[0].column) == (3, 5)


def test_severity_enum() -> None:
    errors = _errors('version: "1.0"\nrequired_files:\n  - path: README.md\n    severity: fatal\n')
    assert [e.path for e in errors] == ["required_files[0].severity"]


def test_tier_enum() -> None:
    errors = _errors('version: "1.0"\nmetadata:\n  tier: legendary\n')
    assert [e.path for e in errors] == ["metadata.tier"]


def test_review_count_range() -> None:
    text = """\
version: "1.0"
branch_protection:
  rules:
    required_pull_request_reviews:
      required_approving_review_count: 7
"""
    errors = _errors(text)
    assert [e.path for e in errors] == [
        "branch_protection.rules.required_pull_request_reviews.required_approving_review_count"
    ]
    assert errors[0].line == 5


def test_type_mismatch() -> None:
    errors = _errors('version: "1.0"\nbranch_protection:\n  rules:\n    enforce_admins: "yes"\n')
    assert [e.path for e in errors] == ["branch_protection.rules.enforce_admins"]


def test_invalid_regex_pattern() -> None:
    errors = _errors('version: "1.0"\nrequired_files:\n  - pattern: "docs/(.*"\n')

    assert [e.path for e in errors] == ["required_files[0].pattern"]
    assert "invalid regular expression" in errors[0].message


def test_all_errors_collected_in_path_order() -> None:
    text = """\
version: "one"
required_files:
  - severity: nope
unknown_key: 1
"""
    paths = [e.path for e in _errors(text)]

    assert "version" in paths
    assert "required_files[0]" in paths
    assert "required_files[0].severity" in paths
    assert "$" in paths  # additionalProperties
    assert len(paths) >= 4


def test_list_indices_sort_numerically() -> None:
    entries = [{"path": f"file{i}.md"} for i in range(12)]
    entries[2]["severity"] = "loud"
    entries[10]["severity"] = "loud"
    document = ContractDocument.from_dict({"version": "1.0", "required_files": entries})

    paths = [e.path for e in validate(document)]

    assert paths == ["required_files[2].severity", "required_files[10].severity"]


def test_validate_file_reports_path(tmp_path: Path) -> None:
    path = tmp_path / "contract.yml"
    path.write_text('version: "x"\n', encoding="utf-8")

    report = validate_file(path)

    assert report.path == str(path)
    assert report.valid is False
    assert report.to_dict()["errors"][0]["code"] == "E020"


def test_validate_file_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(DocumentDecodeError):
        validate_file(tmp_path / "missing.yml")


def test_format_path() -> None:
    assert format_path(()) == "$"
    assert format_path(("required_files", 2, "path")) == "required_files[2].path"


def test_validate_data_non_strict_returns_messages() -> None:
    ok, errors = validate_data({"valid": "yes"}, "check_report", strict=False)
    assert ok is False
    assert errors


def test_validate_data_strict_raises() -> None:
    with pytest.raises(ValueError, match="check_report"):
        validate_data({"valid": True}, "check_report", strict=True)

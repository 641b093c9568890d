"""Tests for reconcile/diff orchestration and their agreement."""

from __future__ import annotations

from pathlib import Path

import pytest

from repo_contract.checks import build_report, diff, exit_code, reconcile, selected_rules
from repo_contract.checks.types import DiffType
from repo_contract.contract.document import ContractDocument
from repo_contract.contract.loader import load_contract
from repo_contract.contract.types import Contract, Rule, Severity
from repo_contract.errors import UnsupportedOperation
from repo_contract.utils.repo import StaticFileLister
from tests.unit.checks.remote_stubs import StubRemote, protection

CONTRACT_YAML = """\
version: "1.0"
required_files:
  - path: README.md
  - path: LICENSE
    alternatives: [COPYING]
  - path: SECURITY.md
    severity: warning
branch_protection:
  branches: [main]
  rules:
    required_pull_request_reviews:
      required_approving_review_count: 1
    required_status_checks:
      checks: [ci, lint, test]
"""


def _contract(text: str = CONTRACT_YAML) -> Contract:
    return Contract.from_document(ContractDocument.from_text(text))


class _BrokenLister:
    def list_paths(self) -> frozenset[str]:
        raise PermissionError("denied")


def test_required_files_come_before_branch_protection() -> None:
    remote = StubRemote(protections={"main": protection(checks=["ci", "lint", "test"])})
    fs = StaticFileLister(frozenset({"README.md", "COPYING", "SECURITY.md"}))

    reconciliation = reconcile(_contract(), fs, remote)

    rules = [r.rule for r in reconciliation.results]
    assert rules[:3] == [Rule.REQUIRED_FILES] * 3
    assert set(rules[3:]) == {Rule.BRANCH_PROTECTION}
    assert reconciliation.compliant
    assert reconciliation.failures == []


def test_scenario_missing_check_produces_error_and_array_diff() -> None:
    remote = StubRemote(protections={"main": protection(checks=["ci", "test"])})
    fs = StaticFileLister(frozenset({"README.md", "LICENSE", "SECURITY.md"}))

    report = build_report(reconcile(_contract(), fs, remote))
    failing = [r for r in report.results if not r.passed]

    assert [(r.code, r.severity) for r in failing] == [("E012", Severity.ERROR)]
    assert report.valid is False
    assert exit_code(report) == 1

    diffs = diff(_contract(), fs, remote).diffs
    assert len(diffs) == 1
    assert diffs[0].type is DiffType.ARRAY_DIFF
    assert diffs[0].missing == ("lint",)
    assert diffs[0].extra == ()


def test_scenario_missing_profile_uses_core_only(tmp_path: Path) -> None:
    config = tmp_path / "contract.yml"
    config.write_text('version: "1.0"\nprofile: rust\nrequired_files:\n  - path: README.md\n', encoding="utf-8")

    loaded = load_contract(config)
    contract = Contract.from_document(loaded.document)
    reconciliation = reconcile(contract, StaticFileLister(frozenset({"README.md"})), None)
    report = build_report(reconciliation, loaded.advisories)

    assert report.valid is True
    assert [a.code for a in report.advisories] == ["E021"]
    assert len(report.results) == 1
    assert exit_code(report) == 0


def test_scenario_no_remote_is_execution_failure() -> None:
    fs = StaticFileLister(frozenset({"README.md", "LICENSE", "SECURITY.md"}))

    report = build_report(reconcile(_contract(), fs, None))

    assert [f.rule for f in report.failures] == [Rule.BRANCH_PROTECTION]
    assert report.valid is True
    assert exit_code(report) == 2
    assert exit_code(report, strict=True) == 2


def test_unavailable_reason_replaces_credential_message() -> None:
    fs = StaticFileLister(frozenset({"README.md", "LICENSE", "SECURITY.md"}))

    default = reconcile(_contract(), fs, None).failures[0].message
    explained = diff(_contract(), fs, None, unavailable_reason="invalid remote repository: widgets")

    assert "GITHUB_TOKEN" in default
    assert explained.failures[0].message.startswith("invalid remote repository: widgets")
    assert "GITHUB_TOKEN" not in explained.failures[0].message


def test_unreadable_tree_is_execution_failure() -> None:
    remote = StubRemote(protections={"main": protection(checks=["ci", "lint", "test"])})

    reconciliation = reconcile(_contract(), _BrokenLister(), remote)

    assert [f.rule for f in reconciliation.failures] == [Rule.REQUIRED_FILES]
    assert "denied" in reconciliation.failures[0].message
    assert all(r.rule is Rule.BRANCH_PROTECTION for r in reconciliation.results)


def test_remote_timeout_is_execution_failure() -> None:
    remote = StubRemote(delays={"main": 1.0})
    fs = StaticFileLister(frozenset({"README.md", "LICENSE", "SECURITY.md"}))

    reconciliation = reconcile(_contract(), fs, remote, timeout=0.05)

    assert [f.rule for f in reconciliation.failures] == [Rule.BRANCH_PROTECTION]
    assert "Timed out" in reconciliation.failures[0].message


def test_remote_mode_rejects_required_files() -> None:
    with pytest.raises(UnsupportedOperation):
        reconcile(_contract(), StaticFileLister(frozenset()), StubRemote(), remote_only=True)


def test_remote_mode_with_branch_protection_filter() -> None:
    remote = StubRemote(protections={"main": protection(checks=["ci", "lint", "test"])})

    reconciliation = reconcile(
        _contract(), _BrokenLister(), remote, {"branch_protection"}, remote_only=True
    )

    assert reconciliation.failures == []
    assert all(r.rule is Rule.BRANCH_PROTECTION for r in reconciliation.results)


def test_rule_filter_ignores_unknown_names(caplog: pytest.LogCaptureFixture) -> None:
    fs = StaticFileLister(frozenset({"README.md"}))

    with caplog.at_level("WARNING"):
        reconciliation = reconcile(_contract(), fs, None, {"required_files", "licence_headers"})

    assert "licence_headers" in caplog.text
    assert reconciliation.failures == []
    assert {r.rule for r in reconciliation.results} == {Rule.REQUIRED_FILES}


def test_selected_rules() -> None:
    assert selected_rules() == [Rule.REQUIRED_FILES, Rule.BRANCH_PROTECTION]
    assert selected_rules({"branch_protection", "required_files"}) == [
        Rule.REQUIRED_FILES,
        Rule.BRANCH_PROTECTION,
    ]
    assert selected_rules({"nope"}) == []


def test_warning_severity_never_counts_as_error() -> None:
    contract = _contract('version: "1.0"\nrequired_files:\n  - path: SECURITY.md\n    severity: warning\n')

    report = build_report(reconcile(contract, StaticFileLister(frozenset()), None))

    assert report.summary.error == 0
    assert report.summary.warning == 1
    assert report.valid is True
    assert exit_code(report) == 0
    assert exit_code(report, strict=True) == 1


@pytest.mark.parametrize(
    "paths,actual",
    [
        ({"README.md", "LICENSE", "SECURITY.md"}, protection(checks=["ci", "lint", "test"])),
        ({"README.md", "COPYING"}, protection(checks=["ci", "lint", "test"])),
        ({"README.md", "LICENSE", "SECURITY.md"}, protection(checks=["ci"], reviews=0)),
        ({"LICENSE"}, None),
        (set(), protection(reviews=None, checks=None, allow_force_pushes=True)),
    ],
)
def test_diff_is_empty_exactly_when_reconcile_is_compliant(paths, actual) -> None:
    fs = StaticFileLister(frozenset(paths))
    remote = StubRemote(protections={"main": actual})

    reconciliation = reconcile(_contract(), fs, remote)
    diffs = diff(_contract(), fs, remote).diffs

    assert (diffs == []) == reconciliation.compliant
    assert len(diffs) == sum(1 for r in reconciliation.results if not r.passed)


def test_missing_file_diff_carries_severity() -> None:
    contract = _contract('version: "1.0"\nrequired_files:\n  - path: SECURITY.md\n    severity: warning\n')

    (entry,) = diff(contract, StaticFileLister(frozenset()), None).diffs

    assert entry.type is DiffType.MISSING_FILE
    assert entry.severity is Severity.WARNING
    assert entry.to_dict()["expected"] == "SECURITY.md"
    assert "missing" not in entry.to_dict()


def test_scalar_diff_for_flag_fields() -> None:
    contract = _contract(
        'version: "1.0"\nbranch_protection:\n  rules:\n    required_status_checks:\n      enabled: false\n'
        "    enforce_admins: true\n"
    )
    remote = StubRemote(protections={"main": protection(checks=None)})

    diffs = diff(contract, StaticFileLister(frozenset()), remote).diffs

    assert [(d.path, d.type) for d in diffs] == [("enforce_admins", DiffType.SCALAR_DIFF)]
    assert (diffs[0].expected, diffs[0].actual) == (True, False)

"""Reconcile a merged contract against a repository's actual state.

`reconcile` yields pass/fail CheckResults; `diff` yields structural
DiffResults derived from the same evaluation, so an empty diff always means
a compliant reconciliation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from repo_contract.checks.branch_protection import check_branch_protection
from repo_contract.checks.diff import diff_results
from repo_contract.checks.required_files import check_required_files
from repo_contract.checks.types import DiffReport, ExecutionFailure, Reconciliation
from repo_contract.contract.types import Contract, Rule
from repo_contract.errors import RemoteError, UnsupportedOperation
from repo_contract.matching import PathMatcher
from repo_contract.remote.types import RemoteRepository
from repo_contract.utils.repo import FileLister

logger = logging.getLogger(__name__)


def selected_rules(rule_filter: Iterable[str] = ()) -> list[Rule]:
    """Rules in reporting order, restricted to `rule_filter` when it is non-empty.

    Unknown names are ignored (with a warning), never an error.
    """
    requested = set(rule_filter)
    if not requested:
        return list(Rule)

    known = {rule.value for rule in Rule}
    for name in sorted(requested - known):
        logger.warning("Ignoring unknown rule %r (known: %s)", name, ", ".join(sorted(known)))
    return [rule for rule in Rule if rule.value in requested]


def reconcile(
    contract: Contract,
    fs: FileLister,
    repo: RemoteRepository | None,
    rule_filter: Iterable[str] = (),
    *,
    remote_only: bool = False,
    timeout: float | None = None,
    unavailable_reason: str | None = None,
) -> Reconciliation:
    """Evaluate every selected rule.

    Args:
        contract: Merged contract with defaults applied
        fs: Lists the local working tree
        repo: Remote collaborator, or None when no credential is configured
        rule_filter: Rule names to evaluate; empty means all
        remote_only: Forbid local filesystem checks (remote mode)
        timeout: Upper bound in seconds for the remote fetch phase
        unavailable_reason: Why `repo` is None, when known; reported in
            place of the missing-credential message

    Raises:
        UnsupportedOperation: If `remote_only` is set and required_files is
            in scope; remote file existence checks are not supported
    """
    rules = selected_rules(rule_filter)
    if remote_only and Rule.REQUIRED_FILES in rules and contract.required_files:
        raise UnsupportedOperation(
            "required_files cannot be checked against a remote repository; "
            "run locally or pass --rules branch_protection"
        )

    reconciliation = Reconciliation()
    # One matcher per call: compiled patterns never outlive the reconciliation
    matcher = PathMatcher()

    for rule in rules:
        if rule is Rule.REQUIRED_FILES:
            if not contract.required_files:
                continue
            try:
                paths = fs.list_paths()
            except OSError as e:
                reconciliation.failures.append(
                    ExecutionFailure(rule, f"Cannot list repository files: {e}")
                )
                continue
            reconciliation.results.extend(
                check_required_files(contract.required_files, paths, matcher)
            )

        elif rule is Rule.BRANCH_PROTECTION:
            spec = contract.branch_protection
            if spec is None:
                continue
            if repo is None:
                reason = unavailable_reason or "No remote repository available (set GITHUB_TOKEN)"
                reconciliation.failures.append(
                    ExecutionFailure(rule, f"{reason}; branch protection was not checked")
                )
                continue
            try:
                reconciliation.results.extend(
                    check_branch_protection(spec, repo, matcher, timeout=timeout)
                )
            except RemoteError as e:
                reconciliation.failures.append(ExecutionFailure(rule, str(e)))

    logger.info(
        "Reconciled %d rule(s): %d result(s), %d failure(s)",
        len(rules),
        len(reconciliation.results),
        len(reconciliation.failures),
    )
    return reconciliation


def diff(
    contract: Contract,
    fs: FileLister,
    repo: RemoteRepository | None,
    rule_filter: Iterable[str] = (),
    *,
    remote_only: bool = False,
    timeout: float | None = None,
    unavailable_reason: str | None = None,
) -> DiffReport:
    """Structural differences between expected and actual state.

    Same collaborators and failure handling as `reconcile`.
    """
    reconciliation = reconcile(
        contract,
        fs,
        repo,
        rule_filter,
        remote_only=remote_only,
        timeout=timeout,
        unavailable_reason=unavailable_reason,
    )
    return DiffReport(
        diffs=diff_results(reconciliation.results),
        failures=reconciliation.failures,
    )

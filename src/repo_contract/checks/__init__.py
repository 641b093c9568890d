"""Contract reconciliation: rule checks, diffs and reports."""

from repo_contract.checks.diff import array_diff, diff_results
from repo_contract.checks.reconcile import diff, reconcile, selected_rules
from repo_contract.checks.types import (
    EXIT_EXECUTION_FAILURE,
    EXIT_OK,
    EXIT_VIOLATION,
    CheckResult,
    DiffReport,
    DiffResult,
    DiffType,
    ExecutionFailure,
    Reconciliation,
    Report,
    Summary,
    build_report,
    exit_code,
)

__all__ = [
    "CheckResult",
    "DiffReport",
    "DiffResult",
    "DiffType",
    "EXIT_EXECUTION_FAILURE",
    "EXIT_OK",
    "EXIT_VIOLATION",
    "ExecutionFailure",
    "Reconciliation",
    "Report",
    "Summary",
    "array_diff",
    "build_report",
    "diff",
    "diff_results",
    "exit_code",
    "reconcile",
    "selected_rules",
]

"""Structural diffs derived from reconciliation results."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from repo_contract.checks.types import CheckResult, DiffResult, DiffType
from repo_contract.contract.types import Rule


def _ordered_unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def array_diff(expected: Sequence[str], actual: Sequence[str]) -> tuple[list[str], list[str]]:
    """Compare two arrays as ordered sets.

    Returns:
        (missing, extra): expected entries absent from actual, and actual
        entries absent from expected, each in first-seen order without repeats
    """
    actual_set = set(actual)
    expected_set = set(expected)
    missing = _ordered_unique(e for e in expected if e not in actual_set)
    extra = _ordered_unique(a for a in actual if a not in expected_set)
    return missing, extra


def to_diff(result: CheckResult) -> DiffResult | None:
    """Describe a failing check as a diff; passing checks have none."""
    if result.passed:
        return None

    if result.rule is Rule.REQUIRED_FILES:
        return DiffResult(
            rule=result.rule,
            target=result.target,
            path=result.path,
            type=DiffType.MISSING_FILE,
            expected=result.expected,
            actual=None,
            severity=result.severity,
        )

    if result.missing is not None or result.extra is not None:
        return DiffResult(
            rule=result.rule,
            target=result.target,
            path=result.path,
            type=DiffType.ARRAY_DIFF,
            expected=result.expected,
            actual=result.actual,
            severity=result.severity,
            missing=result.missing or (),
            extra=result.extra or (),
        )

    return DiffResult(
        rule=result.rule,
        target=result.target,
        path=result.path,
        type=DiffType.SCALAR_DIFF,
        expected=result.expected,
        actual=result.actual,
        severity=result.severity,
    )


def diff_results(results: Iterable[CheckResult]) -> list[DiffResult]:
    """Diffs for every failing result, preserving result order."""
    diffs: list[DiffResult] = []
    for result in results:
        entry = to_diff(result)
        if entry is not None:
            diffs.append(entry)
    return diffs

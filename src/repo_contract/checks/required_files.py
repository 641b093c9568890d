"""required_files rule: each spec must be satisfied by some repository path."""

from __future__ import annotations

from collections.abc import Sequence

from repo_contract.checks.types import CheckResult
from repo_contract.contract.types import RequiredFileSpec, Rule
from repo_contract.matching import PathMatcher

MISSING_FILE = "E001"


def check_required_files(
    specs: Sequence[RequiredFileSpec],
    actual_paths: frozenset[str],
    matcher: PathMatcher,
) -> list[CheckResult]:
    """One CheckResult per spec, in declaration order."""
    return [
        _evaluate(index, spec, actual_paths, matcher)
        for index, spec in enumerate(specs)
    ]


def _evaluate(
    index: int,
    spec: RequiredFileSpec,
    actual_paths: frozenset[str],
    matcher: PathMatcher,
) -> CheckResult:
    hit = matcher.find_match(spec, actual_paths)
    if hit is not None:
        message = "Found" if hit == spec.label else f"Found {hit}"
        return CheckResult(
            rule=Rule.REQUIRED_FILES,
            target=spec.label,
            path=f"required_files[{index}]",
            expected=spec.label,
            actual=hit,
            severity=spec.severity,
            message=message,
            passed=True,
        )

    message = f"Not found ({spec.severity.value})"
    if spec.alternatives:
        message += f"; also tried: {', '.join(spec.alternatives)}"
    return CheckResult(
        rule=Rule.REQUIRED_FILES,
        target=spec.label,
        path=f"required_files[{index}]",
        expected=spec.label,
        actual=None,
        severity=spec.severity,
        message=message,
        passed=False,
        code=MISSING_FILE,
    )

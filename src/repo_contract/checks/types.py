"""Reconciliation result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from repo_contract.contract.types import Rule, Severity
from repo_contract.schemas.validator import SchemaError

# Expected/actual values: a scalar, a sequence of names, or None when absent.
Value = bool | int | str | list[str] | None

# Exit codes for the check/diff commands
EXIT_OK = 0
EXIT_VIOLATION = 1
EXIT_EXECUTION_FAILURE = 2


class DiffType(str, Enum):
    ARRAY_DIFF = "array_diff"
    SCALAR_DIFF = "scalar_diff"
    MISSING_FILE = "missing_file"
    EXTRA_FILE = "extra_file"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check (one required file, or one protection field on one branch)."""

    rule: Rule
    target: str
    path: str
    expected: Value
    actual: Value
    severity: Severity
    message: str
    passed: bool
    code: str | None = None
    # Array comparisons keep their set differences for the diff engine
    missing: tuple[str, ...] | None = None
    extra: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule": self.rule.value,
            "target": self.target,
            "path": self.path,
            "expected": self.expected,
            "actual": self.actual,
            "severity": self.severity.value,
            "message": self.message,
            "passed": self.passed,
            "code": self.code,
        }


@dataclass(frozen=True)
class DiffResult:
    """Structural difference between expected and actual state."""

    rule: Rule
    target: str
    path: str
    type: DiffType
    expected: Value
    actual: Value
    severity: Severity | None = None
    missing: tuple[str, ...] | None = None
    extra: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "rule": self.rule.value,
            "target": self.target,
            "path": self.path,
            "type": self.type.value,
            "expected": self.expected,
            "actual": self.actual,
        }
        if self.severity is not None:
            data["severity"] = self.severity.value
        if self.type is DiffType.ARRAY_DIFF:
            data["missing"] = list(self.missing or ())
            data["extra"] = list(self.extra or ())
        return data


@dataclass(frozen=True)
class ExecutionFailure:
    """A rule that could not be evaluated (distinct from a violated rule)."""

    rule: Rule
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"rule": self.rule.value, "message": self.message}


@dataclass
class Summary:
    error: int = 0
    warning: int = 0
    info: int = 0

    def add(self, severity: Severity) -> None:
        setattr(self, severity.value, getattr(self, severity.value) + 1)

    def worst(self) -> Severity | None:
        """Highest severity with at least one failure, or None."""
        counted = [s for s in Severity if getattr(self, s.value) > 0]
        return max(counted, key=lambda s: s.rank, default=None)

    def to_dict(self) -> dict[str, int]:
        return {"error": self.error, "warning": self.warning, "info": self.info}


@dataclass
class Reconciliation:
    """CheckResults in declaration order plus rules that failed to run."""

    results: list[CheckResult] = field(default_factory=list)
    failures: list[ExecutionFailure] = field(default_factory=list)

    @property
    def compliant(self) -> bool:
        return all(r.passed for r in self.results)


@dataclass
class DiffReport:
    diffs: list[DiffResult] = field(default_factory=list)
    failures: list[ExecutionFailure] = field(default_factory=list)
    advisories: list[SchemaError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "diffs": [d.to_dict() for d in self.diffs],
            "failures": [f.to_dict() for f in self.failures],
            "advisories": [a.to_dict() for a in self.advisories],
        }


@dataclass
class Report:
    """Aggregated check output.

    `valid` depends on error-severity failures only; strict mode is applied
    by `exit_code`, never stored here.
    """

    valid: bool
    results: list[CheckResult]
    summary: Summary
    failures: list[ExecutionFailure] = field(default_factory=list)
    advisories: list[SchemaError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
            "failures": [f.to_dict() for f in self.failures],
            "advisories": [a.to_dict() for a in self.advisories],
        }


def build_report(
    reconciliation: Reconciliation,
    advisories: list[SchemaError] | tuple[SchemaError, ...] = (),
) -> Report:
    summary = Summary()
    for result in reconciliation.results:
        if not result.passed:
            summary.add(result.severity)
    return Report(
        valid=summary.error == 0,
        results=list(reconciliation.results),
        summary=summary,
        failures=list(reconciliation.failures),
        advisories=list(advisories),
    )


def exit_code(report: Report, strict: bool = False) -> int:
    """Map a report to the CLI exit-code contract.

    2 when any rule could not be evaluated, 1 for error outcomes (or
    warnings under strict mode), otherwise 0.
    """
    if report.failures:
        return EXIT_EXECUTION_FAILURE
    worst = report.summary.worst()
    threshold = Severity.WARNING if strict else Severity.ERROR
    if worst is not None and worst.rank >= threshold.rank:
        return EXIT_VIOLATION
    return EXIT_OK

"""branch_protection rule: compare configured rules with a remote's actual protection."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import TypeVar

from repo_contract.checks.diff import array_diff
from repo_contract.checks.types import CheckResult, Value
from repo_contract.contract.types import (
    FLAG_FIELDS,
    BranchProtectionActual,
    BranchProtectionRules,
    BranchProtectionSpec,
    Rule,
    Severity,
    StatusCheck,
)
from repo_contract.errors import RemoteError
from repo_contract.matching import PathMatcher
from repo_contract.remote.types import RemoteRepository

logger = logging.getLogger(__name__)

PROTECTION_MISSING = "E010"
REVIEW_COUNT = "E011"
STATUS_CHECKS_MISSING = "E012"
FIELD_MISMATCH = "E013"
STATUS_CHECKS_EXTRA = "E014"

# Branch counts are typically single-digit
MAX_WORKERS = 4

_T = TypeVar("_T")


def requires_protection(rules: BranchProtectionRules) -> bool:
    """True when the rules cannot be met by an unprotected branch."""
    return (
        rules.required_pull_request_reviews.enabled
        or rules.required_status_checks.enabled
        or rules.enforce_admins
        or rules.required_linear_history
        or rules.required_conversation_resolution
        or rules.required_signatures
    )


def resolve_targets(
    patterns: Sequence[str],
    branches: Sequence[str],
    matcher: PathMatcher,
) -> list[str]:
    """Branches matching any pattern, ordered by first matching pattern, then remote order."""
    targets: list[str] = []
    seen: set[str] = set()
    for pattern in patterns:
        for branch in branches:
            if branch not in seen and matcher.matches_branch(pattern, branch):
                seen.add(branch)
                targets.append(branch)
    return targets


def check_branch_protection(
    spec: BranchProtectionSpec,
    repo: RemoteRepository,
    matcher: PathMatcher,
    timeout: float | None = None,
) -> list[CheckResult]:
    """Evaluate every targeted branch.

    Remote calls run on a small thread pool; `timeout` bounds the whole
    fetch phase. Results come back in target order regardless of which
    fetch finishes first.

    Raises:
        RemoteError: If a remote call fails or the timeout expires
    """
    executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="contract-remote")
    try:
        started = time.monotonic()
        branches = list(_result_within(executor.submit(repo.list_branches), timeout, "listing branches"))
        targets = resolve_targets(spec.branches, branches, matcher)
        if not targets:
            logger.warning("No remote branch matches %s", ", ".join(spec.branches))
            return []

        remaining = None if timeout is None else max(0.0, timeout - (time.monotonic() - started))
        futures = {executor.submit(repo.get_branch_protection, target): target for target in targets}
        done, pending = wait(futures, timeout=remaining)
        if pending:
            waiting = ", ".join(futures[f] for f in pending)
            raise RemoteError(f"Timed out after {timeout}s fetching branch protection for: {waiting}")
        protections = {futures[f]: f.result() for f in done}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    results: list[CheckResult] = []
    for target in targets:
        results.extend(evaluate_branch_protection(target, spec.rules, protections[target]))
    return results


def _result_within(future: Future[_T], timeout: float | None, what: str) -> _T:
    try:
        return future.result(timeout=timeout)
    except FuturesTimeout as e:
        raise RemoteError(f"Timed out after {timeout}s {what}") from e


def evaluate_branch_protection(
    target: str,
    expected: BranchProtectionRules,
    actual: BranchProtectionActual | None,
) -> list[CheckResult]:
    """Compare expected rules with one branch's actual protection, field by field."""
    if actual is None:
        required = requires_protection(expected)
        return [
            CheckResult(
                rule=Rule.BRANCH_PROTECTION,
                target=target,
                path="branch_protection",
                expected=required,
                actual=False,
                severity=Severity.ERROR,
                message="Branch protection is not enabled" if required else "Not protected (not required)",
                passed=not required,
                code=PROTECTION_MISSING if required else None,
            )
        ]

    results: list[CheckResult] = []

    def field(
        path: str,
        want: Value,
        got: Value,
        passed: bool,
        severity: Severity,
        code: str = FIELD_MISMATCH,
    ) -> None:
        label = path.rsplit(".", 1)[-1] if path.count(".") > 1 else path
        results.append(
            CheckResult(
                rule=Rule.BRANCH_PROTECTION,
                target=target,
                path=path,
                expected=want,
                actual=got,
                severity=severity,
                message=_format(want) if passed else f"{label}: expected {_format(want)}, got {_format(got)}",
                passed=passed,
                code=None if passed else code,
            )
        )

    reviews_want = expected.required_pull_request_reviews
    reviews_got = actual.required_pull_request_reviews
    field(
        "required_pull_request_reviews.enabled",
        reviews_want.enabled,
        reviews_got.enabled,
        reviews_want.enabled == reviews_got.enabled,
        _enabled_severity(reviews_want.enabled, reviews_got.enabled),
    )
    if reviews_want.enabled:
        field(
            "required_pull_request_reviews.required_approving_review_count",
            reviews_want.required_approving_review_count,
            reviews_got.required_approving_review_count,
            reviews_got.required_approving_review_count >= reviews_want.required_approving_review_count,
            Severity.ERROR,
            REVIEW_COUNT,
        )
        for name in ("dismiss_stale_reviews", "require_code_owner_reviews", "require_last_push_approval"):
            want, got = getattr(reviews_want, name), getattr(reviews_got, name)
            field(f"required_pull_request_reviews.{name}", want, got, want == got, Severity.WARNING)

    status_want = expected.required_status_checks
    status_got = actual.required_status_checks
    field(
        "required_status_checks.enabled",
        status_want.enabled,
        status_got.enabled,
        status_want.enabled == status_got.enabled,
        _enabled_severity(status_want.enabled, status_got.enabled),
    )
    if status_want.enabled:
        field(
            "required_status_checks.strict",
            status_want.strict,
            status_got.strict,
            status_want.strict == status_got.strict,
            Severity.WARNING,
        )
        if status_want.checks:
            results.append(_compare_status_checks(target, status_want.checks, status_got.checks))

    for name in FLAG_FIELDS:
        want, got = getattr(expected, name), getattr(actual, name)
        field(name, want, got, want == got, Severity.WARNING)

    return results


def _compare_status_checks(
    target: str,
    expected: Sequence[StatusCheck],
    actual: Sequence[StatusCheck],
) -> CheckResult:
    expected_contexts = [c.context for c in expected]
    actual_contexts = [c.context for c in actual]
    _, extra = array_diff(expected_contexts, actual_contexts)
    # An expected check pinned to an app only matches the same app
    missing: list[str] = []
    for check in expected:
        satisfied = any(
            a.context == check.context and (check.app_id is None or a.app_id == check.app_id)
            for a in actual
        )
        if not satisfied and check.context not in missing:
            missing.append(check.context)

    passed = not missing and not extra
    if passed:
        message = ", ".join(expected_contexts)
    elif missing:
        message = f"Missing required status check: {', '.join(missing)}"
        if extra:
            message += f" (extra: {', '.join(extra)})"
    else:
        message = f"Unexpected status checks: {', '.join(extra)}"

    code = None
    if missing:
        code = STATUS_CHECKS_MISSING
    elif extra:
        code = STATUS_CHECKS_EXTRA

    return CheckResult(
        rule=Rule.BRANCH_PROTECTION,
        target=target,
        path="required_status_checks.checks",
        expected=expected_contexts,
        actual=actual_contexts,
        severity=Severity.ERROR if missing else Severity.WARNING,
        message=message,
        passed=passed,
        code=code,
        missing=tuple(missing),
        extra=tuple(extra),
    )


def _enabled_severity(want: bool, got: bool) -> Severity:
    return Severity.ERROR if want and not got else Severity.WARNING


def _format(value: Value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + ", ".join(value) + "]"
    if value is None:
        return "(absent)"
    return str(value)

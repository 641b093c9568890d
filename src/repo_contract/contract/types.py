"""Typed contract model with documented defaults applied."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from repo_contract.contract.document import ContractDocument


class Severity(str, Enum):
    """Outcome severity. Ordered error > warning > info."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return {"error": 2, "warning": 1, "info": 0}[self.value]


class Rule(str, Enum):
    """Rule families, in reporting order."""

    REQUIRED_FILES = "required_files"
    BRANCH_PROTECTION = "branch_protection"


DEFAULT_BRANCHES: tuple[str, ...] = ("main",)


@dataclass(frozen=True)
class RequiredFileSpec:
    """One `required_files` entry."""

    path: str | None = None
    pattern: str | None = None
    alternatives: tuple[str, ...] = ()
    severity: Severity = Severity.ERROR
    case_insensitive: bool = False
    description: str | None = None

    @property
    def label(self) -> str:
        return self.path if self.path is not None else (self.pattern or "")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequiredFileSpec:
        return cls(
            path=data.get("path"),
            pattern=data.get("pattern"),
            alternatives=tuple(data.get("alternatives") or ()),
            severity=Severity(data.get("severity", "error")),
            case_insensitive=bool(data.get("case_insensitive", False)),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class StatusCheck:
    """A required status check context, optionally pinned to an app."""

    context: str
    app_id: int | None = None

    @classmethod
    def from_value(cls, value: Any) -> StatusCheck:
        # Plain strings are shorthand for {context: <string>}
        if isinstance(value, str):
            return cls(context=value)
        return cls(context=value["context"], app_id=value.get("app_id"))


@dataclass(frozen=True)
class RequiredPullRequestReviews:
    enabled: bool = True
    required_approving_review_count: int = 1
    dismiss_stale_reviews: bool = True
    require_code_owner_reviews: bool = False
    require_last_push_approval: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequiredPullRequestReviews:
        return cls(
            enabled=data.get("enabled", True),
            required_approving_review_count=data.get("required_approving_review_count", 1),
            dismiss_stale_reviews=data.get("dismiss_stale_reviews", True),
            require_code_owner_reviews=data.get("require_code_owner_reviews", False),
            require_last_push_approval=data.get("require_last_push_approval", False),
        )


@dataclass(frozen=True)
class RequiredStatusChecks:
    enabled: bool = True
    strict: bool = True
    checks: tuple[StatusCheck, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequiredStatusChecks:
        return cls(
            enabled=data.get("enabled", True),
            strict=data.get("strict", True),
            checks=tuple(StatusCheck.from_value(c) for c in data.get("checks") or ()),
        )


@dataclass(frozen=True)
class BranchProtectionRules:
    """Branch protection settings, expected (from a contract) or actual (from a remote)."""

    required_pull_request_reviews: RequiredPullRequestReviews = field(
        default_factory=RequiredPullRequestReviews
    )
    required_status_checks: RequiredStatusChecks = field(default_factory=RequiredStatusChecks)
    enforce_admins: bool = False
    required_linear_history: bool = False
    allow_force_pushes: bool = False
    allow_deletions: bool = False
    required_conversation_resolution: bool = False
    required_signatures: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BranchProtectionRules:
        return cls(
            required_pull_request_reviews=RequiredPullRequestReviews.from_dict(
                data.get("required_pull_request_reviews") or {}
            ),
            required_status_checks=RequiredStatusChecks.from_dict(
                data.get("required_status_checks") or {}
            ),
            enforce_admins=data.get("enforce_admins", False),
            required_linear_history=data.get("required_linear_history", False),
            allow_force_pushes=data.get("allow_force_pushes", False),
            allow_deletions=data.get("allow_deletions", False),
            required_conversation_resolution=data.get("required_conversation_resolution", False),
            required_signatures=data.get("required_signatures", False),
        )


# Actual protection reported by a remote has the same shape as the expected rules.
BranchProtectionActual = BranchProtectionRules


# Boolean rule fields compared one-to-one, in reporting order.
FLAG_FIELDS: tuple[str, ...] = (
    "enforce_admins",
    "required_linear_history",
    "allow_force_pushes",
    "allow_deletions",
    "required_conversation_resolution",
    "required_signatures",
)


@dataclass(frozen=True)
class BranchProtectionSpec:
    branches: tuple[str, ...] = DEFAULT_BRANCHES
    rules: BranchProtectionRules = field(default_factory=BranchProtectionRules)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BranchProtectionSpec:
        branches = data.get("branches")
        return cls(
            branches=tuple(branches) if branches is not None else DEFAULT_BRANCHES,
            rules=BranchProtectionRules.from_dict(data.get("rules") or {}),
        )


@dataclass(frozen=True)
class Contract:
    """Root contract after merge, with defaults applied."""

    version: str
    profile: str | None = None
    language: str | None = None
    branch_protection: BranchProtectionSpec | None = None
    required_files: tuple[RequiredFileSpec, ...] = ()
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Contract:
        """Build the typed contract from a structurally valid mapping."""
        protection = data.get("branch_protection")
        return cls(
            version=str(data["version"]),
            profile=data.get("profile"),
            language=data.get("language"),
            branch_protection=(
                BranchProtectionSpec.from_dict(protection) if protection is not None else None
            ),
            required_files=tuple(
                RequiredFileSpec.from_dict(entry) for entry in data.get("required_files") or ()
            ),
            metadata=data.get("metadata"),
        )

    @classmethod
    def from_document(cls, document: ContractDocument) -> Contract:
        return cls.from_dict(document.data)

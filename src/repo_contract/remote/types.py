"""Remote repository capability."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from repo_contract.contract.types import BranchProtectionActual


class RemoteRepository(Protocol):
    """Read-only view of a hosted repository.

    Implementations raise `RemoteError` for transport or API failures. An
    unconfigured remote (no credential) is represented by passing None
    instead of an instance.
    """

    def list_branches(self) -> Sequence[str]:
        ...

    def get_branch_protection(self, branch: str) -> BranchProtectionActual | None:
        """Return the branch's protection, or None when it is unprotected."""
        ...

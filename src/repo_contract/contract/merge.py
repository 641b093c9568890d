"""Core + profile merge driven by a per-field strategy table."""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any

from repo_contract.contract.document import ContractDocument


class MergeStrategy(str, Enum):
    """How a profile value combines with the core value for one field."""

    KEEP_BASE = "keep_base"
    APPEND = "append"
    REPLACE = "replace"
    MERGE = "merge"


# Top-level fields with a fixed strategy. Anything not listed falls back to
# the value kind: mapping -> MERGE, sequence -> APPEND, scalar -> REPLACE.
MERGE_STRATEGIES: dict[str, MergeStrategy] = {
    "$schema": MergeStrategy.KEEP_BASE,
    "version": MergeStrategy.KEEP_BASE,
    "profile": MergeStrategy.KEEP_BASE,
    "language": MergeStrategy.KEEP_BASE,
    "metadata": MergeStrategy.KEEP_BASE,
    "required_files": MergeStrategy.APPEND,
    "branch_protection": MergeStrategy.MERGE,
}


def merge(core: ContractDocument, profile: ContractDocument | None) -> ContractDocument:
    """Merge a profile into a core contract.

    Returns `core` itself when there is no profile. Otherwise returns a new
    document; neither input is modified. Arrays at any depth are appended
    (core entries first, no deduplication), nested scalars present in the
    profile replace core values, and `version` always comes from core.
    """
    if profile is None:
        return core

    merged = copy.deepcopy(core.data)
    for key, profile_value in profile.data.items():
        strategy = MERGE_STRATEGIES.get(key) or strategy_for(profile_value)
        if key not in merged:
            if strategy is MergeStrategy.KEEP_BASE:
                continue
            merged[key] = copy.deepcopy(profile_value)
            continue
        merged[key] = _apply(strategy, merged[key], profile_value)

    # Locations of core fields still hold; profile-only fields have none.
    return ContractDocument(data=merged, source=core.source, positions=dict(core.positions))


def strategy_for(value: Any) -> MergeStrategy:
    if isinstance(value, dict):
        return MergeStrategy.MERGE
    if isinstance(value, list):
        return MergeStrategy.APPEND
    return MergeStrategy.REPLACE


def _apply(strategy: MergeStrategy, base: Any, overlay: Any) -> Any:
    if strategy is MergeStrategy.KEEP_BASE:
        return base
    if strategy is MergeStrategy.APPEND and isinstance(base, list) and isinstance(overlay, list):
        return [*base, *copy.deepcopy(overlay)]
    if strategy is MergeStrategy.MERGE and isinstance(base, dict) and isinstance(overlay, dict):
        return _merge_mappings(base, overlay)
    # Kind mismatch (e.g. list in core, scalar in profile): profile wins.
    return copy.deepcopy(overlay)


def _merge_mappings(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in overlay.items():
        if key in result:
            result[key] = _apply(strategy_for(value), result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result

"""Path and branch-name matching for contract rules.

Glob syntax:
  *    any run of characters except "/"
  **   any run of characters including "/" ("**/" also matches zero directories)
  ?    one character except "/"
  [..] character class ("[!..]" negates)

`pattern` entries are regular expressions matched against the whole path.
Compiled patterns live on a PathMatcher instance, so one matcher per
reconcile/diff call compiles each pattern once and shares nothing across calls.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from repo_contract.contract.types import RequiredFileSpec

GLOB_CHARS = ("*", "?", "[")


def looks_like_glob(candidate: str) -> bool:
    return any(ch in candidate for ch in GLOB_CHARS)


def normalize_path(path: str) -> str:
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def glob_to_regex(pattern: str) -> str:
    """Translate a glob into an (unanchored) regular expression."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "*":
            if pattern.startswith("**/", i):
                out.append("(?:.*/)?")
                i += 3
                continue
            if pattern.startswith("**", i):
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[":
            end = _class_end(pattern, i)
            if end < 0:
                out.append(re.escape(ch))
            else:
                body = pattern[i + 1 : end]
                negate = body[:1] in ("!", "^")
                if negate:
                    body = body[1:]
                body = body.replace("\\", "\\\\")
                out.append(f"[{'^' if negate else ''}{body}]")
                i = end
        else:
            out.append(re.escape(ch))
        i += 1
    return "".join(out)


def _class_end(pattern: str, start: int) -> int:
    j = start + 1
    if j < len(pattern) and pattern[j] in ("!", "^"):
        j += 1
    # A "]" right after the opening bracket is a literal member
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    return pattern.find("]", j)


class PathMatcher:
    """Resolves required-file specs and branch globs with per-instance caching."""

    def __init__(self) -> None:
        self._compiled: dict[tuple[str, str, bool], re.Pattern[str]] = {}
        # Last path set seen and its sorted form; one tree is matched by many specs
        self._ordered_source: frozenset[str] | set[str] | None = None
        self._ordered: list[str] = []

    def compile_glob(self, pattern: str, case_insensitive: bool = False) -> re.Pattern[str]:
        key = ("glob", pattern, case_insensitive)
        if key not in self._compiled:
            source = pattern.lower() if case_insensitive else pattern
            self._compiled[key] = re.compile(glob_to_regex(normalize_path(source)))
        return self._compiled[key]

    def compile_pattern(self, pattern: str, case_insensitive: bool = False) -> re.Pattern[str]:
        """Compile a `pattern` regex once.

        Case-insensitivity uses re.IGNORECASE rather than lowering the
        expression, which would change escapes such as \\D or \\S.

        Raises:
            re.error: If the expression is invalid
        """
        key = ("regex", pattern, case_insensitive)
        if key not in self._compiled:
            flags = re.IGNORECASE if case_insensitive else 0
            self._compiled[key] = re.compile(pattern, flags)
        return self._compiled[key]

    def find_match(self, spec: RequiredFileSpec, actual_paths: Iterable[str]) -> str | None:
        """Return the first actual path satisfying `spec`, or None.

        Candidates are tried in order: `path`, each of `alternatives`, then
        `pattern`. The first hit wins and nothing after it is evaluated.
        """
        paths = actual_paths if isinstance(actual_paths, (set, frozenset)) else set(actual_paths)
        ordered = self._sorted(paths)
        candidates = ([spec.path] if spec.path is not None else []) + list(spec.alternatives)
        for candidate in candidates:
            hit = self._match_candidate(candidate, paths, ordered, spec.case_insensitive)
            if hit is not None:
                return hit
        if spec.pattern is not None:
            regex = self.compile_pattern(spec.pattern, spec.case_insensitive)
            for path in ordered:
                if regex.fullmatch(path):
                    return path
        return None

    def _sorted(self, paths: set[str] | frozenset[str]) -> list[str]:
        if paths is not self._ordered_source or isinstance(paths, set):
            self._ordered_source = paths
            self._ordered = sorted(paths)
        return self._ordered

    def matches(self, spec: RequiredFileSpec, actual_paths: Iterable[str]) -> bool:
        return self.find_match(spec, actual_paths) is not None

    def matches_branch(self, pattern: str, branch_name: str) -> bool:
        return self.compile_glob(pattern).fullmatch(branch_name) is not None

    def _match_candidate(
        self,
        candidate: str,
        paths: set[str] | frozenset[str],
        ordered: list[str],
        case_insensitive: bool,
    ) -> str | None:
        normalized = normalize_path(candidate)
        if looks_like_glob(normalized):
            regex = self.compile_glob(normalized, case_insensitive)
            for path in ordered:
                subject = path.lower() if case_insensitive else path
                if regex.fullmatch(subject):
                    return path
            return None

        target = normalized.rstrip("/")
        if not case_insensitive and target in paths:
            return target
        if case_insensitive:
            target = target.lower()
        prefix = target + "/"
        for path in ordered:
            subject = path.lower() if case_insensitive else path
            # A bare path also names a directory containing listed files
            if subject == target or subject.startswith(prefix):
                return target if subject.startswith(prefix) else path
        return None


def matches(spec: RequiredFileSpec, actual_paths: Iterable[str]) -> bool:
    """One-off match with a fresh matcher."""
    return PathMatcher().matches(spec, actual_paths)


def matches_branch(pattern: str, branch_name: str) -> bool:
    """One-off branch glob match with a fresh matcher."""
    return PathMatcher().matches_branch(pattern, branch_name)

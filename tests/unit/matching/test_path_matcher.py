"""Tests for required-file and branch matching."""

from __future__ import annotations

import pytest

from repo_contract.contract.types import RequiredFileSpec
from repo_contract.matching import PathMatcher, glob_to_regex, looks_like_glob, matches, matches_branch

TREE = frozenset(
    {
        "README.md",
        "COPYING",
        "src/a.rs",
        "src/a/b.rs",
        "srcx/a.rs",
        "docs/guide/intro.md",
        "Docs/Upper.MD",
        ".github/workflows/ci.yml",
    }
)


@pytest.mark.parametrize(
    "glob,path,expected",
    [
        ("src/**/*.rs", "src/a/b.rs", True),
        ("src/**/*.rs", "src/a.rs", True),
        ("src/**/*.rs", "srcx/a.rs", False),
        ("src/*.rs", "src/a/b.rs", False),
        ("docs/**", "docs/guide/intro.md", True),
        ("?EADME.md", "README.md", True),
        ("[RQ]EADME.md", "README.md", True),
        ("[!R]EADME.md", "README.md", False),
    ],
)
def test_glob_semantics(glob: str, path: str, expected: bool) -> None:
    assert matches(RequiredFileSpec(path=glob), [path]) is expected


def test_exact_path() -> None:
    assert matches(RequiredFileSpec(path="README.md"), TREE)
    assert not matches(RequiredFileSpec(path="readme.md"), TREE)


def test_bare_path_matches_directory() -> None:
    assert matches(RequiredFileSpec(path=".github/workflows"), TREE)
    assert matches(RequiredFileSpec(path="docs/"), TREE)
    assert not matches(RequiredFileSpec(path="doc"), TREE)


def test_alternative_satisfies_spec() -> None:
    spec = RequiredFileSpec(path="LICENSE", alternatives=("LICENSE.md", "COPYING"))
    assert PathMatcher().find_match(spec, TREE) == "COPYING"


def test_first_match_wins() -> None:
    spec = RequiredFileSpec(path="README.md", alternatives=("COPYING",))
    assert PathMatcher().find_match(spec, TREE) == "README.md"


def test_pattern_is_fully_anchored() -> None:
    assert matches(RequiredFileSpec(pattern=r"docs/.*\.md"), TREE)
    assert not matches(RequiredFileSpec(pattern=r"guide/.*\.md"), TREE)


def test_case_insensitive_path_glob_and_pattern() -> None:
    assert matches(RequiredFileSpec(path="readme.md", case_insensitive=True), TREE)
    assert matches(RequiredFileSpec(path="docs/*.md", case_insensitive=True), TREE)
    assert matches(RequiredFileSpec(pattern=r"docs/upper\.md", case_insensitive=True), TREE)
    assert not matches(RequiredFileSpec(pattern=r"docs/upper\.md"), TREE)


def test_case_insensitive_match_returns_actual_path() -> None:
    spec = RequiredFileSpec(path="readme.md", case_insensitive=True)
    assert PathMatcher().find_match(spec, TREE) == "README.md"


def test_leading_dot_slash_is_ignored() -> None:
    assert matches(RequiredFileSpec(path="./README.md"), TREE)


def test_patterns_compile_once_per_matcher() -> None:
    matcher = PathMatcher()
    spec = RequiredFileSpec(pattern=r"src/.*\.rs")

    first = matcher.compile_pattern(spec.pattern)
    matcher.find_match(spec, TREE)
    matcher.find_match(spec, TREE)

    assert matcher.compile_pattern(spec.pattern) is first
    assert PathMatcher()._compiled == {}


@pytest.mark.parametrize(
    "pattern,branch,expected",
    [
        ("main", "main", True),
        ("main", "main2", False),
        ("release-*", "release-1.0", True),
        ("release-**", "release-1.0", True),
        ("release/*", "release/1.0", True),
        ("*", "feature", True),
    ],
)
def test_branch_globs(pattern: str, branch: str, expected: bool) -> None:
    assert matches_branch(pattern, branch) is expected


def test_glob_helpers() -> None:
    assert looks_like_glob("src/*.rs")
    assert not looks_like_glob("README.md")
    assert glob_to_regex("a.b") == r"a\.b"


def test_path_set_is_sorted_once_per_tree(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []

    def counting_sorted(items):
        calls.append(1)
        return sorted(items)

    matcher = PathMatcher()
    monkeypatch.setattr("repo_contract.matching.sorted", counting_sorted, raising=False)
    specs = [RequiredFileSpec(path="README.md"), RequiredFileSpec(path="LICENSE"), RequiredFileSpec(pattern=r"src/.*\.rs")]

    hits = [matcher.find_match(spec, TREE) for spec in specs]

    assert hits == ["README.md", None, "src/a.rs"]
    assert len(calls) == 1

    matcher.find_match(specs[0], frozenset({"README.md"}))
    assert len(calls) == 2

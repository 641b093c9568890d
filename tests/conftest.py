"""Pytest configuration and fixtures for repo-contract tests."""
from collections.abc import Callable
from pathlib import Path

import pytest


def pytest_sessionfinish(session, exitstatus):
    """Check that coverage data was collected if --cov was requested.

    This prevents silent "no data collected" scenarios that produce 0% coverage
    without failing the test run.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)

    if not cov_enabled:
        return

    cwd = Path.cwd()
    coverage_files = list(cwd.glob(".coverage*"))

    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "This suggests tests are not importing/executing package code. "
            "Check that tests import from 'repo_contract' (the package) not 'src/repo_contract' (filesystem path).",
            returncode=1
        )


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Create files (with placeholder content) under tmp_path and return the root."""

    def _make(*paths: str) -> Path:
        for rel in paths:
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(f"{rel}\n", encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run in tmp_path with no ambient GitHub or strict-mode settings."""
    monkeypatch.chdir(tmp_path)
    for name in ("GITHUB_TOKEN", "GITHUB_REPOSITORY", "CONTRACT_STRICT"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path

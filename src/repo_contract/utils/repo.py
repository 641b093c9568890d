"""Local repository access: file listing, project type inference, git remote."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

ProjectType = Literal["python", "node", "go", "rust", "unknown"]

# VCS metadata directories never listed as repository content
VCS_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn"})


class FileLister(Protocol):
    """Source of the repository's file paths."""

    def list_paths(self) -> frozenset[str]:
        """Return all file paths relative to the repository root, POSIX-style."""
        ...


@dataclass(frozen=True)
class LocalFileLister:
    """Lists files under `root`, skipping VCS directories and `ignore_dirs`."""

    root: Path
    ignore_dirs: frozenset[str] = field(default_factory=frozenset)

    def list_paths(self) -> frozenset[str]:
        """Walk the tree once.

        Raises:
            OSError: If the root is missing or unreadable
        """
        root = self.root.resolve()
        if not root.is_dir():
            raise NotADirectoryError(f"Repository root is not a directory: {root}")

        skipped = VCS_DIRS | self.ignore_dirs
        paths: set[str] = set()

        def _raise(error: OSError) -> None:
            raise error

        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            current = Path(dirpath)
            if current == root:
                dirnames[:] = [d for d in dirnames if d not in skipped]
            for filename in filenames:
                paths.add((current / filename).relative_to(root).as_posix())

        return frozenset(paths)


@dataclass(frozen=True)
class StaticFileLister:
    """A fixed set of paths (snapshots, tests)."""

    paths: frozenset[str]

    def list_paths(self) -> frozenset[str]:
        return self.paths


def infer_project_type(directory: Path) -> ProjectType:
    """Infer project type from marker files in a directory."""
    if (directory / "pyproject.toml").exists():
        return "python"
    if (directory / "package.json").exists():
        return "node"
    if (directory / "go.mod").exists():
        return "go"
    if (directory / "Cargo.toml").exists():
        return "rust"
    if (directory / "requirements.txt").exists():
        return "python"
    return "unknown"


def _run_git(repo_root: Path, args: list[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
    completed = subprocess.run(
        ["git", *args],
        cwd=repo_root,
        check=False,
        capture_output=True,
        text=True,
    )
    if check and completed.returncode != 0:
        stderr = (completed.stderr or completed.stdout).strip()
        raise RuntimeError(f"git {' '.join(args)} failed: {stderr}")
    return completed


def git_remote_url(repo_root: Path, remote: str = "origin") -> str | None:
    """Return the configured URL of `remote`, or None if unset or git is unavailable."""
    try:
        completed = _run_git(repo_root, ["config", "--get", f"remote.{remote}.url"], check=False)
    except OSError:
        return None
    url = completed.stdout.strip()
    if completed.returncode != 0 or not url:
        return None
    return url

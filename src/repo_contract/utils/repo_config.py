"""Repository configuration loader.

Reads an optional .contract.toml from the working directory supplying
defaults for CLI options. Command-line flags always win.
"""

import os

# Use tomllib for 3.11+
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

CONFIG_FILENAME = ".contract.toml"
DEFAULT_CONTRACT = "contract.yml"

OutputFormat = Literal["human", "json", "yaml"]

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class GitHubSettings:
    """Remote API settings."""

    token: str | None = None
    api_url: str = "https://api.github.com"
    timeout: float = 10.0


@dataclass(frozen=True)
class RepoConfig:
    """Defaults for contract commands."""

    config: str = DEFAULT_CONTRACT
    format: OutputFormat = "human"
    strict: bool = False
    rules: list[str] = field(default_factory=list)
    github: GitHubSettings = field(default_factory=GitHubSettings)

    @classmethod
    def from_dict(cls, data: dict) -> "RepoConfig":
        """Parse and validate config dict into RepoConfig."""
        default = data.get("default", {})
        check = data.get("check", {})
        github_data = data.get("github", {})

        output_format = default.get("format", "human")
        if output_format not in ("human", "json", "yaml"):
            raise ValueError(f"unknown output format {output_format!r}")

        rules = check.get("rules", [])
        if isinstance(rules, str):
            rules = [r.strip() for r in rules.split(",") if r.strip()]
        if not isinstance(rules, list):
            raise TypeError("check.rules must be a list or comma-separated string")

        strict = default.get("strict", False)
        if not isinstance(strict, bool):
            raise TypeError("default.strict must be a boolean")

        github = GitHubSettings(
            token=github_data.get("token"),
            api_url=github_data.get("api_url", GitHubSettings.api_url),
            timeout=float(github_data.get("timeout", GitHubSettings.timeout)),
        )

        return cls(
            config=str(default.get("config", DEFAULT_CONTRACT)),
            format=output_format,
            strict=strict,
            rules=[str(r) for r in rules],
            github=github,
        )


def load_repo_config(workspace_root: Path) -> RepoConfig:
    """Load configuration from .contract.toml, or defaults when absent.

    Args:
        workspace_root: Directory searched for the config file

    Returns:
        RepoConfig with file values applied over defaults

    Raises:
        RuntimeError: If config file is malformed or invalid
    """
    toml_path = workspace_root / CONFIG_FILENAME
    if not toml_path.exists():
        return RepoConfig()

    try:
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
        return RepoConfig.from_dict(data)
    except tomllib.TOMLDecodeError as e:
        raise RuntimeError(
            f"Malformed TOML config at {toml_path}: {e}"
        ) from e
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise RuntimeError(
            f"Invalid config structure in {toml_path}: {e}"
        ) from e


def strict_from_env() -> bool:
    """True when CONTRACT_STRICT is set to a truthy value."""
    return os.getenv("CONTRACT_STRICT", "").strip().lower() in _TRUTHY


def resolve_token(config: RepoConfig) -> str | None:
    """GITHUB_TOKEN wins over the configured token."""
    token = os.getenv("GITHUB_TOKEN", "").strip()
    if token:
        return token
    return config.github.token or None

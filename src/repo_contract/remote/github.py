"""GitHub REST implementation of RemoteRepository, built on httpx."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from repo_contract.contract.types import (
    BranchProtectionRules,
    RequiredPullRequestReviews,
    RequiredStatusChecks,
    StatusCheck,
)
from repo_contract.errors import RemoteError
from repo_contract.utils.repo import git_remote_url

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_S = 10.0
USER_AGENT = "repo-contract"


class GitHubRepository:
    """Read-only GitHub repository client.

    Args:
        slug: Repository as "owner/repo"
        token: API token sent as a Bearer credential
        base_url: API root (GitHub Enterprise installs differ)
        timeout: Per-request timeout in seconds
        transport: Optional custom transport (useful for testing)
    """

    def __init__(
        self,
        slug: str,
        token: str | None = None,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.slug = slug
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitHubRepository:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def list_branches(self) -> list[str]:
        """List all branch names, following Link pagination."""
        names: list[str] = []
        url: str | None = f"/repos/{self.slug}/branches"
        params: dict[str, Any] | None = {"per_page": 100}
        while url:
            response = self._get(url, params=params)
            if response is None:
                raise RemoteError(f"Repository not found or not accessible: {self.slug}")
            payload = _json(response)
            if not isinstance(payload, list):
                raise RemoteError(f"Unexpected branch listing payload for {self.slug}")
            try:
                names.extend(str(item["name"]) for item in payload)
            except (KeyError, TypeError) as e:
                raise RemoteError(f"Unexpected branch listing payload for {self.slug}: {e!r}") from e
            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None
        return names

    def get_branch_protection(self, branch: str) -> BranchProtectionRules | None:
        response = self._get(f"/repos/{self.slug}/branches/{quote(branch, safe='')}/protection")
        if response is None:
            return None
        payload = _json(response)
        if not isinstance(payload, dict):
            raise RemoteError(f"Unexpected protection payload for {self.slug}@{branch}")
        try:
            return convert_protection(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RemoteError(f"Unexpected protection payload for {self.slug}@{branch}: {e!r}") from e

    def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response | None:
        logger.debug("GET %s", url)
        try:
            response = self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise RemoteError(f"GitHub API timed out: {url}") from e
        except httpx.HTTPError as e:
            raise RemoteError(f"GitHub API request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code in (401, 403):
            raise RemoteError(
                f"GitHub API refused access (status {response.status_code}); check the token's permissions"
            )
        if response.status_code >= 400:
            raise RemoteError(f"GitHub API error: status code {response.status_code} for {url}")
        return response


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise RemoteError(f"GitHub API returned invalid JSON: {e}") from e


def _enabled(payload: dict[str, Any], key: str) -> bool:
    value = payload.get(key)
    if isinstance(value, dict):
        return bool(value.get("enabled", False))
    return False


def convert_protection(payload: dict[str, Any]) -> BranchProtectionRules:
    """Convert a GitHub branch protection payload into protection rules.

    Sub-objects missing from the payload mean the setting is disabled.
    """
    reviews = payload.get("required_pull_request_reviews")
    if isinstance(reviews, dict):
        review_rules = RequiredPullRequestReviews(
            enabled=True,
            required_approving_review_count=int(reviews.get("required_approving_review_count", 0)),
            dismiss_stale_reviews=bool(reviews.get("dismiss_stale_reviews", False)),
            require_code_owner_reviews=bool(reviews.get("require_code_owner_reviews", False)),
            require_last_push_approval=bool(reviews.get("require_last_push_approval", False)),
        )
    else:
        review_rules = RequiredPullRequestReviews(
            enabled=False,
            required_approving_review_count=0,
            dismiss_stale_reviews=False,
        )

    status = payload.get("required_status_checks")
    if isinstance(status, dict):
        checks = [StatusCheck(context=str(c)) for c in status.get("contexts") or ()]
        for item in status.get("checks") or ():
            checks.append(StatusCheck(context=str(item["context"]), app_id=item.get("app_id")))
        status_rules = RequiredStatusChecks(
            enabled=True,
            strict=bool(status.get("strict", False)),
            checks=tuple(checks),
        )
    else:
        status_rules = RequiredStatusChecks(enabled=False, strict=False)

    return BranchProtectionRules(
        required_pull_request_reviews=review_rules,
        required_status_checks=status_rules,
        enforce_admins=_enabled(payload, "enforce_admins"),
        required_linear_history=_enabled(payload, "required_linear_history"),
        allow_force_pushes=_enabled(payload, "allow_force_pushes"),
        allow_deletions=_enabled(payload, "allow_deletions"),
        required_conversation_resolution=_enabled(payload, "required_conversation_resolution"),
        required_signatures=_enabled(payload, "required_signatures"),
    )


def normalize_repository(value: str) -> str | None:
    """Reduce a GitHub URL or slug to "owner/repo".

    Accepts scp-style (git@github.com:o/r.git), ssh:// and https:// URLs and
    bare "owner/repo" strings.
    """
    trimmed = value.strip()
    if trimmed.endswith(".git"):
        trimmed = trimmed[: -len(".git")]
    for prefix in ("git@github.com:", "ssh://git@github.com/"):
        if trimmed.startswith(prefix):
            return _owner_repo(trimmed[len(prefix):])
    marker = "github.com/"
    index = trimmed.find(marker)
    if index >= 0:
        return _owner_repo(trimmed[index + len(marker):])
    return _owner_repo(trimmed)


def _owner_repo(value: str) -> str | None:
    parts = value.split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return f"{parts[0]}/{parts[1]}"


def resolve_repository(remote: str | None, repo_root: Path) -> str:
    """Resolve the target repository slug.

    Priority: explicit `remote`, then GITHUB_REPOSITORY, then the git
    `origin` remote of `repo_root`.

    Raises:
        RemoteError: If no repository can be determined
    """
    if remote:
        slug = normalize_repository(remote)
        if slug is None:
            raise RemoteError(f"invalid remote repository: {remote}")
        return slug

    env_repo = os.getenv("GITHUB_REPOSITORY", "").strip()
    if env_repo:
        return env_repo

    url = git_remote_url(repo_root)
    if url is None:
        raise RemoteError("Cannot determine GitHub repository: no --remote, GITHUB_REPOSITORY or git remote.origin.url")
    slug = normalize_repository(url)
    if slug is None:
        raise RemoteError(f"invalid remote repository: {url}")
    return slug

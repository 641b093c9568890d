"""Load a base contract and merge in its profile."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from repo_contract.contract.document import ContractDocument
from repo_contract.contract.merge import merge
from repo_contract.errors import ProfileNotFoundError
from repo_contract.schemas.validator import PROFILE_NOT_FOUND, SchemaError

logger = logging.getLogger(__name__)

DEFAULT_CONTRACT_FILENAME = "contract.yml"
PROFILE_SUFFIXES = (".yml", ".yaml")


@dataclass(frozen=True)
class LoadedContract:
    """A base contract, its profile (if found) and the merged result."""

    base_path: Path
    base: ContractDocument
    document: ContractDocument
    profile_path: Path | None = None
    profile: ContractDocument | None = None
    advisories: tuple[SchemaError, ...] = field(default_factory=tuple)


def profile_path_for(base_path: Path, profile: str) -> Path:
    """Return where the profile file for `profile` is expected.

    The `.yml` name is preferred; an existing `.yaml` file is used as fallback.
    """
    directory = base_path.parent
    candidates = [directory / f"contract.{profile}{suffix}" for suffix in PROFILE_SUFFIXES]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def load_contract(
    config_path: Path,
    include_profile: bool = True,
    require_profile: bool = False,
) -> LoadedContract:
    """Load `config_path` and merge the profile it names.

    A missing profile is advisory: the core contract is used alone and an
    E021 advisory is attached. With `require_profile=True` it is an error.

    Raises:
        DocumentDecodeError: If a file cannot be read or decoded
        ProfileNotFoundError: If `require_profile` is set and the profile is missing
    """
    base = ContractDocument.from_file(config_path)
    profile_name = base.profile_name

    if not include_profile or profile_name is None:
        return LoadedContract(base_path=config_path, base=base, document=base)

    profile_path = profile_path_for(config_path, profile_name)
    if not profile_path.exists():
        if require_profile:
            raise ProfileNotFoundError(profile_name, str(profile_path))
        logger.warning("Profile '%s' not found at %s; using core contract only", profile_name, profile_path)
        position = base.position(("profile",))
        advisory = SchemaError(
            code=PROFILE_NOT_FOUND,
            path="profile",
            message=f"Profile '{profile_name}' not found: {profile_path}",
            line=position[0] if position else None,
            column=position[1] if position else None,
        )
        return LoadedContract(
            base_path=config_path,
            base=base,
            document=base,
            advisories=(advisory,),
        )

    profile = ContractDocument.from_file(profile_path)
    logger.info("Merging profile '%s' from %s", profile_name, profile_path)
    return LoadedContract(
        base_path=config_path,
        base=base,
        document=merge(base, profile),
        profile_path=profile_path,
        profile=profile,
    )

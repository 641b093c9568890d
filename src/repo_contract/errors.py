"""Exception types shared across repo-contract."""


class ContractError(RuntimeError):
    """Base class for execution failures (not contract violations)."""


class DocumentDecodeError(ContractError):
    """Raised when a contract or profile file cannot be decoded."""


class ProfileNotFoundError(ContractError):
    """Raised when an explicitly required profile file is missing."""

    def __init__(self, profile: str, path: str) -> None:
        super().__init__(f"Profile file not found: {path}")
        self.profile = profile
        self.path = path


class UnsupportedOperation(ContractError):
    """Raised when a rule cannot be evaluated in the requested mode."""


class RemoteError(ContractError):
    """Raised when the remote repository API fails or is unreachable."""


class AlreadyExistsError(ContractError):
    """Raised when scaffolding would overwrite an existing file."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File already exists: {path}")
        self.path = path

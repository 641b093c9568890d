"""Structural validation of contract documents against bundled schemas."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from jsonschema.validators import Draft202012Validator

from repo_contract.contract.document import ContractDocument, FieldPath
from repo_contract.utils.schema_registry import get_registry

# Document-level issues (structure, types, ranges, enums)
DOCUMENT_ERROR = "E020"
# Named profile file could not be located
PROFILE_NOT_FOUND = "E021"

CONTRACT_SCHEMA = "contract"


@dataclass(frozen=True)
class SchemaError:
    """One structural problem (or advisory) in a document."""

    code: str
    path: str
    message: str
    line: int | None = None
    column: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def __str__(self) -> str:
        where = f" (line {self.line}, column {self.column})" if self.line is not None else ""
        return f"[{self.code}] {self.path}: {self.message}{where}"


@dataclass
class ValidationReport:
    """Validation result for one file."""

    path: str
    valid: bool
    errors: list[SchemaError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }


def format_path(path: FieldPath) -> str:
    """Render a field path as `a.b[0].c`; the document root is `$`."""
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out or "$"


def validate(document: ContractDocument) -> list[SchemaError]:
    """Validate a (merged) contract document.

    Purely structural: repository state is never consulted. Every problem
    is collected; nothing short-circuits on the first error.

    Returns:
        Errors sorted by document path (empty when the document conforms)
    """
    schema = get_registry().get_json(CONTRACT_SCHEMA)
    validator = Draft202012Validator(schema)

    errors: list[tuple[FieldPath, SchemaError]] = []
    for error in validator.iter_errors(document.data):
        location: FieldPath = tuple(error.absolute_path)
        errors.append((location, _to_schema_error(document, location, _describe(error))))

    for location, message in _semantic_issues(document.data):
        errors.append((location, _to_schema_error(document, location, message)))

    # Indices compare as numbers so required_files[2] precedes required_files[10]
    errors.sort(key=lambda item: tuple((0, p) if isinstance(p, int) else (1, p) for p in item[0]))
    return [e for _, e in errors]


def validate_file(path: Path) -> ValidationReport:
    """Decode and validate a single contract or profile file.

    Raises:
        DocumentDecodeError: If the file cannot be read or decoded
    """
    document = ContractDocument.from_file(path)
    errors = validate(document)
    return ValidationReport(path=str(path), valid=not errors, errors=errors)


def validate_data(
    data: dict[str, Any],
    schema_name: str,
    strict: bool = True,
) -> tuple[bool, list[str]]:
    """Validate arbitrary data against a bundled schema.

    Args:
        data: Data to validate
        schema_name: Name of schema to validate against
        strict: If True, raise on validation errors; if False, return error list

    Returns:
        Tuple of (is_valid, error_messages)

    Raises:
        KeyError: If schema not found in package data
        ValueError: If validation fails and strict=True
    """
    schema = get_registry().get_json(schema_name)
    validator = Draft202012Validator(schema)
    errors = list(validator.iter_errors(data))

    if errors:
        error_messages = [
            f"{format_path(tuple(e.absolute_path))}: {e.message}" for e in errors
        ]
        if strict:
            raise ValueError(
                f"Schema validation failed for '{schema_name}':\n"
                + "\n".join(f"  - {msg}" for msg in error_messages)
            )
        return False, error_messages

    return True, []


def _to_schema_error(document: ContractDocument, location: FieldPath, message: str) -> SchemaError:
    position = document.position(location)
    return SchemaError(
        code=DOCUMENT_ERROR,
        path=format_path(location),
        message=message,
        line=position[0] if position else None,
        column=position[1] if position else None,
    )


def _describe(error: Any) -> str:
    location = tuple(error.absolute_path)
    if (
        error.validator == "anyOf"
        and len(location) == 2
        and location[0] == "required_files"
    ):
        return "required_files entry must include path or pattern"
    if error.validator == "required" and not location:
        return error.message.replace("is a required property", "is required")
    return error.message


def _semantic_issues(data: dict[str, Any]) -> list[tuple[FieldPath, str]]:
    issues: list[tuple[FieldPath, str]] = []
    entries = data.get("required_files")
    if not isinstance(entries, list):
        return issues
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            continue
        pattern = entry.get("pattern")
        if isinstance(pattern, str):
            try:
                re.compile(pattern)
            except re.error as e:
                issues.append((("required_files", index, "pattern"), f"invalid regular expression: {e}"))
    return issues

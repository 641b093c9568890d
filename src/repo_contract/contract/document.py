"""Decoded contract/profile documents with source positions."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from repo_contract.errors import DocumentDecodeError

FieldPath = tuple[str | int, ...]


@dataclass(frozen=True)
class ContractDocument:
    """A contract or profile exactly as decoded, before defaults are applied.

    Attributes:
        data: Decoded top-level mapping
        source: File the document was read from (None for in-memory documents)
        positions: 1-based (line, column) for each field path, when known
    """

    data: dict[str, Any]
    source: Path | None = None
    positions: dict[FieldPath, tuple[int, int]] = field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str, source: Path | None = None) -> ContractDocument:
        """Decode YAML (or JSON) text into a document.

        Raises:
            DocumentDecodeError: If the text is not valid YAML or its root is not a mapping
        """
        label = str(source) if source else "<string>"
        try:
            data = yaml.safe_load(text)
            node = yaml.compose(text, Loader=yaml.SafeLoader)
        except yaml.YAMLError as e:
            raise DocumentDecodeError(f"Malformed YAML in {label}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DocumentDecodeError(
                f"Document root in {label} must be a mapping, got {type(data).__name__}"
            )

        positions: dict[FieldPath, tuple[int, int]] = {}
        if node is not None:
            _index_positions(node, (), positions)

        return cls(data=data, source=source, positions=positions)

    @classmethod
    def from_file(cls, path: Path) -> ContractDocument:
        """Read and decode a document from disk."""
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise DocumentDecodeError(f"Cannot read {path}: {e}") from e
        return cls.from_text(text, source=path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContractDocument:
        """Wrap an already-decoded mapping (no position information)."""
        return cls(data=copy.deepcopy(data))

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the decoded mapping."""
        return copy.deepcopy(self.data)

    @property
    def profile_name(self) -> str | None:
        value = self.data.get("profile")
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    def position(self, path: FieldPath) -> tuple[int, int] | None:
        """Return the position of `path`, or of its nearest located ancestor."""
        current = tuple(path)
        while True:
            if current in self.positions:
                return self.positions[current]
            if not current:
                return None
            current = current[:-1]


def _index_positions(
    node: yaml.Node,
    prefix: FieldPath,
    out: dict[FieldPath, tuple[int, int]],
) -> None:
    out[prefix] = (node.start_mark.line + 1, node.start_mark.column + 1)
    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            if isinstance(key_node, yaml.ScalarNode):
                _index_positions(value_node, prefix + (key_node.value,), out)
    elif isinstance(node, yaml.SequenceNode):
        for index, item in enumerate(node.value):
            _index_positions(item, prefix + (index,), out)

"""Domain errors."""

from __future__ import annotations

from dataclasses import dataclass


class VaultError(Exception):
    """Base class for every error raised by the vault."""


@dataclass(eq=False, slots=True)
class InvalidArgumentError(VaultError, ValueError):
    """Raised when a command carries an empty or inconsistent argument."""

    argument: str
    reason: str

    def __str__(self) -> str:
        return f"Invalid {self.argument}: {self.reason}"


@dataclass(eq=False, slots=True)
class NodeNotFoundError(VaultError, LookupError):
    """Raised when a command references an id that does not resolve."""

    node_id: str
    expected: str = "node"

    def __str__(self) -> str:
        return f"No {self.expected} with id {self.node_id!r}"


@dataclass(eq=False, slots=True)
class StoreError(VaultError):
    """Raised when persisted vault state cannot be read back."""

    location: str
    reason: str

    def __str__(self) -> str:
        return f"Vault store {self.location}: {self.reason}"

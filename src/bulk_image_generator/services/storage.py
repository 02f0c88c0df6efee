"""Key-value storage abstractions."""

from dataclasses import dataclass
from typing import Protocol


class KeyValueStore(Protocol):
    """String key-value store used for credentials and history."""

    def get(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous one."""

    def remove(self, key: str) -> None:
        """Delete a key if present."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store used when no database is configured."""

    _values: dict[str, str]

    def __init__(self) -> None:
        self._values = {}

    def get(self, key: str) -> str | None:
        """Return the stored value for a key."""
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""
        self._values[key] = value

    def remove(self, key: str) -> None:
        """Delete a key if present."""
        self._values.pop(key, None)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class VersionedDocument:
    key: str
    payload: dict[str, Any]
    version: int


class DocumentRepository(Protocol):
    """Keyed JSON documents of the `system` namespace (config marker, settings)."""

    def get(self, key: str) -> Optional[VersionedDocument]:
        raise NotImplementedError

    def create(self, key: str, payload: dict[str, Any]) -> bool:
        """Insert at version 1; False if the key already exists."""

        raise NotImplementedError

    def replace(self, key: str, payload: dict[str, Any], *, expected_version: int) -> bool:
        """Compare-and-swap: write and bump the version only if it still equals `expected_version`."""

        raise NotImplementedError

    def put(self, key: str, payload: dict[str, Any]) -> None:
        """Unconditional upsert."""

        raise NotImplementedError

"""Port for archiving raw source files."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BlobStorage(Protocol):
    """Store bytes at a path, hand back a retrievable URL, delete by path."""

    def upload(self, path: str, content: bytes, content_type: str) -> str: ...

    def delete(self, path: str) -> bool: ...

    def public_url(self, path: str) -> str: ...

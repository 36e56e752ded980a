"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ImportStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ImportStatus.PENDING


class ItemKind(StrEnum):
    BOOK = "book"
    OTHER = "other"

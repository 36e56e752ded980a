"""Domain primitives: scalar aliases.

Scalar aliases may be promoted to proper value objects later without changing imports.
"""

from __future__ import annotations

from uuid import UUID

type HouseholdId = UUID
type BatchId = UUID
type ItemId = UUID
type Digest = bytes

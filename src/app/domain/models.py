# src/app/domain/models.py
"""
Domain models for the favorites API.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def favorite_doc_id(owner_id: str, recipe_id: str) -> str:
    return f"{owner_id}_{recipe_id}"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class StoredFavorite:
    """A recipe favorited by one user, as kept by the server."""
    owner_id: str
    recipe_id: str
    recipe: dict[str, Any] = field(default_factory=dict)

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def doc_id(self) -> str:
        return favorite_doc_id(self.owner_id, self.recipe_id)

    def to_payload(self) -> dict[str, Any]:
        """Recipe body plus the server timestamps clients merge on."""
        payload = dict(self.recipe)
        payload["id"] = self.recipe_id
        payload["createdAt"] = format_timestamp(self.created_at)
        payload["updatedAt"] = format_timestamp(self.updated_at or self.created_at)
        return payload

"""Base abstract model and entity identity for the bookstore system.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``EntityKey``: immutable ``(id, version)`` pair carried by versioned
  aggregates.  Repositories compare it against the stored row to detect
  concurrent writers (optimistic concurrency).

Design decisions:
- The version counter is not inherited: aggregates that need optimistic
  locking declare a ``version`` field and expose ``key`` themselves.
- ``save()`` guard ensures ``updated_at`` is included when ``update_fields``
  is specified (Django skips ``auto_now`` fields otherwise).
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

import uuid6
from django.db import models


@dataclass(frozen=True)
class EntityKey:
    """Identity of a persisted entity at a specific version."""

    id: UUID
    version: int

    def next(self) -> EntityKey:
        return EntityKey(id=self.id, version=self.version + 1)


# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)

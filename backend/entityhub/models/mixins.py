"""
EntityHub Backend — Shared Record Columns
==========================================

What:  Column mixin carried by every entity table, plus the identifier generator.
Why:   Every entity record has the same bookkeeping fields (identifier, actor
       stamps, active / soft-delete flags, timestamps); declaring them once keeps
       the tables uniform for the generic data-access facade.
How:   Python attributes are snake_case; database column names are the camelCase
       keys used in request and response documents (`addedBy`, `isDeleted`, ...).
       The facade works on `Model.__table__` columns, so documents map 1:1 to rows.

Identifier format:
    24 lowercase hex characters = 8 hex digits of creation time (seconds)
    followed by 16 random hex digits. Same shape as a document-store ObjectId,
    so `^[0-9a-fA-F]{24}$` validates both.
"""

import secrets
import time
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column


def new_object_id() -> str:
    """Generate a new 24-hex record identifier (time-prefixed, so roughly insertion-ordered)."""
    return f"{int(time.time()):08x}{secrets.token_hex(8)}"


class RecordMixin:
    """
    Bookkeeping columns shared by all entity tables.

    Lifecycle:
        1. Created by the create operation: `_id`, `createdAt`, `addedBy` set
        2. Every update refreshes `updatedAt` and `updatedBy`
        3. Soft delete flips `isDeleted` only; the row stays
        4. Hard delete removes the row (explicit operation)
    """

    # String(24): the 24-hex identifier; never updated after insert
    id: Mapped[str] = mapped_column("_id", String(24), primary_key=True)

    is_active: Mapped[bool | None] = mapped_column("isActive", Boolean, default=True)
    is_deleted: Mapped[bool | None] = mapped_column("isDeleted", Boolean, default=False)

    # Actor identifiers come from the caller identity header (not validated here)
    added_by: Mapped[str | None] = mapped_column("addedBy", String(64), nullable=True)
    updated_by: Mapped[str | None] = mapped_column("updatedBy", String(64), nullable=True)

    created_at: Mapped[datetime | None] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime | None] = mapped_column("updatedAt", DateTime(timezone=True))

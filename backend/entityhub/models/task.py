"""
EntityHub Backend — Task SQLAlchemy Model
==========================================

What:  ORM model representing the `tasks` table.
Who:   Used by the data-access facade (through `Task.__table__`) and by Alembic.

Table Design:
    - attachments: JSON array (any items), stored as-is
    - status: small integer state code, 0 allowed
    - completedBy: 24-hex identifier of the completing user
"""

from datetime import datetime
from typing import Any, List

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from entityhub.database import Base
from entityhub.models.mixins import RecordMixin


class Task(RecordMixin, Base):
    """A device-side task record (title, schedule, completion info)."""

    __tablename__ = "tasks"

    title: Mapped[str | None] = mapped_column("title", String(255))
    description: Mapped[str | None] = mapped_column("description", Text)
    attachments: Mapped[List[Any] | None] = mapped_column("attachments", JSON(none_as_null=True))
    status: Mapped[int | None] = mapped_column("status", Integer)
    date: Mapped[datetime | None] = mapped_column("date", DateTime(timezone=True))
    due_date: Mapped[datetime | None] = mapped_column("dueDate", DateTime(timezone=True))
    completed_by: Mapped[str | None] = mapped_column("completedBy", String(24))
    completed_at: Mapped[datetime | None] = mapped_column("completedAt", DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title='{self.title}', status={self.status})>"

"""
EntityHub Backend — Blog SQLAlchemy Model
==========================================

What:  ORM model representing the `blogs` table (admin-managed articles).
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from entityhub.database import Base
from entityhub.models.mixins import RecordMixin


class Blog(RecordMixin, Base):
    __tablename__ = "blogs"

    title: Mapped[str | None] = mapped_column("title", String(255))
    alternative_headline: Mapped[str | None] = mapped_column("alternativeHeadline", String(255))
    image: Mapped[str | None] = mapped_column("image", String(1024))
    publish_date: Mapped[datetime | None] = mapped_column("publishDate", DateTime(timezone=True))
    # 24-hex identifier of the authoring user
    author: Mapped[str | None] = mapped_column("author", String(24))
    article_body: Mapped[str | None] = mapped_column("articleBody", Text)

    def __repr__(self) -> str:
        return f"<Blog(id={self.id}, title='{self.title}')>"

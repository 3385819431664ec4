"""Create blogs and tasks tables

Revision ID: 001
Revises: None
Create Date: 2026-10-16 00:00:00.000000+00:00

What:  Creates the `blogs` and `tasks` tables with the shared record columns
       (_id, isActive, isDeleted, addedBy, updatedBy, createdAt, updatedAt).
How:   Column names are the camelCase document keys; `_id` is the 24-hex
       identifier generated by the application on insert.

Rollback: downgrade() drops both tables (destructive).
"""

from typing import List, Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _record_columns() -> List[sa.Column]:
    """Bookkeeping columns carried by every entity table (see models/mixins.py)."""
    return [
        sa.Column("_id", sa.String(24), nullable=False, comment="24-hex record identifier"),
        sa.Column("isActive", sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column("isDeleted", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("addedBy", sa.String(64), nullable=True, comment="Caller id at creation"),
        sa.Column("updatedBy", sa.String(64), nullable=True, comment="Caller id at last update"),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("updatedAt", sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "blogs",
        *_record_columns(),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("alternativeHeadline", sa.String(255), nullable=True),
        sa.Column("image", sa.String(1024), nullable=True),
        sa.Column("publishDate", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("author", sa.String(24), nullable=True, comment="24-hex author identifier"),
        sa.Column("articleBody", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("_id"),
    )

    op.create_table(
        "tasks",
        *_record_columns(),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=True, comment="Array of attachment entries"),
        sa.Column("status", sa.Integer(), nullable=True),
        sa.Column("date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("dueDate", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("completedBy", sa.String(24), nullable=True),
        sa.Column("completedAt", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("_id"),
    )

    # Most list requests filter out soft-deleted rows
    op.create_index("idx_tasks_is_deleted", "tasks", ["isDeleted"])
    op.create_index("idx_blogs_is_deleted", "blogs", ["isDeleted"])


def downgrade() -> None:
    op.drop_index("idx_blogs_is_deleted", table_name="blogs")
    op.drop_index("idx_tasks_is_deleted", table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("blogs")

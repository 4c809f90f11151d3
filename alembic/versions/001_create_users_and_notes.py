"""Create users and notes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `users` (read-only to this service) and `notes`.
How:   notes.title gets a UNIQUE index, which backs the duplicate-title check
       in NoteService. notes.user_id has a plain index and no foreign key:
       owners are not verified and deleting a user leaves its notes.

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False, comment="Opaque unique identifier"),
        sa.Column(
            "username",
            sa.String(150),
            nullable=False,
            comment="Display name attached to listed notes",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "notes",
        sa.Column(
            "id",
            sa.String(36),
            nullable=False,
            comment="Opaque unique identifier assigned by the store",
        ),
        sa.Column(
            "user_id",
            sa.String(36),
            nullable=False,
            comment="Id of the owning user (not enforced as a foreign key)",
        ),
        sa.Column(
            "title",
            sa.String(255),
            nullable=False,
            comment="Note title, unique across all notes",
        ),
        sa.Column("text", sa.Text(), nullable=False, comment="Note body"),
        sa.Column(
            "completed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("uq_notes_title", "notes", ["title"], unique=True)
    op.create_index("idx_notes_user_id", "notes", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_notes_user_id", table_name="notes")
    op.drop_index("uq_notes_title", table_name="notes")
    op.drop_table("notes")
    op.drop_table("users")

"""
TechNotes Backend — Note SQLAlchemy Model
===========================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - id: opaque string (UUID4 text) assigned on insert, never changed
    - user_id (attribute `user`): owning user's id. Deliberately NOT a foreign
      key: the owner is not verified on write and deleting a user leaves its
      notes in place
    - title: UNIQUE across the whole table. NoteService checks this before
      writing; the index catches concurrent writers that both pass the check
    - completed: false on creation, replaced on every update
    - created_at / updated_at: UTC, maintained on insert/update
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Index, String, Text, false
from sqlalchemy import text as sql_text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from technotes.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A titled text record owned by a user, with a completion flag.

    Lifecycle:
        nonexistent → active     (NoteService.create_note)
        active → active          (NoteService.update_note, full replacement)
        active → nonexistent     (NoteService.delete_note)
    """

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Opaque unique identifier assigned by the store",
    )

    user: Mapped[str] = mapped_column(
        "user_id",
        String(36),
        nullable=False,
        comment="Id of the owning user (not enforced as a foreign key)",
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Note title, unique across all notes",
    )

    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Note body",
    )

    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("uq_notes_title", title, unique=True),
        Index("idx_notes_user_id", user),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, title='{self.title}', "
            f"user={self.user}, completed={self.completed})>"
        )

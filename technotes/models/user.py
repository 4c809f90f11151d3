"""
TechNotes Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Read by UserDirectory to resolve note owners' display names.

Users are created and changed by the account subsystem. This service never
writes to the table; it only looks records up by id.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from technotes.database import Base


class User(Base):
    """An account that can own notes; only `id` and `username` matter here."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Opaque unique identifier",
    )

    username: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        unique=True,
        comment="Display name attached to listed notes",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"

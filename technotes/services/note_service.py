"""
TechNotes Backend — Note Service (Business Logic)
===================================================

What:  Lifecycle rules for notes: validation, title uniqueness, owner
       enrichment on listing, and create/update/delete.
How:   Each operation receives the request's AsyncSession, runs every check
       before touching the store, then flushes its single mutation. The
       session dependency commits or rolls back when the request ends.
Who:   Called by the notes route handlers.

Operation Flow:
    validate input → existence check → uniqueness check → mutate → flush

    list_notes    SELECT notes; one batch SELECT on users; in-memory join
    create_note   title must be unused; completed starts False
    update_note   note must exist; title may be its own; all fields replaced
    delete_note   note must exist; exactly one row removed

Owner existence is not verified on create or update. A note may name any
user id; listing decides what to show for ids that do not resolve (see
`unknown_owner_policy`).

Title uniqueness is checked here so callers get a Conflict error, and is
enforced again by the unique index on notes.title. Two concurrent writers
that both pass the check are stopped by the index; that surfaces as
InvalidDataError. So does a value the column cannot hold (e.g. a title
longer than VARCHAR(255) on PostgreSQL).
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from technotes.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidDataError,
    InvalidInputError,
    NotFoundError,
)
from technotes.models.note import Note
from technotes.schemas.note import MessageResponse, NoteWithOwner
from technotes.services.user_service import UserDirectory, user_directory

logger = logging.getLogger(__name__)


def _require_fields(**fields: Any) -> None:
    """Raises InvalidInputError for the first field that is not a non-empty string."""
    for name, value in fields.items():
        if not isinstance(value, str) or not value:
            raise InvalidInputError(field=name)


class NoteService:
    """
    Business logic layer for note operations.

    Holds no per-request state; the session is passed to every call. The
    user directory and the unknown-owner policy are fixed at construction.

    Error Handling Strategy:
        Rule violations raise InvalidInputError, NotFoundError or
        ConflictError before any write. A write the store refuses raises
        InvalidDataError. Any other SQLAlchemy failure is logged and wrapped
        in DatabaseError.
    """

    def __init__(
        self,
        users: Optional[UserDirectory] = None,
        unknown_owner_policy: str = "null",
    ):
        self.users = users or user_directory
        self.unknown_owner_policy = unknown_owner_policy

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _find_by_id(self, db: AsyncSession, note_id: str) -> Optional[Note]:
        result = await db.execute(select(Note).where(Note.id == note_id))
        return result.scalar_one_or_none()

    async def _find_by_title(self, db: AsyncSession, title: str) -> Optional[Note]:
        result = await db.execute(select(Note).where(Note.title == title).limit(1))
        return result.scalar_one_or_none()

    async def _flush(self, db: AsyncSession, action: str, note_id: Optional[str]) -> None:
        """Pushes pending changes, translating store rejections."""
        try:
            await db.flush()
        except (IntegrityError, DataError) as e:
            logger.warning("Store rejected %s of note %s: %s", action, note_id, e.orig)
            raise InvalidDataError(context={"action": action}) from e

    # ── Operations ────────────────────────────────────────────────────────

    async def list_notes(self, db: AsyncSession) -> List[NoteWithOwner]:
        """
        Return every note with its owner's username attached.

        Order is whatever the store returns; no sort is applied.

        Raises:
            NotFoundError: There are no notes at all, or (policy "fail") a
                note's owner id does not resolve
            DatabaseError: Query execution failed
        """
        try:
            result = await db.execute(select(Note))
            notes = list(result.scalars().all())

            if not notes:
                raise NotFoundError(resource="notes", message="No notes found")

            usernames = await self.users.get_usernames(db, (note.user for note in notes))
        except NotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        return [self._project(note, usernames.get(note.user)) for note in notes]

    def _project(self, note: Note, username: Optional[str]) -> NoteWithOwner:
        fields = {
            "id": note.id,
            "user": note.user,
            "title": note.title,
            "text": note.text,
            "completed": note.completed,
            "created_at": note.created_at,
            "updated_at": note.updated_at,
        }
        if username is not None:
            fields["username"] = username
        elif self.unknown_owner_policy == "fail":
            raise NotFoundError(
                resource="user",
                resource_id=note.user,
                message="Note owner not found",
                context={"note_id": note.id},
            )
        elif self.unknown_owner_policy == "null":
            fields["username"] = None
        # "omit": username stays unset and is excluded from the response
        return NoteWithOwner(**fields)

    async def create_note(
        self,
        db: AsyncSession,
        user: Any,
        title: Any,
        text: Any,
    ) -> MessageResponse:
        """
        Create a note with completed=False.

        Raises:
            InvalidInputError: user, title or text missing or empty
            ConflictError: another note already has this title
            InvalidDataError: the store refused the insert
        """
        _require_fields(user=user, title=title, text=text)

        try:
            duplicate = await self._find_by_title(db, title)
            if duplicate is not None:
                logger.info("Rejected create: duplicate title %r", title)
                raise ConflictError(context={"title": title})

            note = Note(user=user, title=title, text=text, completed=False)
            db.add(note)
            await self._flush(db, "create", None)
        except (ConflictError, InvalidDataError):
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__}) from e

        logger.info("Note created: %s (user=%s)", note.id, user)
        return MessageResponse(message="Note created successfully")

    async def update_note(
        self,
        db: AsyncSession,
        note_id: Any,
        user: Any,
        title: Any,
        text: Any,
        completed: Any,
    ) -> MessageResponse:
        """
        Replace user, title, text and completed on an existing note.

        `completed` must be an actual bool; "true" or 1 are rejected.

        Raises:
            InvalidInputError: a field is missing/empty or completed is not a bool
            NotFoundError: no note has this id
            ConflictError: a different note already has this title
            InvalidDataError: the store refused the update
        """
        _require_fields(id=note_id, user=user, title=title, text=text)
        if not isinstance(completed, bool):
            raise InvalidInputError(field="completed")

        try:
            note = await self._find_by_id(db, note_id)
            if note is None:
                raise NotFoundError(resource="note", resource_id=note_id)

            duplicate = await self._find_by_title(db, title)
            if duplicate is not None and duplicate.id != note_id:
                logger.info("Rejected update of %s: title %r held by %s", note_id, title, duplicate.id)
                raise ConflictError(context={"title": title})

            note.user = user
            note.title = title
            note.text = text
            note.completed = completed
            await self._flush(db, "update", note_id)
        except (NotFoundError, ConflictError, InvalidDataError):
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(context={"note_id": note_id}) from e

        logger.info("Note updated: %s", note_id)
        return MessageResponse(message="Note updated successfully")

    async def delete_note(self, db: AsyncSession, note_id: Any) -> MessageResponse:
        """
        Delete one note by id.

        Raises:
            InvalidInputError: id missing or empty
            NotFoundError: no note has this id
            InvalidDataError: the store did not report exactly one deleted row.
                Once the existence check has passed this is very unlikely; it
                is kept so a concurrent delete is reported rather than ignored.
        """
        if not isinstance(note_id, str) or not note_id:
            raise InvalidInputError(message="Note ID required", field="id")

        try:
            note = await self._find_by_id(db, note_id)
            if note is None:
                raise NotFoundError(resource="note", resource_id=note_id)

            result = await db.execute(delete(Note).where(Note.id == note_id))
            if result.rowcount != 1:
                logger.warning(
                    "Delete of note %s affected %s rows", note_id, result.rowcount
                )
                raise InvalidDataError(context={"action": "delete"})
        except (NotFoundError, InvalidDataError):
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(context={"note_id": note_id}) from e

        logger.info("Note deleted: %s", note_id)
        return MessageResponse(message="Note deleted successfully")

"""
TechNotes Backend — Note Service Unit Tests
=============================================

What:  Tests for NoteService list/create/update/delete rules.
How:   Runs against a real in-memory SQLite session; store failures are
       injected with mocks.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import DataError

from technotes.exceptions import (
    ConflictError,
    InvalidDataError,
    InvalidInputError,
    NotFoundError,
)
from technotes.models.note import Note
from technotes.services.note_service import NoteService


async def count_notes(session) -> int:
    result = await session.execute(select(func.count()).select_from(Note))
    return result.scalar_one()


async def get_note_by_title(session, title):
    result = await session.execute(select(Note).where(Note.title == title))
    return result.scalar_one()


class TestNoteServiceCreate:
    """Tests for create_note."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_note_success(self, db_session):
        result = await self.service.create_note(
            db_session, user="u1", title="Shopping", text="milk"
        )

        assert result.message == "Note created successfully"
        note = await get_note_by_title(db_session, "Shopping")
        assert note.user == "u1"
        assert note.text == "milk"
        assert note.completed is False
        assert note.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields",
        [
            {"user": None, "title": "t", "text": "x"},
            {"user": "u1", "title": None, "text": "x"},
            {"user": "u1", "title": "t", "text": None},
            {"user": "u1", "title": "", "text": "x"},
        ],
    )
    async def test_create_missing_field_is_invalid_input(self, db_session, fields):
        with pytest.raises(InvalidInputError) as exc_info:
            await self.service.create_note(db_session, **fields)

        assert exc_info.value.message == "All fields required"
        assert await count_notes(db_session) == 0

    @pytest.mark.asyncio
    async def test_create_duplicate_title_conflicts(self, db_session):
        await self.service.create_note(db_session, user="u1", title="Shopping", text="milk")

        with pytest.raises(ConflictError):
            await self.service.create_note(db_session, user="u2", title="Shopping", text="eggs")

        assert await count_notes(db_session) == 1
        note = await get_note_by_title(db_session, "Shopping")
        assert note.text == "milk"

    @pytest.mark.asyncio
    async def test_create_does_not_require_existing_owner(self, db_session):
        """Owner ids are not verified on write."""
        await self.service.create_note(db_session, user="nobody", title="Orphan", text="x")

        assert await count_notes(db_session) == 1

    @pytest.mark.asyncio
    async def test_unique_index_backstops_racing_create(self, db_session):
        """A duplicate that slips past the pre-check is rejected by the store."""
        await self.service.create_note(db_session, user="u1", title="Shopping", text="milk")
        await db_session.commit()

        with patch.object(self.service, "_find_by_title", AsyncMock(return_value=None)):
            with pytest.raises(InvalidDataError) as exc_info:
                await self.service.create_note(
                    db_session, user="u2", title="Shopping", text="eggs"
                )

        assert exc_info.value.message == "Invalid note data"
        await db_session.rollback()
        assert await count_notes(db_session) == 1

    @pytest.mark.asyncio
    async def test_value_too_long_for_column_is_invalid_data(self, mock_db_session):
        """PostgreSQL rejects a 300-character title for VARCHAR(255) at flush time."""
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
        mock_db_session.flush = AsyncMock(side_effect=DataError(
            "INSERT INTO notes", {}, Exception("value too long for type character varying(255)")
        ))

        with pytest.raises(InvalidDataError) as exc_info:
            await self.service.create_note(
                mock_db_session, user="u1", title="x" * 300, text="body"
            )

        assert exc_info.value.context == {"action": "create"}


class TestNoteServiceUpdate:
    """Tests for update_note."""

    def setup_method(self):
        self.service = NoteService()

    async def _create(self, session, title, user="u1", text="body"):
        await self.service.create_note(session, user=user, title=title, text=text)
        return await get_note_by_title(session, title)

    @pytest.mark.asyncio
    async def test_update_replaces_all_fields(self, db_session):
        note = await self._create(db_session, "Shopping")

        result = await self.service.update_note(
            db_session,
            note_id=note.id,
            user="u2",
            title="Groceries",
            text="eggs",
            completed=True,
        )

        assert result.message == "Note updated successfully"
        updated = await db_session.get(Note, note.id)
        assert (updated.user, updated.title, updated.text, updated.completed) == (
            "u2", "Groceries", "eggs", True,
        )

    @pytest.mark.asyncio
    async def test_update_keeping_own_title_is_not_a_conflict(self, db_session):
        note = await self._create(db_session, "Shopping")

        await self.service.update_note(
            db_session,
            note_id=note.id,
            user="u1",
            title="Shopping",
            text="milk and bread",
            completed=False,
        )

        updated = await db_session.get(Note, note.id)
        assert updated.text == "milk and bread"

    @pytest.mark.asyncio
    async def test_update_to_other_notes_title_conflicts(self, db_session):
        await self._create(db_session, "Shopping")
        other = await self._create(db_session, "Chores")

        with pytest.raises(ConflictError):
            await self.service.update_note(
                db_session,
                note_id=other.id,
                user="u1",
                title="Shopping",
                text="x",
                completed=False,
            )

        unchanged = await db_session.get(Note, other.id)
        assert unchanged.title == "Chores"

    @pytest.mark.asyncio
    async def test_update_unknown_id_is_not_found_before_title_check(self, db_session):
        await self._create(db_session, "Shopping")

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_note(
                db_session,
                note_id="missing-id",
                user="u1",
                title="Shopping",
                text="x",
                completed=False,
            )

        assert exc_info.value.message == "Note not found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("completed", ["true", 1, None, "false"])
    async def test_update_non_boolean_completed_is_invalid_input(self, db_session, completed):
        note = await self._create(db_session, "Shopping")

        with pytest.raises(InvalidInputError) as exc_info:
            await self.service.update_note(
                db_session,
                note_id=note.id,
                user="u1",
                title="Shopping",
                text="milk",
                completed=completed,
            )

        assert exc_info.value.field == "completed"

    @pytest.mark.asyncio
    async def test_update_missing_id_is_invalid_input(self, db_session):
        with pytest.raises(InvalidInputError) as exc_info:
            await self.service.update_note(
                db_session, note_id=None, user="u1", title="t", text="x", completed=True
            )

        assert exc_info.value.field == "id"

    @pytest.mark.asyncio
    async def test_unique_index_backstops_racing_update(self, db_session):
        """A rename onto a taken title that slips past the pre-check is rejected by the store."""
        await self._create(db_session, "Shopping")
        other = await self._create(db_session, "Chores", text="sweep")
        other_id = other.id
        await db_session.commit()

        with patch.object(self.service, "_find_by_title", AsyncMock(return_value=None)):
            with pytest.raises(InvalidDataError) as exc_info:
                await self.service.update_note(
                    db_session,
                    note_id=other_id,
                    user="u2",
                    title="Shopping",
                    text="mop",
                    completed=True,
                )

        assert exc_info.value.context == {"action": "update"}
        await db_session.rollback()
        unchanged = await get_note_by_title(db_session, "Chores")
        assert unchanged.id == other_id
        assert (unchanged.user, unchanged.text, unchanged.completed) == ("u1", "sweep", False)
        assert await count_notes(db_session) == 2

    @pytest.mark.asyncio
    async def test_update_value_too_long_for_column_is_invalid_data(self, mock_db_session):
        found = MagicMock()
        found.scalar_one_or_none.return_value = MagicMock(spec=Note)
        no_duplicate = MagicMock()
        no_duplicate.scalar_one_or_none.return_value = None
        mock_db_session.execute = AsyncMock(side_effect=[found, no_duplicate])
        mock_db_session.flush = AsyncMock(side_effect=DataError(
            "UPDATE notes", {}, Exception("value too long for type character varying(255)")
        ))

        with pytest.raises(InvalidDataError) as exc_info:
            await self.service.update_note(
                mock_db_session,
                note_id="note-1",
                user="u1",
                title="x" * 300,
                text="body",
                completed=False,
            )

        assert exc_info.value.context == {"action": "update"}


class TestNoteServiceDelete:
    """Tests for delete_note."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_delete_removes_only_the_target(self, db_session):
        for title in ("One", "Two", "Three"):
            await self.service.create_note(db_session, user="u1", title=title, text="x")
        target = await get_note_by_title(db_session, "Two")

        result = await self.service.delete_note(db_session, target.id)

        assert result.message == "Note deleted successfully"
        remaining = (await db_session.execute(select(Note.title))).scalars().all()
        assert sorted(remaining) == ["One", "Three"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("note_id", [None, ""])
    async def test_delete_without_id_is_invalid_input(self, db_session, note_id):
        with pytest.raises(InvalidInputError) as exc_info:
            await self.service.delete_note(db_session, note_id)

        assert exc_info.value.message == "Note ID required"

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_not_found(self, db_session):
        await self.service.create_note(db_session, user="u1", title="One", text="x")

        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, "missing-id")

        assert await count_notes(db_session) == 1

    @pytest.mark.asyncio
    async def test_delete_reported_unsuccessful_is_invalid_data(self, mock_db_session):
        """Existence confirmed but the store deletes nothing (e.g. a concurrent delete)."""
        found = MagicMock()
        found.scalar_one_or_none.return_value = MagicMock(spec=Note)
        deleted = MagicMock()
        deleted.rowcount = 0
        mock_db_session.execute = AsyncMock(side_effect=[found, deleted])

        with pytest.raises(InvalidDataError):
            await self.service.delete_note(mock_db_session, "note-1")


class TestNoteServiceList:
    """Tests for list_notes and owner enrichment."""

    @pytest.mark.asyncio
    async def test_list_empty_is_not_found(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await NoteService().list_notes(db_session)

        assert exc_info.value.message == "No notes found"

    @pytest.mark.asyncio
    async def test_shopping_scenario(self, db_session, seeded_users):
        service = NoteService()
        await service.create_note(db_session, user="u1", title="Shopping", text="milk")
        with pytest.raises(ConflictError):
            await service.create_note(db_session, user="u2", title="Shopping", text="eggs")

        items = await service.list_notes(db_session)

        assert len(items) == 1
        assert items[0].title == "Shopping"
        assert items[0].user == "u1"
        assert items[0].username == "alice"
        assert items[0].completed is False

    @pytest.mark.asyncio
    async def test_list_resolves_owners_in_one_query(self, database, db_session, seeded_users):
        service = NoteService()
        for i, user in enumerate(["u1", "u2", "u1", "u2"]):
            await service.create_note(db_session, user=user, title=f"Note {i}", text="x")
        await db_session.commit()

        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(database.engine.sync_engine, "before_cursor_execute", record)
        try:
            items = await service.list_notes(db_session)
        finally:
            event.remove(database.engine.sync_engine, "before_cursor_execute", record)

        assert len(statements) == 2
        assert {item.username for item in items} == {"alice", "bob"}

    @pytest.mark.asyncio
    async def test_unknown_owner_null_policy(self, db_session, seeded_users):
        service = NoteService(unknown_owner_policy="null")
        await service.create_note(db_session, user="ghost", title="Orphan", text="x")

        items = await service.list_notes(db_session)

        assert items[0].username is None
        assert "username" in items[0].model_dump(exclude_unset=True)

    @pytest.mark.asyncio
    async def test_unknown_owner_omit_policy(self, db_session, seeded_users):
        service = NoteService(unknown_owner_policy="omit")
        await service.create_note(db_session, user="ghost", title="Orphan", text="x")
        await service.create_note(db_session, user="u2", title="Owned", text="x")

        items = {item.title: item.model_dump(exclude_unset=True) for item in await service.list_notes(db_session)}

        assert "username" not in items["Orphan"]
        assert items["Owned"]["username"] == "bob"

    @pytest.mark.asyncio
    async def test_unknown_owner_fail_policy(self, db_session, seeded_users):
        service = NoteService(unknown_owner_policy="fail")
        await service.create_note(db_session, user="ghost", title="Orphan", text="x")

        with pytest.raises(NotFoundError) as exc_info:
            await service.list_notes(db_session)

        assert exc_info.value.resource == "user"
        assert exc_info.value.resource_id == "ghost"

"""
TechNotes Backend — User Directory
====================================

What:  Read-only lookup of users by id.
Who:   NoteService.list_notes, to attach owner usernames to listed notes.

Owners are resolved in one query per listing:
    SELECT id, username FROM users WHERE id IN (:ids)
rather than one lookup per note.
"""

import logging
from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from technotes.models.user import User

logger = logging.getLogger(__name__)


class UserDirectory:
    """Resolves user ids to usernames."""

    async def get_usernames(
        self, db: AsyncSession, user_ids: Iterable[str]
    ) -> Dict[str, str]:
        """
        Batch lookup of usernames.

        Args:
            db: Async database session
            user_ids: Ids to resolve; duplicates are collapsed

        Returns:
            Mapping of id → username for every id that exists. Unknown ids
            are simply absent from the mapping.
        """
        ids = sorted(set(user_ids))
        if not ids:
            return {}

        result = await db.execute(
            select(User.id, User.username).where(User.id.in_(ids))
        )
        usernames = {row.id: row.username for row in result}

        missing = len(ids) - len(usernames)
        if missing:
            logger.debug("%d of %d owner ids did not resolve", missing, len(ids))
        return usernames


user_directory = UserDirectory()

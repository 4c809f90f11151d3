"""
TechNotes Backend — Notes Route Handlers
==========================================

What:  GET, POST, PATCH and DELETE on /api/notes.
How:   Reads the JSON body, delegates to NoteService, returns its result.
Who:   Called by the notes frontend; requests arrive already authenticated.

Every operation addresses the collection path; update and delete carry the
note id in the request body rather than the URL.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from technotes.database import get_db_session
from technotes.schemas.note import (
    ErrorResponse,
    MessageResponse,
    NoteCreateRequest,
    NoteDeleteRequest,
    NoteUpdateRequest,
    NoteWithOwner,
)
from technotes.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])


def get_note_service(request: Request) -> NoteService:
    """FastAPI dependency returning the NoteService built by the app factory."""
    return request.app.state.note_service


@router.get(
    "/notes",
    response_model=List[NoteWithOwner],
    response_model_exclude_unset=True,
    responses={
        400: {"description": "No notes found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List all notes with owner usernames",
)
async def list_notes(
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> List[NoteWithOwner]:
    """
    Returns every note with the owner's username attached.

    An empty collection is reported as a 400 "No notes found" error rather
    than an empty array.
    """
    return await service.list_notes(db)


@router.post(
    "/notes",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing field", "model": ErrorResponse},
        409: {"description": "Duplicate title or rejected data", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    payload: NoteCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> MessageResponse:
    return await service.create_note(
        db,
        user=payload.user,
        title=payload.title,
        text=payload.text,
    )


@router.patch(
    "/notes",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing field or note not found", "model": ErrorResponse},
        409: {"description": "Duplicate title or rejected data", "model": ErrorResponse},
    },
    summary="Replace a note's fields",
)
async def update_note(
    payload: NoteUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> MessageResponse:
    """Full replacement: user, title, text and completed are all required."""
    return await service.update_note(
        db,
        note_id=payload.id,
        user=payload.user,
        title=payload.title,
        text=payload.text,
        completed=payload.completed,
    )


@router.delete(
    "/notes",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing id or note not found", "model": ErrorResponse},
        409: {"description": "Store rejected the delete", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    payload: NoteDeleteRequest,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> MessageResponse:
    return await service.delete_note(db, note_id=payload.id)

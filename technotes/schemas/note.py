"""
TechNotes Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract for the notes endpoints.
How:   FastAPI uses these models to parse request bodies, serialize responses,
       and generate OpenAPI documentation.

Request models are intentionally permissive: every field is optional and
`completed` accepts any JSON value. Presence, emptiness and the strict boolean
rule are checked by NoteService so that a missing field produces the
service's own "All fields required" error instead of a schema error.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreateRequest(BaseModel):
    """Body of POST /api/notes."""
    user: Optional[str] = Field(default=None, description="Id of the owning user")
    title: Optional[str] = Field(default=None, description="Unique note title")
    text: Optional[str] = Field(default=None, description="Note body")


class NoteUpdateRequest(BaseModel):
    """
    Body of PATCH /api/notes.

    Full replacement: every field is required by the service, and `completed`
    must be a JSON boolean (the string "true" is rejected).
    """
    id: Optional[str] = Field(default=None, description="Id of the note to update")
    user: Optional[str] = Field(default=None, description="Id of the owning user")
    title: Optional[str] = Field(default=None, description="Unique note title")
    text: Optional[str] = Field(default=None, description="Note body")
    completed: Any = Field(default=None, description="Completion flag (boolean)")


class NoteDeleteRequest(BaseModel):
    """Body of DELETE /api/notes."""
    id: Optional[str] = Field(default=None, description="Id of the note to delete")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteWithOwner(BaseModel):
    """
    What:  Read-model of a note enriched with its owner's display name.
    Who:   Returned as array items by GET /api/notes.

    `username` is not stored on the note; it is joined from the users table at
    read time. It is null (or absent, depending on configuration) when the
    owner id does not resolve.
    """
    id: str = Field(description="Note identifier")
    user: str = Field(description="Id of the owning user")
    title: str = Field(description="Note title")
    text: str = Field(description="Note body")
    completed: bool = Field(description="Completion flag")
    username: Optional[str] = Field(default=None, description="Owner's username")
    created_at: Optional[datetime] = Field(default=None, description="Creation time (UTC)")
    updated_at: Optional[datetime] = Field(default=None, description="Last update time (UTC)")

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    """Acknowledgement returned by create, update and delete."""
    message: str = Field(description="Human-readable outcome")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "conflict",
            "message": "Duplicate note title",
            "details": {"title": "Shopping"},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")

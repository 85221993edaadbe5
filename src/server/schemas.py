"""Pydantic schemas for the FastAPI server."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.daybook.models import Priority


class NoteCreateRequest(BaseModel):
    """Request body for adding a note."""

    text: str = Field(..., description="Free-text content of the note")
    date: dt.date


class TaskCreateRequest(BaseModel):
    """Request body for adding a task (or submitting the task form)."""

    text: str = Field(..., description="Task description")
    date: dt.date
    priority: Priority = Priority.MEDIUM


class TaskUpdateRequest(BaseModel):
    """Request body for editing a task. Only provided fields change."""

    text: Optional[str] = None
    date: Optional[dt.date] = None
    priority: Optional[Priority] = None


class CreatedResponse(BaseModel):
    id: int


class ToggleResponse(BaseModel):
    id: int
    completed: bool


class DeletedResponse(BaseModel):
    deleted: bool
    id: int


class ShiftRequest(BaseModel):
    """Move the viewed month or day by ``delta`` steps."""

    delta: int = Field(..., description="Number of months/days to move (negative moves back)")


class DaySelectRequest(BaseModel):
    date: dt.date


class MonthSelectRequest(BaseModel):
    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)


class SignInRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="Authenticated user identifier")


class AuthResponse(BaseModel):
    signed_in: bool
    user_id: Optional[str] = None
    replaced: bool


class ChatRequest(BaseModel):
    """Request body for chat endpoint."""

    message: str = Field(..., description="User message to send to the schedule assistant")


class ChatResponse(BaseModel):
    """Response body for chat endpoint."""

    text: str
    preferences_updated: bool = False
    failed: bool = False


class ChatHistoryResponse(BaseModel):
    messages: List[Dict[str, str]]


class StatusMessageModel(BaseModel):
    level: str
    text: str
    error: Optional[str] = None
    created_at: str


class StatusResponse(BaseModel):
    busy: List[str]
    messages: List[StatusMessageModel]


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str


class ViewsResponse(BaseModel):
    """All region view-models plus the explicit view state."""

    state: Dict[str, Any]
    regions: Dict[str, Any]


class ModelsResponse(BaseModel):
    """Response for available models endpoint."""

    models: List[str]

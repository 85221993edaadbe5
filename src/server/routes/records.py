"""Note and task endpoints."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from src.daybook.exceptions import DaybookError

from ..dependencies import get_daybook, to_http_error
from ..schemas import (
    CreatedResponse,
    DeletedResponse,
    NoteCreateRequest,
    TaskCreateRequest,
    TaskUpdateRequest,
    ToggleResponse,
)

logger = logging.getLogger(__name__)


def register_record_routes(app: FastAPI) -> None:
    """Register note/task mutation endpoints."""

    @app.post("/api/notes", response_model=CreatedResponse)
    async def create_note(request: NoteCreateRequest) -> CreatedResponse:
        """Add a note on the given date."""
        daybook = get_daybook()
        try:
            item_id = await daybook.add_note(request.text, request.date)
            return CreatedResponse(id=item_id)
        except DaybookError as exc:
            raise to_http_error(exc) from exc

    @app.post("/api/tasks", response_model=CreatedResponse)
    async def create_task(request: TaskCreateRequest) -> CreatedResponse:
        """Add a task on the given date."""
        daybook = get_daybook()
        try:
            item_id = await daybook.add_task(request.text, request.date, request.priority)
            return CreatedResponse(id=item_id)
        except DaybookError as exc:
            raise to_http_error(exc) from exc

    @app.post("/api/tasks/form", response_model=CreatedResponse)
    async def submit_task_form(request: TaskCreateRequest) -> CreatedResponse:
        """Submit the task form: updates the task being edited, otherwise adds."""
        daybook = get_daybook()
        try:
            item_id = await daybook.submit_task_form(request.text, request.date, request.priority)
            return CreatedResponse(id=item_id)
        except DaybookError as exc:
            raise to_http_error(exc) from exc

    @app.patch("/api/tasks/{item_id}", response_model=CreatedResponse)
    async def update_task(item_id: int, request: TaskUpdateRequest) -> CreatedResponse:
        """Edit text, date or priority of a task."""
        daybook = get_daybook()
        payload = request.model_dump(exclude_unset=True, exclude_none=True)
        if not payload:
            raise HTTPException(status_code=422, detail="No fields to update")
        try:
            task = await daybook.update_task(item_id, **payload)
            return CreatedResponse(id=task.id)
        except DaybookError as exc:
            raise to_http_error(exc) from exc

    @app.post("/api/tasks/{item_id}/toggle", response_model=ToggleResponse)
    async def toggle_task(item_id: int) -> ToggleResponse:
        """Flip the completion flag of a task."""
        daybook = get_daybook()
        try:
            completed = await daybook.toggle_task(item_id)
            return ToggleResponse(id=item_id, completed=completed)
        except DaybookError as exc:
            raise to_http_error(exc) from exc

    @app.post("/api/tasks/{item_id}/edit", response_model=CreatedResponse)
    async def begin_edit(item_id: int) -> CreatedResponse:
        """Enter edit mode for a task."""
        daybook = get_daybook()
        try:
            task = await daybook.begin_edit(item_id)
            return CreatedResponse(id=task.id)
        except DaybookError as exc:
            raise to_http_error(exc) from exc

    @app.delete("/api/tasks/edit")
    async def cancel_edit() -> dict:
        """Leave edit mode without saving."""
        await get_daybook().cancel_edit()
        return {"editing": False}

    @app.delete("/api/items/{item_id}", response_model=DeletedResponse)
    async def delete_item(item_id: int) -> DeletedResponse:
        """Delete a note or task by id."""
        daybook = get_daybook()
        try:
            removed = await daybook.remove(item_id)
            logger.info("Removed %s %s", removed.kind.value, removed.id)
            return DeletedResponse(deleted=True, id=removed.id)
        except DaybookError as exc:
            raise to_http_error(exc) from exc

"""Schedule assistant chat routes."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from pydantic import ValidationError

from src.assistant import OllamaClient
from src.daybook.exceptions import DaybookError

from ..dependencies import get_daybook, to_http_error
from ..schemas import ChatHistoryResponse, ChatRequest, ChatResponse, ModelsResponse

logger = logging.getLogger(__name__)


def register_chat_routes(app: FastAPI) -> None:
    """Register chat/preferences endpoints on the provided app."""

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(request: ChatRequest) -> ChatResponse:
        """Send a message to the schedule assistant.

        Completion failures come back as the fallback text with ``failed=True``.
        """
        daybook = get_daybook()
        try:
            reply = await daybook.chat(request.message)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except DaybookError as exc:
            raise to_http_error(exc) from exc
        return ChatResponse(
            text=reply.text,
            preferences_updated=reply.preferences_updated,
            failed=reply.failed,
        )

    @app.get("/api/chat/history", response_model=ChatHistoryResponse)
    async def chat_history() -> ChatHistoryResponse:
        """Messages exchanged in this process (not persisted)."""
        assistant = get_daybook().assistant
        return ChatHistoryResponse(messages=list(assistant.history) if assistant else [])

    @app.get("/api/preferences")
    async def get_preferences() -> Dict[str, Any]:
        assistant = get_daybook().assistant
        if assistant is None:
            raise HTTPException(status_code=404, detail="Assistant is not configured")
        return assistant.preferences.current.model_dump(by_alias=True)

    @app.patch("/api/preferences")
    async def update_preferences(changes: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow-merge preference changes."""
        assistant = get_daybook().assistant
        if assistant is None:
            raise HTTPException(status_code=404, detail="Assistant is not configured")
        try:
            updated = assistant.preferences.update(changes)
        except ValidationError as exc:
            logger.warning("Rejected preference update: %s", exc)
            raise HTTPException(status_code=422, detail="Invalid preferences") from exc
        return updated.model_dump(by_alias=True)

    @app.get("/api/models", response_model=ModelsResponse)
    async def get_models() -> ModelsResponse:
        """Get available Ollama models."""
        assistant = get_daybook().assistant
        client = assistant.client if assistant else None
        if not isinstance(client, OllamaClient):
            return ModelsResponse(models=[])
        models = await asyncio.to_thread(client.list_models)
        return ModelsResponse(models=models)

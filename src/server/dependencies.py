"""Dependency helpers shared across FastAPI routes."""

from __future__ import annotations

import dataclasses
from functools import lru_cache
from typing import Any, Dict

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder

from src.daybook.config import Config
from src.daybook.context import Daybook
from src.daybook.exceptions import (
    DaybookError,
    NotFoundError,
    RemoteSyncError,
    ValidationError,
    WrongKindError,
)
from src.daybook.logger import setup_logger
from src.daybook.status import StatusMessage

from .schemas import StatusMessageModel, StatusResponse, ViewsResponse


config = Config.from_yaml()
setup_logger(log_level=config.log_level, log_file=config.log_file)


@lru_cache(maxsize=1)
def get_daybook() -> Daybook:
    """Lazily create and start a singleton Daybook context."""
    daybook = Daybook.build(config)
    daybook.start()
    return daybook


def to_http_error(exc: DaybookError) -> HTTPException:
    """Map domain errors onto HTTP status codes."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, WrongKindError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, RemoteSyncError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def serialize_view(view: Any) -> Any:
    """Convert a view-model dataclass into JSON-compatible data."""
    if dataclasses.is_dataclass(view) and not isinstance(view, type):
        view = dataclasses.asdict(view)
    return jsonable_encoder(view)


def serialize_views(daybook: Daybook) -> ViewsResponse:
    state = dataclasses.asdict(daybook.views.state)
    regions: Dict[str, Any] = {
        region.value: serialize_view(view) for region, view in daybook.views.latest.items()
    }
    return ViewsResponse(state=state, regions=regions)


def serialize_status_message(message: StatusMessage) -> StatusMessageModel:
    return StatusMessageModel(
        level=message.level,
        text=message.text,
        error=type(message.error).__name__ if message.error is not None else None,
        created_at=message.created_at,
    )


def serialize_status(daybook: Daybook) -> StatusResponse:
    board = daybook.status
    return StatusResponse(
        busy=list(board.busy_labels),
        messages=[serialize_status_message(message) for message in board.messages],
    )

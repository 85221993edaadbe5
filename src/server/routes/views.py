"""View-model and navigation endpoints."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException

from src.daybook.exceptions import DaybookError

from ..dependencies import get_daybook, serialize_status, serialize_views, to_http_error
from ..schemas import (
    DaySelectRequest,
    HealthResponse,
    MonthSelectRequest,
    ShiftRequest,
    StatusResponse,
    ViewsResponse,
)


def register_view_routes(app: FastAPI) -> None:
    """Register rendering and navigation endpoints."""

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Simple health check endpoint."""
        return HealthResponse(status="ok")

    @app.get("/api/views", response_model=ViewsResponse)
    async def get_views() -> ViewsResponse:
        """Latest rendered view-model of every region."""
        return serialize_views(get_daybook())

    @app.get("/api/status", response_model=StatusResponse)
    async def get_status() -> StatusResponse:
        """Transient status messages and busy indicators."""
        return serialize_status(get_daybook())

    @app.post("/api/views/month/shift", response_model=ViewsResponse)
    async def shift_month(request: ShiftRequest) -> ViewsResponse:
        daybook = get_daybook()
        try:
            await daybook.shift_month(request.delta)
        except DaybookError as exc:
            raise to_http_error(exc) from exc
        return serialize_views(daybook)

    @app.post("/api/views/month", response_model=ViewsResponse)
    async def show_month(request: MonthSelectRequest) -> ViewsResponse:
        daybook = get_daybook()
        try:
            await daybook.show_month(request.year, request.month)
        except DaybookError as exc:
            raise to_http_error(exc) from exc
        return serialize_views(daybook)

    @app.post("/api/views/day/shift", response_model=ViewsResponse)
    async def shift_day(request: ShiftRequest) -> ViewsResponse:
        daybook = get_daybook()
        try:
            await daybook.shift_day(request.delta)
        except DaybookError as exc:
            raise to_http_error(exc) from exc
        return serialize_views(daybook)

    @app.post("/api/views/day", response_model=ViewsResponse)
    async def select_day(request: DaySelectRequest) -> ViewsResponse:
        daybook = get_daybook()
        try:
            await daybook.select_day(request.date)
        except DaybookError as exc:
            raise to_http_error(exc) from exc
        return serialize_views(daybook)

    @app.post("/api/views/modal", response_model=ViewsResponse)
    async def open_day(request: DaySelectRequest) -> ViewsResponse:
        """Open the day detail modal."""
        daybook = get_daybook()
        try:
            await daybook.open_day(request.date)
        except DaybookError as exc:
            raise to_http_error(exc) from exc
        return serialize_views(daybook)

    @app.delete("/api/views/modal", response_model=ViewsResponse)
    async def close_modal() -> ViewsResponse:
        daybook = get_daybook()
        await daybook.close_modal()
        return serialize_views(daybook)

    @app.get("/api/views/{region}")
    async def get_region(region: str) -> dict:
        """Latest view-model of a single region."""
        views = serialize_views(get_daybook())
        if region not in views.regions:
            raise HTTPException(status_code=404, detail=f"Unknown region: {region}")
        return views.regions[region]

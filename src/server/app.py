"""FastAPI application bootstrap."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .dependencies import get_daybook
from .routes import (
    register_auth_routes,
    register_chat_routes,
    register_record_routes,
    register_view_routes,
)

__all__ = ["app", "create_app", "get_daybook"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # 終了時にバックグラウンドのリモート書き込みを待つ
    if get_daybook.cache_info().currsize:
        await get_daybook().close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Daybook API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_view_routes(app)
    register_record_routes(app)
    register_auth_routes(app)
    register_chat_routes(app)

    return app


app = create_app()

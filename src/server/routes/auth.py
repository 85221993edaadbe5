"""Sign-in / sign-out endpoints driving the remote mirror."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from ..dependencies import get_daybook
from ..schemas import AuthResponse, SignInRequest

logger = logging.getLogger(__name__)


def register_auth_routes(app: FastAPI) -> None:
    """Register authentication state endpoints."""

    @app.post("/api/auth/sign-in", response_model=AuthResponse)
    async def sign_in(request: SignInRequest) -> AuthResponse:
        """Replace local data with the user's remote snapshot.

        Remote failures are reported via /api/status; local data is left intact.
        """
        daybook = get_daybook()
        replaced = await daybook.sign_in(request.user_id)
        if not replaced:
            logger.warning("Sign-in for %s did not replace local data", request.user_id)
        mirror = daybook.mirror
        return AuthResponse(
            signed_in=bool(mirror and mirror.signed_in),
            user_id=mirror.user_id if mirror else None,
            replaced=replaced,
        )

    @app.post("/api/auth/sign-out", response_model=AuthResponse)
    async def sign_out() -> AuthResponse:
        """Clear local data."""
        daybook = get_daybook()
        replaced = await daybook.sign_out()
        return AuthResponse(signed_in=False, user_id=None, replaced=replaced)

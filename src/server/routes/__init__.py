"""Route registration helpers."""

from .auth import register_auth_routes
from .chat import register_chat_routes
from .records import register_record_routes
from .views import register_view_routes

__all__ = [
    "register_auth_routes",
    "register_chat_routes",
    "register_record_routes",
    "register_view_routes",
]

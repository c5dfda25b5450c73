"""API routers for all endpoints."""

from opsdash.routers import auth, command_center, crud, pages

__all__ = [
    "auth",
    "command_center",
    "crud",
    "pages",
]

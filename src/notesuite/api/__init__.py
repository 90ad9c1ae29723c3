"""API routers for NoteSuite."""

from .auth import router as auth_router
from .health import router as health_router
from .maintenance import router as maintenance_router
from .notes import router as notes_router
from .public_links import router as public_links_router
from .sharing import router as sharing_router
from .tags import router as tags_router

__all__ = [
    "auth_router",
    "notes_router",
    "sharing_router",
    "public_links_router",
    "tags_router",
    "maintenance_router",
    "health_router",
]

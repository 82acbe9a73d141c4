from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.auth import router as auth_router
from app.api.routes.health import router as health_router
from app.api.routes.profile import router as profile_router
from app.api.routes.store_admin import router as store_admin_router
from app.api.routes.todos import router as todos_router

__all__ = [
    "admin_router",
    "auth_router",
    "health_router",
    "profile_router",
    "store_admin_router",
    "todos_router",
]

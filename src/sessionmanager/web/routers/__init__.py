from sessionmanager.web.routers.admin import router as admin_router
from sessionmanager.web.routers.auth import router as auth_router
from sessionmanager.web.routers.sessions import router as sessions_router

__all__ = ["admin_router", "auth_router", "sessions_router"]

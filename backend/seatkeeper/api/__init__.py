from .auth import router as auth_router
from .seats import router as seats_router
from .sessions import router as sessions_router
from .players import router as players_router
from .admin import router as admin_router
from .report import router as report_router

__all__ = [
    "auth_router",
    "seats_router",
    "sessions_router",
    "players_router",
    "admin_router",
    "report_router",
]

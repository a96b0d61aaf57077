"""Route modules."""

from .admin import router as admin_router
from .auth import router as auth_router
from .notifications import router as notifications_router
from .restaurants import router as restaurants_router
from .users import router as users_router
from .verification import router as verification_router

__all__ = [
    "admin_router",
    "auth_router",
    "notifications_router",
    "restaurants_router",
    "users_router",
    "verification_router",
]

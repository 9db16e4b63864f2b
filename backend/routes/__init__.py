# Consolidated route imports
from .auth import router as auth_router
from .delivery_methods import router as delivery_methods_router
from .files import router as files_router
from .health import router as health_router

# Export all routers for easy importing
__all__ = [
    "auth_router",
    "delivery_methods_router",
    "files_router",
    "health_router",
]

"""
API routers package.
"""
from app.routers.health import router as health_router
from app.routers.locations import router as locations_router
from app.routers.routes import router as route_router
from app.routers.search import router as search_router
from app.routers.visits import router as visits_router

__all__ = [
    "health_router",
    "visits_router",
    "locations_router",
    "route_router",
    "search_router",
]

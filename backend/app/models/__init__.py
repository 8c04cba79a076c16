"""
SQLAlchemy models package.
All models are imported here for easy access and Alembic discovery.
"""
from app.models.location import SavedLocation
from app.models.visit import UserVisit, VisitState

__all__ = [
    "UserVisit",
    "VisitState",
    "SavedLocation",
]

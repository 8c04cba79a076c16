"""
Repository package for data access layer.
"""
from app.repositories.base import BaseRepository
from app.repositories.location import SavedLocationRepository
from app.repositories.visit import VisitRepository

__all__ = [
    "BaseRepository",
    "VisitRepository",
    "SavedLocationRepository",
]

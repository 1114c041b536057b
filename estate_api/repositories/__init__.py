"""
Repository layer for data access operations.
Provides abstraction over database operations with async SQLAlchemy.
"""

from .base import BaseRepository
from .user import UserRepository
from .listing import ListingRepository, ListingSearchFilters

__all__ = ["BaseRepository", "UserRepository", "ListingRepository", "ListingSearchFilters"]

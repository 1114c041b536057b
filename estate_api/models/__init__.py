"""
Database models for the Estate Listing API.
"""

from estate_api.models.user import User, DEFAULT_AVATAR_URL
from estate_api.models.listing import Listing, ListingType

__all__ = [
    "User",
    "DEFAULT_AVATAR_URL",
    "Listing",
    "ListingType",
]

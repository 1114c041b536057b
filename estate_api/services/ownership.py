"""
Ownership check for listing mutations.
Only the user who created a listing may update or delete it.
"""

from enum import Enum
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from estate_api.models.listing import Listing
from estate_api.repositories.listing import ListingRepository
from estate_api.utils.auth import TokenService
from estate_api.utils.exceptions import (
    InvalidTokenError,
    ListingNotFoundError,
    StorageFailureError,
    UnauthorizedError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ListingAction(str, Enum):
    UPDATE = "update"
    DELETE = "delete"


class ListingOwnershipGuard:
    """
    Authorizes a mutation of one listing by the bearer of a token.

    A missing token, an invalid token and a non-owner all raise the same
    UnauthorizedError outwardly; the ``reason`` attribute tells them apart in
    the logs. A listing that does not exist raises ListingNotFoundError once
    the token has been accepted.
    """

    def __init__(self, token_service: TokenService, listing_repo: ListingRepository):
        self.tokens = token_service
        self.listing_repo = listing_repo

    async def authorize(self, token: Optional[str], listing_id: uuid.UUID, action: ListingAction) -> Listing:
        """
        Check that the token's user owns the listing.

        Args:
            token: Raw identity token from the cookie, if any
            listing_id: Listing about to be mutated
            action: The mutation being attempted

        Returns:
            The listing, so the caller does not fetch it twice

        Raises:
            UnauthorizedError: If the token is missing or invalid, or the
                user does not own the listing
            ListingNotFoundError: If the listing does not exist
        """
        if not token:
            self._deny(listing_id, action, "missing_token")

        try:
            user_id = self.tokens.verify(token)
        except InvalidTokenError as e:
            logger.warning(f"Token rejected for {action.value} of listing {listing_id}: {e.detail}")
            self._deny(listing_id, action, "invalid_token")

        try:
            listing = await self.listing_repo.get_by_id(listing_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load listing {listing_id}: {e}", exc_info=True)
            raise StorageFailureError()

        if listing is None:
            raise ListingNotFoundError(str(listing_id))

        if not listing.is_owned_by(user_id):
            self._deny(listing_id, action, "not_owner", user_id)

        return listing

    @staticmethod
    def _deny(listing_id: uuid.UUID, action: ListingAction, reason: str, user_id: Optional[uuid.UUID] = None):
        who = f"user {user_id}" if user_id else "anonymous caller"
        logger.warning(f"Denied {action.value} of listing {listing_id} for {who}: {reason}")
        raise UnauthorizedError(reason=reason)

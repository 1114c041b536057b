"""
Listing service: ownership-scoped mutations and public reads.

Mutations run token check, ownership check, field validation, image set
normalization and a single write, in that order. Nothing is written if any
step fails.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.models.listing import Listing
from estate_api.models.user import User
from estate_api.repositories.listing import ListingRepository, ListingSearchFilters
from estate_api.schemas.listing import ListingCreate, ListingUpdate
from estate_api.services.images import ImageRef, ImageSetManager, LocalImage, RemoteImage, UploadResolver
from estate_api.services.ownership import ListingAction, ListingOwnershipGuard
from estate_api.utils.auth import TokenService
from estate_api.utils.exceptions import (
    ListingNotFoundError,
    StorageFailureError,
    UnauthorizedError,
    ValidationError
)
import uuid
import logging

logger = logging.getLogger(__name__)

# Fields that take part in the listing's own consistency rules
RULE_FIELDS = ("regular_price", "discount_price", "offer", "bedrooms", "bathrooms")


def to_image_refs(images) -> List[ImageRef]:
    """Convert request image entries into Remote/Local references, keeping order."""
    refs = []
    for image in images:
        if image.kind == "remote":
            refs.append(RemoteImage(url=image.url))
        else:
            refs.append(LocalImage(handle=image.handle, size=image.size))
    return refs


class ListingService:
    """
    Listing use cases for one request.
    The upload resolver is passed per call so tests and routes can choose it.
    """

    def __init__(self, db_session: AsyncSession, token_service: TokenService, image_manager: ImageSetManager):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)
        self.guard = ListingOwnershipGuard(token_service, self.listing_repo)
        self.images = image_manager

    async def create_listing(self, listing_data: ListingCreate, current_user: User, resolver: UploadResolver) -> Listing:
        """
        Create a listing owned by the current user.

        Args:
            listing_data: Validated listing payload including its image set
            current_user: Authenticated owner
            resolver: Upload collaborator for Local images

        Returns:
            Created listing

        Raises:
            ValidationError: If the listing fields break a listing rule
            EmptyImageSetError: If no images were submitted
            TooManyImagesError: If too many images were submitted
            UnresolvedLocalImageError: If a staged image could not be uploaded
            StorageFailureError: If the store fails
        """
        fields = listing_data.model_dump(exclude={"images"})
        self._check_rules(fields)

        image_urls = await self.images.normalize(to_image_refs(listing_data.images), resolver)

        try:
            listing = await self.listing_repo.create_listing({
                **fields,
                "image_urls": image_urls,
                "user_ref": current_user.id,
            })
        except ValueError as e:
            raise ValidationError(str(e))
        except SQLAlchemyError as e:
            logger.error(f"Failed to store listing for user {current_user.id}: {e}", exc_info=True)
            raise StorageFailureError()

        logger.info(f"Listing {listing.id} created by user {current_user.id} with {len(image_urls)} images")
        return listing

    async def update_listing(
        self,
        listing_id: uuid.UUID,
        listing_data: ListingUpdate,
        token: Optional[str],
        resolver: UploadResolver
    ) -> Listing:
        """
        Update a listing on behalf of its owner.

        The owner reference never changes. When ``images`` is given it
        replaces the stored set in the submitted order.

        Raises:
            UnauthorizedError: If the token is missing or invalid, or its
                user does not own the listing
            ListingNotFoundError: If the listing does not exist
            ValidationError: If no field was given or the merged listing
                breaks a listing rule
            UnresolvedLocalImageError: If a staged image could not be uploaded
            StorageFailureError: If the store fails
        """
        listing = await self.guard.authorize(token, listing_id, ListingAction.UPDATE)

        changes = listing_data.model_dump(exclude_unset=True, exclude={"images"})
        if not changes and listing_data.images is None:
            raise ValidationError("No valid fields provided for update")

        merged = {field: getattr(listing, field) for field in RULE_FIELDS}
        merged.update({k: v for k, v in changes.items() if k in RULE_FIELDS})
        self._check_rules(merged)

        if listing_data.images is not None:
            changes["image_urls"] = await self.images.normalize(to_image_refs(listing_data.images), resolver)

        try:
            updated = await self.listing_repo.update(listing, changes)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update listing {listing_id}: {e}", exc_info=True)
            raise StorageFailureError()

        logger.info(f"Listing {listing_id} updated by its owner: {sorted(changes)}")
        return updated

    async def delete_listing(self, listing_id: uuid.UUID, token: Optional[str]) -> None:
        """
        Delete a listing on behalf of its owner.
        Image files it points to are left alone.

        Raises:
            UnauthorizedError: If the caller does not own the listing
            ListingNotFoundError: If the listing does not exist
            StorageFailureError: If the store fails
        """
        listing = await self.guard.authorize(token, listing_id, ListingAction.DELETE)

        try:
            deleted = await self.listing_repo.delete(listing.id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete listing {listing_id}: {e}", exc_info=True)
            raise StorageFailureError()

        if not deleted:
            raise ListingNotFoundError(str(listing_id))

        logger.info(f"Listing {listing_id} deleted by owner {listing.user_ref}")

    async def get_listing(self, listing_id: uuid.UUID) -> Listing:
        """Fetch one listing; public."""
        try:
            listing = await self.listing_repo.get_by_id(listing_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load listing {listing_id}: {e}", exc_info=True)
            raise StorageFailureError()

        if listing is None:
            raise ListingNotFoundError(str(listing_id))
        return listing

    async def search_listings(self, filters: ListingSearchFilters) -> List[Listing]:
        try:
            return await self.listing_repo.search_listings(filters)
        except SQLAlchemyError as e:
            logger.error(f"Listing search failed: {e}", exc_info=True)
            raise StorageFailureError()

    async def get_user_listings(self, user_id: uuid.UUID, current_user: User) -> List[Listing]:
        """
        List every listing of a user. Users may only list their own.

        Raises:
            UnauthorizedError: If ``user_id`` is not the current user
        """
        if current_user.id != user_id:
            logger.warning(f"User {current_user.id} asked for listings of user {user_id}")
            raise UnauthorizedError(reason="not_self")

        try:
            return await self.listing_repo.list_by_owner(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list listings of user {user_id}: {e}", exc_info=True)
            raise StorageFailureError()

    @staticmethod
    def _check_rules(fields: Dict[str, Any]) -> None:
        candidate = Listing(**{field: fields.get(field) for field in RULE_FIELDS})
        try:
            candidate.validate_all()
        except ValueError as e:
            raise ValidationError(str(e))

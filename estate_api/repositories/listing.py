"""
Listing repository: durable storage for listing documents.
Provides create/read/update/delete by id and the filtered public query.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, asc, desc
from estate_api.repositories.base import BaseRepository
from estate_api.models.listing import Listing, ListingType
from typing import Optional, List, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


SORTABLE_FIELDS = {
    "created_at": Listing.created_at,
    "regular_price": Listing.regular_price,
}


class ListingSearchFilters:
    """
    Filters for the public listing query.

    Boolean flags only restrict when True: ``offer=False`` and
    ``offer=None`` both mean "with or without an offer".
    """

    def __init__(
        self,
        search_term: Optional[str] = None,
        offer: Optional[bool] = None,
        furnished: Optional[bool] = None,
        parking: Optional[bool] = None,
        listing_type: Optional[ListingType] = None,
        sort: str = "created_at",
        order: str = "desc",
        limit: int = 9,
        start_index: int = 0
    ):
        self.search_term = search_term
        self.offer = offer
        self.furnished = furnished
        self.parking = parking
        self.listing_type = listing_type
        self.sort = sort
        self.order = order
        self.limit = limit
        self.start_index = start_index


class ListingRepository(BaseRepository[Listing]):
    """Repository for listing documents."""

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def create_listing(self, listing_data: Dict[str, Any]) -> Listing:
        """
        Create a new listing with model-level validation.

        Raises:
            ValueError: If validation fails
        """
        Listing(**listing_data).validate_all()

        listing = await self.create(listing_data)
        logger.info(f"Created listing: {listing.name} (ID: {listing.id})")
        return listing

    async def list_by_owner(self, owner_id: uuid.UUID) -> List[Listing]:
        return await self.list_by_field("user_ref", owner_id)

    async def delete_by_owner(self, owner_id: uuid.UUID, commit: bool = True) -> int:
        """Delete every listing owned by a user, returning how many went."""
        try:
            result = await self.db.execute(delete(Listing).where(Listing.user_ref == owner_id))
            if commit:
                await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete listings of owner {owner_id}: {e}")
            raise

    async def search_listings(self, filters: ListingSearchFilters) -> List[Listing]:
        """
        Run the public query with filtering, ordering and offset pagination.

        Args:
            filters: ListingSearchFilters instance

        Returns:
            Matching listings for the requested page
        """
        query = select(Listing)

        for condition in self._build_filter_conditions(filters):
            query = query.where(condition)

        order_field = SORTABLE_FIELDS.get(filters.sort, Listing.created_at)
        direction = asc if filters.order.lower() == "asc" else desc
        query = query.order_by(direction(order_field), direction(Listing.id))

        query = query.offset(filters.start_index).limit(filters.limit)

        try:
            result = await self.db.execute(query)
            listings = list(result.scalars().all())
            logger.debug(f"Listing search returned {len(listings)} results")
            return listings
        except Exception as e:
            logger.error(f"Failed to search listings: {e}")
            raise

    def _build_filter_conditions(self, filters: ListingSearchFilters) -> list:
        conditions = []

        if filters.search_term:
            conditions.append(Listing.name.icontains(filters.search_term, autoescape=True))

        if filters.offer:
            conditions.append(Listing.offer.is_(True))

        if filters.furnished:
            conditions.append(Listing.furnished.is_(True))

        if filters.parking:
            conditions.append(Listing.parking.is_(True))

        if filters.listing_type is not None:
            conditions.append(Listing.type == filters.listing_type)

        return conditions

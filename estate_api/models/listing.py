"""
Listing model for sale and rental properties.
Stores the listing fields, its owner and the ordered image URL array.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, JSON, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from estate_api.database import Base
from decimal import Decimal
from typing import List, Optional
import enum
import uuid


class ListingType(str, enum.Enum):
    """Whether the property is offered for sale or for rent."""
    SALE = "sale"
    RENT = "rent"


class Listing(Base):
    """
    Listing document owned by exactly one user.

    ``image_urls`` is ordered; its first element is the cover image.
    """

    __tablename__ = "listings"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Listing description"
    )

    address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Property address"
    )

    regular_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        index=True
    )

    discount_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        default=Decimal("0")
    )

    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)

    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)

    furnished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    parking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    type: Mapped[ListingType] = mapped_column(
        SQLEnum(ListingType),
        nullable=False,
        index=True
    )

    offer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    image_urls: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered image URLs, position 0 is the cover"
    )

    user_ref: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the user who owns this listing"
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, name={self.name[:30]}, owner={self.user_ref})>"

    @property
    def cover_image(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.user_ref == user_id

    def validate_pricing(self) -> None:
        """
        Validate prices.

        Raises:
            ValueError: If a price is negative or the discount is not below
                the regular price while an offer is active
        """
        if self.regular_price is None or self.regular_price < 0:
            raise ValueError("Regular price cannot be negative")

        discount = self.discount_price or Decimal("0")
        if discount < 0:
            raise ValueError("Discount price cannot be negative")

        if self.offer and discount >= self.regular_price:
            raise ValueError("Discount price must be lower than regular price")

    def validate_rooms(self) -> None:
        if self.bedrooms is None or self.bedrooms < 1:
            raise ValueError("Listing must have at least one bedroom")
        if self.bathrooms is None or self.bathrooms < 1:
            raise ValueError("Listing must have at least one bathroom")

    def validate_all(self) -> None:
        """
        Run all validation checks on the listing.

        Raises:
            ValueError: If any validation fails
        """
        self.validate_pricing()
        self.validate_rooms()

    def to_dict(self) -> dict:
        """Convert listing to its persisted document shape."""
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "regular_price": float(self.regular_price),
            "discount_price": float(self.discount_price or 0),
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "furnished": self.furnished,
            "parking": self.parking,
            "type": self.type.value,
            "offer": self.offer,
            "image_urls": list(self.image_urls),
            "cover_image": self.cover_image,
            "user_ref": str(self.user_ref),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# Composite index for the public search (type/offer filters ordered by recency)
type_offer_index = Index(
    "idx_listings_type_offer_created",
    Listing.type,
    Listing.offer,
    Listing.created_at.desc()
)

# Composite index for an owner's listing index
owner_created_index = Index(
    "idx_listings_owner_created",
    Listing.user_ref,
    Listing.created_at.desc()
)

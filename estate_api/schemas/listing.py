"""
Pydantic schemas for listing requests and responses.
Image entries are a discriminated union on ``kind``: remote URLs that are
already persisted, or local handles returned by the upload endpoint.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime
from decimal import Decimal
from estate_api.models.listing import ListingType


class RemoteImageIn(BaseModel):
    """An image already stored at a public URL."""

    kind: Literal["remote"] = "remote"
    url: str = Field(..., min_length=1, max_length=1024, examples=["https://cdn.example.com/b.jpg"])


class LocalImageIn(BaseModel):
    """A staged image that must be uploaded before the listing is saved."""

    kind: Literal["local"] = "local"
    handle: str = Field(..., min_length=1, max_length=255, examples=["3f2a9c1e.jpg"])
    size: int = Field(..., gt=0, description="Byte size of the staged file")


ImageIn = Annotated[Union[RemoteImageIn, LocalImageIn], Field(discriminator="kind")]


class ListingBase(BaseModel):
    """Fields shared by listing create and update payloads."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Sunny flat by the park"])
    description: str = Field(..., min_length=1, max_length=5000)
    address: str = Field(..., min_length=1, max_length=255, examples=["12 Park Lane, Springfield"])
    regular_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, examples=[1500])
    discount_price: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    bedrooms: int = Field(..., ge=1, le=100)
    bathrooms: int = Field(..., ge=1, le=100)
    furnished: bool = False
    parking: bool = False
    type: ListingType = Field(..., examples=["rent"])
    offer: bool = False

    @field_validator("name", "description", "address")
    @classmethod
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v.strip()


class ListingCreate(ListingBase):
    """Schema for creating a listing."""

    images: List[ImageIn] = Field(
        ...,
        description="Ordered image set; the first entry is the cover"
    )

    @model_validator(mode="after")
    def validate_offer(self):
        if self.offer and self.discount_price >= self.regular_price:
            raise ValueError("Discount price must be lower than regular price")
        return self


class ListingUpdate(BaseModel):
    """
    Schema for updating a listing. Omitted fields keep their stored value;
    every listing field is required, so an explicit null is rejected rather
    than ignored. The offer/discount rule is checked against the merged result.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    regular_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    discount_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    bedrooms: Optional[int] = Field(None, ge=1, le=100)
    bathrooms: Optional[int] = Field(None, ge=1, le=100)
    furnished: Optional[bool] = None
    parking: Optional[bool] = None
    type: Optional[ListingType] = None
    offer: Optional[bool] = None
    images: Optional[List[ImageIn]] = Field(
        None,
        description="Replacement image set in its final order"
    )

    @field_validator("name", "description", "address")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v.strip()

    @model_validator(mode="after")
    def reject_nulls(self):
        nulls = sorted(field for field in self.model_fields_set if getattr(self, field) is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class ListingResponse(BaseModel):
    """Listing as returned to clients."""

    id: str
    name: str
    description: str
    address: str
    regular_price: float
    discount_price: float
    bedrooms: int
    bathrooms: int
    furnished: bool
    parking: bool
    type: ListingType
    offer: bool
    image_urls: List[str]
    cover_image: Optional[str] = None
    user_ref: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_listing(cls, listing) -> "ListingResponse":
        return cls(**listing.to_dict())


class StagedImageResponse(BaseModel):
    """Local image reference returned by the upload endpoint."""

    kind: Literal["local"] = "local"
    handle: str
    size: int

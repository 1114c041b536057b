"""
Tests for the User and Listing models.
"""

import uuid
from decimal import Decimal

import pytest

from estate_api.models.listing import Listing, ListingType
from estate_api.models.user import User, DEFAULT_AVATAR_URL
from estate_api.repositories.listing import ListingRepository
from estate_api.repositories.user import UserRepository
from estate_api.utils.auth import hash_password
from tests.conftest import ListingFactory, UserFactory


class TestUserModel:
    """Test User model behaviour."""

    def test_verify_password(self):
        user = User(email="alice@example.com", username="alice", hashed_password=hash_password("pw123"))

        assert user.verify_password("pw123") is True
        assert user.verify_password("PW123") is False

    def test_account_without_local_password_never_verifies(self):
        user = User(email="fed@example.com", username="fed", hashed_password=None)

        assert user.has_local_password is False
        assert user.verify_password("") is False
        assert user.verify_password("anything") is False

    @pytest.mark.asyncio
    async def test_to_dict_excludes_password_hash(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="alice@example.com", username="alice")

        data = user.to_dict()

        assert data["email"] == "alice@example.com"
        assert data["username"] == "alice"
        assert data["avatar"] == DEFAULT_AVATAR_URL
        assert "hashed_password" not in data
        assert all("pw123" not in str(value) for value in data.values())


class TestListingModel:
    """Test Listing model behaviour."""

    def _listing(self, **overrides) -> Listing:
        data = ListingFactory.create_listing_data(**overrides)
        return Listing(user_ref=uuid.uuid4(), **data)

    def test_cover_image_is_first_url(self):
        listing = self._listing(image_urls=["cdn/a.jpg", "b.jpg"])

        assert listing.cover_image == "cdn/a.jpg"

    def test_cover_image_of_empty_set(self):
        assert self._listing(image_urls=[]).cover_image is None

    def test_is_owned_by(self):
        owner = uuid.uuid4()
        listing = Listing(user_ref=owner, **ListingFactory.create_listing_data())

        assert listing.is_owned_by(owner)
        assert not listing.is_owned_by(uuid.uuid4())

    def test_offer_requires_lower_discount(self):
        listing = self._listing(offer=True, regular_price=Decimal("100"), discount_price=Decimal("100"))

        with pytest.raises(ValueError, match="lower than regular price"):
            listing.validate_pricing()

    def test_discount_ignored_without_offer(self):
        listing = self._listing(offer=False, regular_price=Decimal("100"), discount_price=Decimal("150"))

        listing.validate_pricing()

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            self._listing(regular_price=Decimal("-1")).validate_pricing()

    def test_rooms_must_be_positive(self):
        with pytest.raises(ValueError, match="bedroom"):
            self._listing(bedrooms=0).validate_rooms()
        with pytest.raises(ValueError, match="bathroom"):
            self._listing(bathrooms=0).validate_rooms()

    @pytest.mark.asyncio
    async def test_to_dict_shape(self, listing_repository: ListingRepository, alice: User):
        listing = await ListingFactory.create_listing(
            listing_repository,
            alice.id,
            image_urls=["cdn/a.jpg", "b.jpg"],
            type=ListingType.SALE
        )

        data = listing.to_dict()

        assert data["image_urls"] == ["cdn/a.jpg", "b.jpg"]
        assert data["cover_image"] == "cdn/a.jpg"
        assert data["type"] == "sale"
        assert data["user_ref"] == str(alice.id)
        assert data["regular_price"] == 1500.0

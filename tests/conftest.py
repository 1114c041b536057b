"""
Test configuration and fixtures for the estate listing API.
Provides an in-memory database per test, service fixtures, test data
factories and an HTTP client bound to the application.
"""

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Dict, Iterable, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image as PILImage
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from estate_api.config import Settings, get_settings
from estate_api.database import Database, get_db
from estate_api.main import app
from estate_api.models.listing import Listing, ListingType
from estate_api.models.user import User
from estate_api.repositories.listing import ListingRepository
from estate_api.repositories.user import UserRepository
from estate_api.services.auth import AuthService
from estate_api.services.images import ImageSetManager, LocalImage, UploadResolver
from estate_api.services.listing import ListingService
from estate_api.services.storage import StagedImageStore
from estate_api.services.user import UserService
from estate_api.utils.auth import TokenService, hash_password
from estate_api.utils.dependencies import get_staged_image_store, get_upload_resolver


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "pw123"


class FakeUploadResolver(UploadResolver):
    """
    Upload collaborator double.

    Maps staging handles to URLs; handles listed in ``failing`` raise, and
    every call is recorded in ``calls``.
    """

    def __init__(self, urls: Optional[Dict[str, str]] = None, failing: Iterable[str] = ()):
        self.urls = dict(urls or {})
        self.failing = set(failing)
        self.calls = []

    async def resolve(self, image: LocalImage) -> str:
        self.calls.append(image.handle)
        if image.handle in self.failing:
            raise ConnectionError(f"upload of {image.handle} failed")
        return self.urls.get(image.handle, f"cdn/{image.handle}")


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings isolated from the environment's database and media dirs."""
    return Settings(
        environment="testing",
        database_url=TEST_DATABASE_URL,
        jwt_secret_key="test-secret-key-with-enough-length-0123",
        max_listing_images=6,
        upload_timeout_seconds=1.0,
        upload_dir=str(tmp_path / "media"),
        staging_dir=str(tmp_path / "staging"),
        public_media_url="/media",
    )


@pytest_asyncio.fixture
async def database(test_settings: Settings) -> AsyncGenerator[Database, None]:
    """Fresh in-memory database with all tables."""
    db = Database(test_settings.database_url)
    db.connect(poolclass=StaticPool)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with database.session() as session:
        yield session


@pytest.fixture
def token_service(test_settings: Settings) -> TokenService:
    return TokenService(test_settings)


@pytest.fixture
def image_manager(test_settings: Settings) -> ImageSetManager:
    return ImageSetManager(
        max_images=test_settings.max_listing_images,
        upload_timeout=test_settings.upload_timeout_seconds
    )


@pytest.fixture
def fake_resolver() -> FakeUploadResolver:
    return FakeUploadResolver()


@pytest.fixture
def staged_store(test_settings: Settings) -> StagedImageStore:
    return StagedImageStore.from_settings(test_settings)


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    """Create a user repository instance."""
    return UserRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    """Create a listing repository instance."""
    return ListingRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession, token_service: TokenService) -> AuthService:
    """Create an auth service instance."""
    return AuthService(db_session, token_service)


@pytest.fixture
def listing_service(db_session: AsyncSession, token_service: TokenService, image_manager: ImageSetManager) -> ListingService:
    return ListingService(db_session, token_service, image_manager)


@pytest.fixture
def user_service(db_session: AsyncSession) -> UserService:
    return UserService(db_session)


@pytest_asyncio.fixture
async def async_client(
    database: Database,
    db_session: AsyncSession,
    test_settings: Settings,
    fake_resolver: FakeUploadResolver,
    staged_store: StagedImageStore
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database and collaborator overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_upload_resolver] = lambda: fake_resolver
    app.dependency_overrides[get_staged_image_store] = lambda: staged_store
    app.state.database = database

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = TEST_PASSWORD
    ) -> User:
        """Create a test user in the database."""
        suffix = uuid.uuid4().hex[:8]
        return await user_repo.create_user(
            email=email or f"user{suffix}@example.com",
            username=username or f"user{suffix}",
            hashed_password=hash_password(password) if password else None
        )


class ListingFactory:
    """Factory for creating test listings."""

    @staticmethod
    def create_listing_data(**overrides) -> dict:
        """Create listing field dictionary (without owner)."""
        data = {
            "name": "Sunny flat by the park",
            "description": "Two bedrooms, balcony, close to the station",
            "address": "12 Park Lane, Springfield",
            "regular_price": Decimal("1500.00"),
            "discount_price": Decimal("0"),
            "bedrooms": 2,
            "bathrooms": 1,
            "furnished": False,
            "parking": False,
            "type": ListingType.RENT,
            "offer": False,
            "image_urls": ["https://cdn.example.com/cover.jpg"],
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_listing(listing_repo: ListingRepository, owner_id: uuid.UUID, **overrides) -> Listing:
        """Create a test listing in the database."""
        data = ListingFactory.create_listing_data(**overrides)
        data["user_ref"] = owner_id
        return await listing_repo.create_listing(data)

    @staticmethod
    def create_payload(**overrides) -> dict:
        """JSON body for the create endpoint."""
        payload = {
            "name": "Sunny flat by the park",
            "description": "Two bedrooms, balcony, close to the station",
            "address": "12 Park Lane, Springfield",
            "regular_price": 1500,
            "discount_price": 0,
            "bedrooms": 2,
            "bathrooms": 1,
            "furnished": False,
            "parking": False,
            "type": "rent",
            "offer": False,
            "images": [{"kind": "remote", "url": "https://cdn.example.com/cover.jpg"}],
        }
        payload.update(overrides)
        return payload


def make_image_bytes(fmt: str = "JPEG", size=(120, 120)) -> bytes:
    """Encode a solid-colour test image."""
    buffer = io.BytesIO()
    PILImage.new("RGB", size, color=(200, 120, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


def auth_cookie(token: str) -> Dict[str, str]:
    """Request headers carrying the identity cookie."""
    return {"Cookie": f"access_token={token}"}


# Common test fixtures
@pytest_asyncio.fixture
async def alice(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="alice@example.com", username="alice")


@pytest_asyncio.fixture
async def bob(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="bob@example.com", username="bob")


@pytest_asyncio.fixture
async def alice_listing(listing_repository: ListingRepository, alice: User) -> Listing:
    return await ListingFactory.create_listing(listing_repository, alice.id)

"""
Test configuration and fixtures for the property marketplace API.
Provides database fixtures, test data factories, and common test utilities.
"""

import io
import os
import tempfile

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="marketplace-media-"))

import pytest
import uuid
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, Dict, List, Optional
import httpx
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.models.user import User, UserRole
from app.models.property import (
    Property,
    PropertyType,
    ListingType,
    PropertyStatus,
    ApprovalStatus,
    ListingTier,
)
from app.models.image import PropertyImage, ImageType
from app.repositories.user import UserRepository
from app.repositories.property import PropertyRepository
from app.repositories.image import ImageRepository
from app.services.approval import ApprovalService
from app.services.auth import AuthService
from app.services.currency import CurrencyRateProvider
from app.services.image import ImageService
from app.services.property import PropertyService
from app.utils.auth import create_access_token
from app.utils.file_utils import FileStorage

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"
OFFLINE_RATES_URL = "https://rates.test/v4/latest/GHS"


@pytest.fixture
async def db_engine():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async API client sharing the test database session.
    The rate source is always unavailable, so the default rates apply.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    original_provider = app.state.rate_provider
    rates_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    app.state.rate_provider = CurrencyRateProvider(OFFLINE_RATES_URL, client=rates_client)
    app.state.error_reporter.clear()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as api_client:
        yield api_client

    await rates_client.aclose()
    app.state.rate_provider = original_provider
    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def image_repository(db_session: AsyncSession) -> ImageRepository:
    return ImageRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession, media_storage: FileStorage) -> PropertyService:
    return PropertyService(db_session, storage=media_storage)


@pytest.fixture
def approval_service(db_session: AsyncSession) -> ApprovalService:
    return ApprovalService(db_session)


@pytest.fixture
def media_storage(tmp_path: Path) -> FileStorage:
    return FileStorage(tmp_path / "media")


@pytest.fixture
def image_service(db_session: AsyncSession, media_storage: FileStorage) -> ImageService:
    return ImageService(db_session, storage=media_storage)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.SELLER,
        is_active: bool = True,
        is_verified: bool = True
    ) -> dict:
        return {
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_active": is_active,
            "is_verified": is_verified
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for listing payloads and stored listings."""

    @staticmethod
    def image_inputs(count: int = 3, primary_index: Optional[int] = None) -> List[dict]:
        return [
            {
                "url": f"https://cdn.example.com/listings/{uuid.uuid4().hex}.jpg",
                "is_primary": index == primary_index,
                "order_index": index
            }
            for index in range(count)
        ]

    @staticmethod
    def create_property_data(**overrides) -> dict:
        """JSON payload accepted by POST /properties."""
        data = {
            "title": "2BR Flat in East Legon",
            "description": "Bright two bedroom flat close to the mall and schools.",
            "property_type": "apartment",
            "listing_type": "rent",
            "price": 50000,
            "currency": "GHS",
            "address": "12 Lagos Avenue, East Legon",
            "city": "Accra",
            "region": "Greater Accra",
            "bedrooms": 2,
            "bathrooms": 2,
            "features": ["Balcony"],
            "amenities": ["Parking"]
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_property(
        property_repo: PropertyRepository,
        owner_id: uuid.UUID,
        status: PropertyStatus = PropertyStatus.ACTIVE,
        approval_status: ApprovalStatus = ApprovalStatus.APPROVED,
        **overrides
    ) -> Property:
        """Store a listing directly, bypassing moderation."""
        data = {
            "title": "Family House in Cantonments",
            "description": "Spacious family house with a large garden and quiet street.",
            "property_type": PropertyType.HOUSE,
            "listing_type": ListingType.SALE,
            "price": Decimal("750000.00"),
            "currency": "GHS",
            "address": "5 Ring Road East, Cantonments",
            "city": "Accra",
            "region": "Greater Accra",
            "bedrooms": 4,
            "bathrooms": 3,
            "features": ["Garden"],
            "amenities": ["Security"],
            "tier": ListingTier.BASIC,
            "owner_id": owner_id,
            "status": status,
            "approval_status": approval_status,
        }
        data.update(overrides)
        created = await property_repo.create(data)
        return await property_repo.get_by_id(created.id)


class ImageFactory:
    """Factory for creating test property images."""

    @staticmethod
    async def create_image(
        image_repo: ImageRepository,
        property_id: Optional[uuid.UUID] = None,
        staging_id: Optional[uuid.UUID] = None,
        is_primary: bool = False,
        order_index: int = 0,
        image_type: ImageType = ImageType.GALLERY
    ) -> PropertyImage:
        return await image_repo.create_image({
            "property_id": property_id,
            "staging_id": staging_id,
            "url": f"https://cdn.example.com/{uuid.uuid4().hex}.jpg",
            "order_index": order_index,
            "image_type": image_type,
        }, make_primary=is_primary)

    @staticmethod
    def image_bytes(image_format: str = "PNG", size=(200, 150), color=(200, 40, 40)) -> bytes:
        """Encode a solid-colour image with Pillow."""
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format=image_format)
        return buffer.getvalue()


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


# Common test fixtures
@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="admin@test.com", full_name="Test Admin", role=UserRole.ADMIN
    )


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="agent@test.com", full_name="Test Agent", role=UserRole.AGENT
    )


@pytest.fixture
async def test_seller(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="seller@test.com", full_name="Test Seller", role=UserRole.SELLER
    )


@pytest.fixture
async def unverified_seller(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="newseller@test.com",
        full_name="New Seller",
        role=UserRole.SELLER,
        is_verified=False
    )


@pytest.fixture
async def test_buyer(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="buyer@test.com", full_name="Test Buyer", role=UserRole.BUYER
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="inactive@test.com",
        full_name="Inactive User",
        role=UserRole.AGENT,
        is_active=False
    )


@pytest.fixture
async def public_property(property_repository: PropertyRepository, test_seller: User) -> Property:
    """An active approved listing."""
    return await PropertyFactory.create_property(property_repository, owner_id=test_seller.id)


@pytest.fixture
async def pending_property(property_repository: PropertyRepository, test_seller: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository,
        owner_id=test_seller.id,
        status=PropertyStatus.PENDING,
        approval_status=ApprovalStatus.PENDING,
        title="Pending Townhouse"
    )

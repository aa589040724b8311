"""
Test configuration and fixtures for the marketplace API.
Provides database fixtures, test data factories, and common test utilities.
"""

import io
import os
import uuid
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from marketplace.config import Settings, get_settings
from marketplace.database import Base, get_db
from marketplace.main import app
from marketplace.models.feature import PropertyFeature, PropertyFeatureAssignment
from marketplace.models.image import PropertyImage
from marketplace.models.neighborhood import Neighborhood
from marketplace.models.property import ListingStatus, OperationStatus, Property, PropertyType
from marketplace.models.user import User, UserRole
from marketplace.utils.auth import create_access_token, create_refresh_token

TEST_PASSWORD = "testpassword123"


def create_test_image(width: int = 40, height: int = 30, format: str = "PNG") -> bytes:
    """Create a test image in memory."""
    img = Image.new("RGB", (width, height), color="red")
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=format)
    return img_bytes.getvalue()


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def refresh_token_for(user: User) -> str:
    return create_refresh_token(user_id=user.id, email=user.email)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with local storage under a temporary upload directory."""
    return Settings(
        environment="testing",
        storage_backend="local",
        upload_dir=str(tmp_path / "uploads"),
        blob_read_write_token=None,
        public_base_url=None,
        max_file_size=1024 * 1024,
        reconcile_grace_seconds=0,
    )


@pytest.fixture
async def test_engine(tmp_path: Path):
    """
    Engine for one test with a freshly created schema.
    Uses a throwaway SQLite file unless TEST_DATABASE_URL points elsewhere.
    """
    database_url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(database_url, poolclass=NullPool)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
async def async_client(session_factory, test_settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; every request gets its own session, like production."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        session: AsyncSession,
        email: Optional[str] = None,
        role: UserRole = UserRole.SELLER,
        full_name: str = "Test User",
        is_active: bool = True,
        password: str = TEST_PASSWORD
    ) -> User:
        user = User(
            email=email or f"user{uuid.uuid4().hex[:8]}@example.com",
            hashed_password=User.hash_password(password),
            full_name=full_name,
            phone="+1 555 0100",
            role=role,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(**overrides) -> dict:
        data = {
            "title": "Sunny family house",
            "description": "A bright family house with a large garden",
            "price": Decimal("250000.00"),
            "address": "12 Oak Street",
            "city": "Springfield",
            "state": "IL",
            "country": "USA",
            "zip_code": "62701",
            "property_type": PropertyType.HOUSE,
            "rooms": 4,
            "bathrooms": 2,
            "area": 160,
            "year_built": 2001,
            "operation_status": OperationStatus.SALE,
            "listing_status": ListingStatus.ACTIVE,
            "latitude": None,
            "longitude": None,
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_property(
        session: AsyncSession,
        seller: User,
        feature_ids: Optional[List[uuid.UUID]] = None,
        **overrides
    ) -> Property:
        property_obj = Property(seller_id=seller.id, **PropertyFactory.create_property_data(**overrides))
        session.add(property_obj)
        await session.flush()
        for feature_id in feature_ids or []:
            session.add(PropertyFeatureAssignment(property_id=property_obj.id, feature_id=feature_id))
        await session.commit()
        await session.refresh(property_obj)
        return property_obj


class ImageFactory:
    """Factory for image rows with given cover flags and display orders."""

    @staticmethod
    async def create_image(
        session: AsyncSession,
        property_obj: Property,
        display_order: int = 1,
        is_cover: bool = False,
        image_url: Optional[str] = None
    ) -> PropertyImage:
        image = PropertyImage(
            property_id=property_obj.id,
            image_url=image_url or f"https://cdn.example.com/{uuid.uuid4().hex}.jpg",
            is_cover=is_cover,
            display_order=display_order,
            mime_type="image/jpeg",
            file_size=1024,
        )
        session.add(image)
        await session.commit()
        await session.refresh(image)
        return image

    @staticmethod
    async def create_gallery(session: AsyncSession, property_obj: Property, count: int) -> List[PropertyImage]:
        """Images with display orders 1..count, the first one being the cover."""
        return [
            await ImageFactory.create_image(session, property_obj, display_order=i, is_cover=(i == 1))
            for i in range(1, count + 1)
        ]


@pytest.fixture
async def test_seller(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="seller@example.com", full_name="Sam Seller")


@pytest.fixture
async def other_seller(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="other.seller@example.com", full_name="Olga Other")


@pytest.fixture
async def test_buyer(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="buyer@example.com", role=UserRole.BUYER)


@pytest.fixture
async def test_admin(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
async def test_inactive_user(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="inactive@example.com", is_active=False)


@pytest.fixture
async def test_property(db_session: AsyncSession, test_seller: User) -> Property:
    return await PropertyFactory.create_property(db_session, test_seller)


@pytest.fixture
async def test_features(db_session: AsyncSession) -> List[PropertyFeature]:
    features = [
        PropertyFeature(name="Pool", category="exterior", icon="pool"),
        PropertyFeature(name="Parking", category="building", icon="car"),
        PropertyFeature(name="Fireplace", category="interior", icon="fire"),
    ]
    db_session.add_all(features)
    await db_session.commit()
    for feature in features:
        await db_session.refresh(feature)
    return features


@pytest.fixture
async def test_neighborhoods(db_session: AsyncSession) -> List[Neighborhood]:
    neighborhoods = [
        Neighborhood(name="Old Town", city="Springfield", country="USA", safety_rating=8, walkability_score=92),
        Neighborhood(name="Riverside", city="Springfield", country="USA", safety_rating=7),
        Neighborhood(name="Harbor", city="Shelbyville", country="USA"),
    ]
    db_session.add_all(neighborhoods)
    await db_session.commit()
    for neighborhood in neighborhoods:
        await db_session.refresh(neighborhood)
    return neighborhoods


@pytest.fixture
def png_bytes() -> bytes:
    return create_test_image()

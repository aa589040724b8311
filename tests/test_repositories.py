"""
Tests for repository classes.
Covers gallery ordering, cover constraints, search filtering and user lookups.
"""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from marketplace.models.image import PropertyImage
from marketplace.models.property import ListingStatus, PropertyType
from marketplace.repositories.image import ImageRepository
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.repositories.user import UserRepository
from tests.conftest import TEST_PASSWORD, ImageFactory, PropertyFactory


class TestImageRepository:
    """Test ImageRepository ordering and cover operations."""

    @pytest.mark.asyncio
    async def test_gallery_order_cover_first(self, db_session, test_property):
        third = await ImageFactory.create_image(db_session, test_property, display_order=3)
        first = await ImageFactory.create_image(db_session, test_property, display_order=1)
        cover = await ImageFactory.create_image(db_session, test_property, display_order=2, is_cover=True)

        images = await ImageRepository(db_session).get_by_property_id(test_property.id)

        assert [image.id for image in images] == [cover.id, first.id, third.id]

    @pytest.mark.asyncio
    async def test_equal_display_order_keeps_insertion_order(self, db_session, test_property):
        a = await ImageFactory.create_image(db_session, test_property, display_order=0)
        b = await ImageFactory.create_image(db_session, test_property, display_order=0)

        images = await ImageRepository(db_session).get_by_property_id(test_property.id)

        assert [image.id for image in images] == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_next_display_order(self, db_session, test_property):
        repository = ImageRepository(db_session)
        assert await repository.next_display_order(test_property.id) == 1

        await ImageFactory.create_image(db_session, test_property, display_order=4)
        assert await repository.next_display_order(test_property.id) == 5

    @pytest.mark.asyncio
    async def test_second_cover_rejected_by_index(self, db_session, test_property):
        await ImageFactory.create_image(db_session, test_property, display_order=1, is_cover=True)

        db_session.add(PropertyImage(
            property_id=test_property.id,
            image_url="https://cdn.example.com/second.jpg",
            is_cover=True,
            display_order=2
        ))
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_negative_display_order_rejected(self, db_session, test_property):
        db_session.add(PropertyImage(
            property_id=test_property.id,
            image_url="https://cdn.example.com/neg.jpg",
            display_order=-1
        ))
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_set_cover_moves_flag(self, db_session, test_property):
        cover, other = await ImageFactory.create_gallery(db_session, test_property, 2)
        repository = ImageRepository(db_session)

        assert await repository.set_cover(test_property.id, other.id)
        await db_session.commit()

        images = await repository.get_by_property_id(test_property.id)
        assert [(image.id, image.is_cover) for image in images] == [(other.id, True), (cover.id, False)]

    @pytest.mark.asyncio
    async def test_promote_next_cover(self, db_session, test_property):
        later = await ImageFactory.create_image(db_session, test_property, display_order=5)
        earliest = await ImageFactory.create_image(db_session, test_property, display_order=2)
        repository = ImageRepository(db_session)

        promoted = await repository.promote_next_cover(test_property.id)
        await db_session.commit()

        assert promoted.id == earliest.id
        assert await repository.has_cover(test_property.id)
        images = await repository.get_by_property_id(test_property.id)
        assert [image.id for image in images] == [earliest.id, later.id]

    @pytest.mark.asyncio
    async def test_promote_without_images(self, db_session, test_property):
        assert await ImageRepository(db_session).promote_next_cover(test_property.id) is None

    @pytest.mark.asyncio
    async def test_lock_property(self, db_session, test_property, test_seller):
        repository = ImageRepository(db_session)

        row = await repository.lock_property(test_property.id)
        assert row.seller_id == test_seller.id
        assert await repository.lock_property(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_remove_many(self, db_session, test_property):
        images = await ImageFactory.create_gallery(db_session, test_property, 3)
        repository = ImageRepository(db_session)

        removed = await repository.remove_many([images[0].id, images[2].id])
        await db_session.commit()

        assert removed == 2
        references = await repository.get_all_references()
        assert [row.id for row in references] == [images[1].id]


class TestPropertyRepository:
    """Test PropertyRepository search and map queries."""

    @pytest.mark.asyncio
    async def test_search_by_text_and_type(self, db_session, test_seller):
        loft = await PropertyFactory.create_property(
            db_session, test_seller, title="Industrial loft", property_type=PropertyType.APARTMENT
        )
        await PropertyFactory.create_property(db_session, test_seller, title="Country cottage")

        properties, total = await PropertyRepository(db_session).search_properties(
            PropertySearchFilters(query="loft", property_type=PropertyType.APARTMENT)
        )

        assert total == 1
        assert properties[0].id == loft.id

    @pytest.mark.asyncio
    async def test_search_without_status_filter(self, db_session, test_seller):
        await PropertyFactory.create_property(db_session, test_seller)
        await PropertyFactory.create_property(db_session, test_seller, listing_status=ListingStatus.SOLD)
        repository = PropertyRepository(db_session)

        _, active_total = await repository.search_properties(PropertySearchFilters())
        _, all_total = await repository.search_properties(
            PropertySearchFilters(listing_status=None, seller_id=test_seller.id)
        )

        assert active_total == 1
        assert all_total == 2

    @pytest.mark.asyncio
    async def test_bounds_crossing_antimeridian(self, db_session, test_seller):
        fiji = await PropertyFactory.create_property(
            db_session, test_seller, latitude=Decimal("-17.7"), longitude=Decimal("178.1")
        )
        samoa = await PropertyFactory.create_property(
            db_session, test_seller, latitude=Decimal("-13.8"), longitude=Decimal("-171.8")
        )
        await PropertyFactory.create_property(
            db_session, test_seller, latitude=Decimal("-15.0"), longitude=Decimal("100.0")
        )

        properties = await PropertyRepository(db_session).get_in_bounds(
            north=Decimal("0"), south=Decimal("-30"), east=Decimal("-170"), west=Decimal("170")
        )

        assert {p.id for p in properties} == {fiji.id, samoa.id}

    @pytest.mark.asyncio
    async def test_existing_feature_ids(self, db_session, test_features):
        known = test_features[0].id
        existing = await PropertyRepository(db_session).get_existing_feature_ids([known, uuid.uuid4()])
        assert existing == [known]


class TestUserRepository:
    """Test UserRepository creation and lookups."""

    @pytest.mark.asyncio
    async def test_create_user_hashes_password(self, db_session):
        user = await UserRepository(db_session).create_user({
            "email": "Fresh@Example.com",
            "password": TEST_PASSWORD,
            "full_name": "Fresh User"
        })

        assert user.email == "fresh@example.com"
        assert user.hashed_password != TEST_PASSWORD
        assert user.created_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, db_session, test_seller):
        with pytest.raises(ValueError):
            await UserRepository(db_session).create_user({
                "email": test_seller.email.upper(),
                "password": TEST_PASSWORD,
                "full_name": "Duplicate"
            })

    @pytest.mark.asyncio
    async def test_get_by_email_case_insensitive(self, db_session, test_seller):
        user = await UserRepository(db_session).get_by_email("SELLER@example.com")
        assert user.id == test_seller.id

    @pytest.mark.asyncio
    async def test_authenticate_user(self, db_session, test_seller, test_inactive_user):
        repository = UserRepository(db_session)

        assert (await repository.authenticate_user(test_seller.email, TEST_PASSWORD)).id == test_seller.id
        assert await repository.authenticate_user(test_seller.email, "wrong-password") is None
        assert await repository.authenticate_user(test_inactive_user.email, TEST_PASSWORD) is None

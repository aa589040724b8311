"""
Endpoint tests for property images: upload, listing, batch update, cover selection and deletion.
"""

import uuid
from pathlib import Path

import pytest
from fastapi import Depends
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_db
from marketplace.main import app
from marketplace.models.property import Property
from marketplace.models.user import User
from marketplace.repositories.image import ImageRepository
from marketplace.services.image import ImageService
from marketplace.services.storage import ImageStorage
from marketplace.utils.dependencies import get_image_service
from marketplace.utils.exceptions import StorageError
from tests.conftest import ImageFactory, PropertyFactory, auth_headers, create_test_image

API = "/api/v1/images"


async def get_gallery(client: AsyncClient, property_id) -> list:
    response = await client.get(f"{API}/{property_id}")
    assert response.status_code == 200
    return response.json()["images"]


def cover_ids(images: list) -> list:
    return [image["id"] for image in images if image["is_cover"]]


def png_files(count: int, prefix: str = "photo") -> list:
    return [("images", (f"{prefix}{i}.png", create_test_image(), "image/png")) for i in range(1, count + 1)]


class TestImageUpload:
    """Test POST /images/upload."""

    @pytest.mark.asyncio
    async def test_upload_three_images_to_empty_property(
        self, async_client: AsyncClient, test_property: Property, test_seller: User, test_settings
    ):
        """The first upload of a batch becomes the cover; orders start at 1."""
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(3),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["count"] == 3
        assert data["skipped"] == []
        assert [image["display_order"] for image in data["images"]] == [1, 2, 3]
        assert [image["is_cover"] for image in data["images"]] == [True, False, False]
        assert data["uploadPath"].startswith(
            f"real-estate-assets/users/{test_seller.id}/properties/{test_property.id}/"
        )

        first = data["images"][0]
        assert first["mime_type"] == "image/png"
        assert first["original_filename"] == "photo1.png"
        assert (first["width"], first["height"]) == (40, 30)
        assert first["image_url"].startswith("/uploads/real-estate-assets/")

        stored = Path(test_settings.upload_dir) / first["image_url"][len("/uploads/"):]
        assert stored.is_file()

        gallery = await get_gallery(async_client, test_property.id)
        assert len(cover_ids(gallery)) == 1

    @pytest.mark.asyncio
    async def test_upload_accepts_camel_case_property_id(
        self, async_client: AsyncClient, test_property: Property, test_seller: User
    ):
        response = await async_client.post(
            f"{API}/upload",
            data={"propertyId": str(test_property.id)},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_upload_appends_after_existing_gallery(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        existing = await ImageFactory.create_gallery(db_session, test_property, 2)

        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 201
        uploaded = response.json()["images"][0]
        assert uploaded["display_order"] == 3
        assert uploaded["is_cover"] is False

        gallery = await get_gallery(async_client, test_property.id)
        assert cover_ids(gallery) == [existing[0].id]

    @pytest.mark.asyncio
    async def test_upload_skips_invalid_files(
        self, async_client: AsyncClient, test_property: Property, test_seller: User
    ):
        files = png_files(1) + [("images", ("notes.txt", b"plain text", "text/plain"))]

        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=files,
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["count"] == 1
        assert data["skipped"][0]["filename"] == "notes.txt"
        assert "not an image" in data["skipped"][0]["reason"]

    @pytest.mark.asyncio
    async def test_upload_skips_oversized_file(
        self, async_client: AsyncClient, test_property: Property, test_seller: User, test_settings
    ):
        oversized = b"\x89PNG" + b"0" * test_settings.max_file_size
        files = png_files(1) + [("images", ("huge.png", oversized, "image/png"))]

        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=files,
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 201
        assert response.json()["skipped"][0]["filename"] == "huge.png"
        assert "exceeds maximum" in response.json()["skipped"][0]["reason"]

    @pytest.mark.asyncio
    async def test_upload_all_files_invalid(
        self, async_client: AsyncClient, test_property: Property, test_seller: User
    ):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=[("images", ("a.pdf", b"%PDF-1.4", "application/pdf"))],
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "a.pdf"

        assert await get_gallery(async_client, test_property.id) == []

    @pytest.mark.asyncio
    async def test_upload_without_files(self, async_client: AsyncClient, test_property: Property, test_seller: User):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            headers=auth_headers(test_seller)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_without_property_id(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.post(f"{API}/upload", files=png_files(1), headers=auth_headers(test_seller))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_upload_with_malformed_property_id(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": "not-a-uuid"},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_to_unknown_property(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(uuid.uuid4())},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_upload_to_someone_elses_property(
        self, async_client: AsyncClient, test_property: Property, other_seller: User
    ):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(1),
            headers=auth_headers(other_seller)
        )

        assert response.status_code == 403
        assert await get_gallery(async_client, test_property.id) == []

    @pytest.mark.asyncio
    async def test_upload_with_mismatched_seller_id(
        self, async_client: AsyncClient, test_property: Property, test_seller: User, other_seller: User
    ):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id), "seller_id": str(other_seller.id)},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_upload(self, async_client: AsyncClient, test_property: Property, test_admin: User):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(1),
            headers=auth_headers(test_admin)
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_upload_requires_authentication(self, async_client: AsyncClient, test_property: Property):
        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(1)
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_blob_backend_without_token(
        self, async_client: AsyncClient, test_property: Property, test_seller: User, test_settings
    ):
        test_settings.storage_backend = "blob"

        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


class TestImageListing:
    """Test GET /images/{propertyId}."""

    @pytest.mark.asyncio
    async def test_cover_first_then_display_order(
        self, async_client: AsyncClient, db_session, test_property: Property
    ):
        second = await ImageFactory.create_image(db_session, test_property, display_order=2)
        cover = await ImageFactory.create_image(db_session, test_property, display_order=3, is_cover=True)
        first = await ImageFactory.create_image(db_session, test_property, display_order=1)

        response = await async_client.get(f"{API}/{test_property.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["property_id"] == str(test_property.id)
        assert data["count"] == 3
        assert [image["id"] for image in data["images"]] == [cover.id, first.id, second.id]

    @pytest.mark.asyncio
    async def test_absolute_urls_returned_unchanged(
        self, async_client: AsyncClient, db_session, test_property: Property
    ):
        image = await ImageFactory.create_image(
            db_session, test_property, is_cover=True, image_url="https://cdn.example.com/house.jpg"
        )

        gallery = await get_gallery(async_client, test_property.id)
        assert gallery[0]["id"] == image.id
        assert gallery[0]["image_url"] == "https://cdn.example.com/house.jpg"

    @pytest.mark.asyncio
    async def test_unresolvable_blob_keeps_stored_reference(
        self, async_client: AsyncClient, db_session, test_property: Property
    ):
        await ImageFactory.create_image(
            db_session, test_property, is_cover=True, image_url="blob://real-estate-assets/gone.jpg"
        )

        gallery = await get_gallery(async_client, test_property.id)
        assert gallery[0]["image_url"] == "blob://real-estate-assets/gone.jpg"

    @pytest.mark.asyncio
    async def test_unknown_property_gives_empty_gallery(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/{uuid.uuid4()}")

        assert response.status_code == 200
        assert response.json()["count"] == 0
        assert response.json()["images"] == []

    @pytest.mark.asyncio
    async def test_malformed_property_id(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/12345")
        assert response.status_code == 400


class TestImageBatchUpdate:
    """Test PUT /images/update."""

    @pytest.mark.asyncio
    async def test_new_cover_clears_previous_cover(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        """Making one image the cover clears the old cover in the same transaction."""
        old_cover = await ImageFactory.create_image(db_session, test_property, display_order=1, is_cover=True)
        new_cover = await ImageFactory.create_image(db_session, test_property, display_order=2)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [{"imageId": new_cover.id, "is_cover": True}]},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert response.json()["updated_count"] == 1

        gallery = await get_gallery(async_client, test_property.id)
        assert cover_ids(gallery) == [new_cover.id]
        assert gallery[1]["id"] == old_cover.id

    @pytest.mark.asyncio
    async def test_uncovering_the_cover_promotes_next_image(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        """Clearing the only cover hands it to the next image instead of leaving none."""
        cover = await ImageFactory.create_image(db_session, test_property, display_order=1, is_cover=True)
        other = await ImageFactory.create_image(db_session, test_property, display_order=2)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [{"imageId": cover.id, "is_cover": False}]},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        gallery = await get_gallery(async_client, test_property.id)
        assert cover_ids(gallery) == [other.id]

    @pytest.mark.asyncio
    async def test_uncovering_the_only_image_keeps_it_as_cover(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        only, = await ImageFactory.create_gallery(db_session, test_property, 1)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [{"imageId": only.id, "is_cover": False}]},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert cover_ids(await get_gallery(async_client, test_property.id)) == [only.id]

    @pytest.mark.asyncio
    async def test_reorder_images(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        cover, second, third = await ImageFactory.create_gallery(db_session, test_property, 3)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [
                {"imageId": second.id, "display_order": 3},
                {"imageId": third.id, "display_order": 2},
            ]},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        gallery = await get_gallery(async_client, test_property.id)
        assert [image["id"] for image in gallery] == [cover.id, third.id, second.id]

    @pytest.mark.asyncio
    async def test_entries_without_image_id_are_ignored(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        await ImageFactory.create_gallery(db_session, test_property, 1)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [{"display_order": 4}]},
            headers=auth_headers(test_seller)
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_image_rolls_back_whole_batch(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        cover, second = await ImageFactory.create_gallery(db_session, test_property, 2)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [
                {"imageId": second.id, "is_cover": True, "display_order": 7},
                {"imageId": 999999, "display_order": 1},
            ]},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 404
        gallery = await get_gallery(async_client, test_property.id)
        assert cover_ids(gallery) == [cover.id]
        assert gallery[1]["display_order"] == 2

    @pytest.mark.asyncio
    async def test_negative_display_order_rejected(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        cover, = await ImageFactory.create_gallery(db_session, test_property, 1)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [{"imageId": cover.id, "display_order": -1}]},
            headers=auth_headers(test_seller)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_other_sellers_images(
        self, async_client: AsyncClient, db_session, test_property: Property, other_seller: User
    ):
        cover, second = await ImageFactory.create_gallery(db_session, test_property, 2)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [{"imageId": second.id, "is_cover": True}]},
            headers=auth_headers(other_seller)
        )

        assert response.status_code == 403
        assert cover_ids(await get_gallery(async_client, test_property.id)) == [cover.id]


class TestSetCover:
    """Test POST /images/set-cover."""

    @pytest.mark.asyncio
    async def test_set_cover(self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User):
        cover, second, third = await ImageFactory.create_gallery(db_session, test_property, 3)

        response = await async_client.post(
            f"{API}/set-cover",
            json={"imageId": third.id, "propertyId": str(test_property.id)},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "imageId": third.id, "propertyId": str(test_property.id)}

        gallery = await get_gallery(async_client, test_property.id)
        assert [image["id"] for image in gallery] == [third.id, cover.id, second.id]
        assert cover_ids(gallery) == [third.id]

    @pytest.mark.asyncio
    async def test_set_cover_with_wrong_property(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        other_property = await PropertyFactory.create_property(db_session, test_seller, title="Second house")
        image = await ImageFactory.create_image(db_session, other_property, is_cover=True)

        response = await async_client.post(
            f"{API}/set-cover",
            json={"imageId": image.id, "propertyId": str(test_property.id)},
            headers=auth_headers(test_seller)
        )
        assert response.status_code == 404


class TestImageDeletion:
    """Test DELETE /images/delete."""

    @pytest.mark.asyncio
    async def test_deleting_cover_promotes_next_image(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        cover, second, third = await ImageFactory.create_gallery(db_session, test_property, 3)

        response = await async_client.delete(
            f"{API}/delete", params={"imageId": cover.id}, headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert response.json()["deleted_id"] == cover.id

        gallery = await get_gallery(async_client, test_property.id)
        assert [image["id"] for image in gallery] == [second.id, third.id]
        assert cover_ids(gallery) == [second.id]

    @pytest.mark.asyncio
    async def test_promotion_uses_lowest_display_order(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        cover = await ImageFactory.create_image(db_session, test_property, display_order=1, is_cover=True)
        late = await ImageFactory.create_image(db_session, test_property, display_order=9)
        early = await ImageFactory.create_image(db_session, test_property, display_order=4)

        await async_client.delete(f"{API}/delete", params={"imageId": cover.id}, headers=auth_headers(test_seller))

        gallery = await get_gallery(async_client, test_property.id)
        assert cover_ids(gallery) == [early.id]
        assert [image["id"] for image in gallery] == [early.id, late.id]

    @pytest.mark.asyncio
    async def test_deleting_non_cover_keeps_cover(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        cover, second = await ImageFactory.create_gallery(db_session, test_property, 2)

        response = await async_client.delete(
            f"{API}/delete", params={"imageId": second.id}, headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert cover_ids(await get_gallery(async_client, test_property.id)) == [cover.id]

    @pytest.mark.asyncio
    async def test_deleting_only_image_leaves_no_cover(
        self, async_client: AsyncClient, db_session, test_property: Property, test_seller: User
    ):
        only, = await ImageFactory.create_gallery(db_session, test_property, 1)

        response = await async_client.delete(
            f"{API}/delete", params={"imageId": only.id}, headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert await get_gallery(async_client, test_property.id) == []

    @pytest.mark.asyncio
    async def test_delete_removes_stored_file(
        self, async_client: AsyncClient, test_property: Property, test_seller: User, test_settings
    ):
        upload = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )
        image = upload.json()["images"][0]
        stored = Path(test_settings.upload_dir) / image["image_url"][len("/uploads/"):]
        assert stored.is_file()

        response = await async_client.delete(
            f"{API}/delete", params={"imageId": image["id"]}, headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_delete_without_image_id(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.delete(f"{API}/delete", headers=auth_headers(test_seller))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_with_non_numeric_id(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.delete(
            f"{API}/delete", params={"imageId": "abc"}, headers=auth_headers(test_seller)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_unknown_image(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.delete(
            f"{API}/delete", params={"imageId": 424242}, headers=auth_headers(test_seller)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_other_sellers_image(
        self, async_client: AsyncClient, db_session, test_property: Property, other_seller: User
    ):
        cover, = await ImageFactory.create_gallery(db_session, test_property, 1)

        response = await async_client.delete(
            f"{API}/delete", params={"imageId": cover.id}, headers=auth_headers(other_seller)
        )

        assert response.status_code == 403
        assert len(await get_gallery(async_client, test_property.id)) == 1


class FailingStorage(ImageStorage):
    """Local storage that refuses chosen writes and, optionally, every delete."""

    def __init__(self, settings, failing_saves=(), fail_removal: bool = False):
        super().__init__(settings)
        self.failing_saves = set(failing_saves)
        self.fail_removal = fail_removal
        self.save_calls = 0

    async def save(self, key: str, content: bytes, content_type: str) -> str:
        self.save_calls += 1
        if self.save_calls in self.failing_saves:
            raise StorageError("Disk full", reference=key)
        return await super().save(key, content, content_type)

    async def remove(self, reference: str) -> bool:
        if self.fail_removal:
            raise StorageError("Permission denied", reference=reference)
        return await super().remove(reference)


@pytest.fixture
def use_storage(async_client: AsyncClient, test_settings):
    """Serve image requests through the given storage for the rest of the test."""
    def install(storage: ImageStorage) -> None:
        async def override(db: AsyncSession = Depends(get_db)) -> ImageService:
            return ImageService(db, test_settings, storage=storage)

        app.dependency_overrides[get_image_service] = override

    return install


def unique_cover_violation() -> IntegrityError:
    return IntegrityError(
        "UPDATE property_images", {}, Exception("UNIQUE constraint failed: property_images.property_id")
    )


class TestStorageAndDatabaseFailures:
    """Failures of the storage backend or the database mid-request."""

    @pytest.mark.asyncio
    async def test_upload_skips_file_the_backend_refuses(
        self, async_client: AsyncClient, use_storage, test_property: Property, test_seller: User, test_settings
    ):
        use_storage(FailingStorage(test_settings, failing_saves={2}))

        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(3),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["count"] == 2
        assert [image["original_filename"] for image in data["images"]] == ["photo1.png", "photo3.png"]
        assert data["skipped"] == [{"filename": "photo2.png", "reason": "Failed to store file"}]
        assert len(cover_ids(await get_gallery(async_client, test_property.id))) == 1

    @pytest.mark.asyncio
    async def test_upload_fails_when_backend_refuses_every_file(
        self, async_client: AsyncClient, use_storage, test_property: Property, test_seller: User, test_settings
    ):
        use_storage(FailingStorage(test_settings, failing_saves={1, 2}))

        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(2),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 500
        assert await get_gallery(async_client, test_property.id) == []

    @pytest.mark.asyncio
    async def test_delete_succeeds_when_stored_object_cannot_be_removed(
        self, async_client: AsyncClient, use_storage, db_session, test_property: Property,
        test_seller: User, test_settings
    ):
        cover, second = await ImageFactory.create_gallery(db_session, test_property, 2)
        use_storage(FailingStorage(test_settings, fail_removal=True))

        response = await async_client.delete(
            f"{API}/delete", params={"imageId": cover.id}, headers=auth_headers(test_seller)
        )

        assert response.status_code == 200
        assert response.json()["deleted_id"] == cover.id
        gallery = await get_gallery(async_client, test_property.id)
        assert [image["id"] for image in gallery] == [second.id]
        assert cover_ids(gallery) == [second.id]

    @pytest.mark.asyncio
    async def test_upload_cover_conflict(
        self, async_client: AsyncClient, monkeypatch, test_property: Property, test_seller: User, test_settings
    ):
        async def add(self, fields):
            raise unique_cover_violation()

        monkeypatch.setattr(ImageRepository, "add", add)

        response = await async_client.post(
            f"{API}/upload",
            data={"property_id": str(test_property.id)},
            files=png_files(1),
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"
        # The file written before the insert failed is cleaned up
        assert list(Path(test_settings.upload_dir).rglob("*.png")) == []

    @pytest.mark.asyncio
    async def test_batch_update_cover_conflict(
        self, async_client: AsyncClient, monkeypatch, db_session, test_property: Property, test_seller: User
    ):
        cover, second = await ImageFactory.create_gallery(db_session, test_property, 2)

        async def update_fields(self, image_id, values):
            raise unique_cover_violation()

        monkeypatch.setattr(ImageRepository, "update_fields", update_fields)

        response = await async_client.put(
            f"{API}/update",
            json={"images": [{"imageId": second.id, "is_cover": True}]},
            headers=auth_headers(test_seller)
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"
        assert cover_ids(await get_gallery(async_client, test_property.id)) == [cover.id]

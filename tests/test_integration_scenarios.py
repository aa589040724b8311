"""
End-to-end workflows through the HTTP API.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import create_test_image

API = "/api/v1"


async def register(client: AsyncClient, email: str, role: str) -> dict:
    response = await client.post(f"{API}/auth/register", json={
        "email": email,
        "password": "workflowpass1",
        "full_name": email.split("@")[0].title(),
        "role": role
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class TestListingWorkflow:
    """A seller builds a listing gallery and a buyer finds it."""

    @pytest.mark.asyncio
    async def test_seller_gallery_and_buyer_favorite(self, async_client: AsyncClient):
        seller = await register(async_client, "workflow.seller@example.com", "seller")
        buyer = await register(async_client, "workflow.buyer@example.com", "buyer")

        created = await async_client.post(f"{API}/properties", headers=seller, json={
            "title": "Harbour view apartment",
            "description": "Two bedroom apartment overlooking the harbour",
            "price": "310000",
            "address": "1 Quay Street",
            "city": "Portside",
            "country": "USA",
            "property_type": "apartment",
            "area": 90,
            "rooms": 2,
            "latitude": "41.5",
            "longitude": "-70.6"
        })
        assert created.status_code == 201
        property_id = created.json()["id"]

        upload = await async_client.post(
            f"{API}/images/upload",
            headers=seller,
            data={"property_id": property_id},
            files=[
                ("images", (f"photo{i}.png", create_test_image(20 + i, 20), "image/png"))
                for i in range(3)
            ]
        )
        assert upload.status_code == 201
        first, second, third = [image["id"] for image in upload.json()["images"]]

        # Move the last photo to the front and make it the cover
        reorder = await async_client.put(f"{API}/images/update", headers=seller, json={"images": [
            {"imageId": third, "display_order": 0, "is_cover": True},
            {"imageId": first, "display_order": 1},
            {"imageId": second, "display_order": 2},
        ]})
        assert reorder.status_code == 200

        gallery = (await async_client.get(f"{API}/images/{property_id}")).json()
        assert [image["id"] for image in gallery["images"]] == [third, first, second]
        assert [image["is_cover"] for image in gallery["images"]] == [True, False, False]

        removed = await async_client.delete(f"{API}/images/delete", headers=seller, params={"imageId": third})
        assert removed.status_code == 200

        detail = (await async_client.get(f"{API}/properties/{property_id}")).json()
        assert [image["id"] for image in detail["images"]] == [first, second]
        assert detail["images"][0]["is_cover"] is True
        assert detail["cover_image_url"] == detail["images"][0]["image_url"]

        search = (await async_client.get(f"{API}/properties", params={"city": "Portside"})).json()
        assert search["total"] == 1
        assert search["properties"][0]["cover_image_url"] == detail["cover_image_url"]

        markers = (await async_client.get(
            f"{API}/properties/map", params={"north": 42, "south": 41, "east": -70, "west": -71}
        )).json()
        assert [marker["id"] for marker in markers["markers"]] == [property_id]

        saved = await async_client.post(f"{API}/favorites/{property_id}", headers=buyer)
        assert saved.status_code == 201
        favorites = (await async_client.get(f"{API}/favorites", headers=buyer)).json()
        assert favorites["saved"][0]["property"]["id"] == property_id

        # Buyers cannot touch the gallery
        forbidden = await async_client.delete(f"{API}/images/delete", headers=buyer, params={"imageId": first})
        assert forbidden.status_code == 403

        deleted = await async_client.delete(f"{API}/properties/{property_id}", headers=seller)
        assert deleted.status_code == 204
        assert (await async_client.get(f"{API}/favorites", headers=buyer)).json()["count"] == 0

    @pytest.mark.asyncio
    async def test_unpublished_listing_stays_private(self, async_client: AsyncClient):
        seller = await register(async_client, "draft.seller@example.com", "seller")

        created = await async_client.post(f"{API}/properties", headers=seller, json={
            "title": "Work in progress",
            "description": "Listing that is not published yet",
            "price": "99000",
            "address": "3 Side Lane",
            "city": "Portside",
            "country": "USA",
            "property_type": "land",
            "area": 500,
            "listing_status": "draft"
        })
        property_id = created.json()["id"]

        assert (await async_client.get(f"{API}/properties/{property_id}")).status_code == 404
        assert (await async_client.get(f"{API}/properties")).json()["total"] == 0
        assert (await async_client.get(f"{API}/properties", params={"listing_status": "draft"})).json()["total"] == 0
        own_drafts = await async_client.get(f"{API}/properties", headers=seller, params={"listing_status": "draft"})
        assert own_drafts.json()["total"] == 1

        published = await async_client.put(
            f"{API}/properties/{property_id}", headers=seller, json={"listing_status": "active"}
        )
        assert published.status_code == 200
        assert (await async_client.get(f"{API}/properties/{property_id}")).status_code == 200

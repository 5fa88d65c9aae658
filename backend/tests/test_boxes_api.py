"""
BoxIT Backend — Box API Tests
==============================

What we test:
    QR codes are unique URL-safe identifiers assigned at creation
    listing and search across box names and item text
    rename, delete with item images, cross-user 404s
    the QR image endpoint encodes {origin}/box/{qr_code}
"""

import base64
import re
import uuid
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

QR_PATTERN = re.compile(r"^[A-Za-z0-9_-]{10}$")


class TestBoxCreation:

    @pytest.mark.asyncio
    async def test_box_gets_unique_qr_code(self, alice, api):
        room = await api.create_room(alice)

        boxes = [await api.create_box(alice, room["id"], f"Box {n}") for n in range(5)]

        codes = [box["qr_code"] for box in boxes]
        assert all(QR_PATTERN.match(code) for code in codes)
        assert len(set(codes)) == len(codes)

    @pytest.mark.asyncio
    async def test_unknown_room(self, client, alice):
        response = await client.post(
            "/api/boxes", json={"name": "Orphan", "storage_room_id": str(uuid.uuid4())}, headers=alice
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_name(self, client, alice, api):
        room = await api.create_room(alice)

        response = await client.post(
            "/api/boxes", json={"storage_room_id": room["id"]}, headers=alice
        )

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"


class TestBoxListing:

    @pytest.mark.asyncio
    async def test_search_matches_box_name_and_item_text(self, client, alice, api):
        room = await api.create_room(alice)
        tools = await api.create_box(alice, room["id"], "Tools")
        xmas = await api.create_box(alice, room["id"], "Holiday Decorations")
        await api.create_item(alice, tools["id"], "Drill", description="DeWalt cordless")
        await api.create_item(alice, xmas["id"], "Wreath")

        by_item = await client.get("/api/boxes", params={"search": "dewalt"}, headers=alice)
        by_name = await client.get("/api/boxes", params={"search": "HOLIDAY"}, headers=alice)
        everything = await client.get("/api/boxes", headers=alice)

        assert [b["name"] for b in by_item.json()["boxes"]] == ["Tools"]
        assert [b["name"] for b in by_name.json()["boxes"]] == ["Holiday Decorations"]
        assert len(everything.json()["boxes"]) == 2

    @pytest.mark.asyncio
    async def test_listing_is_per_user(self, client, alice, bob, api):
        room = await api.create_room(alice)
        await api.create_box(alice, room["id"], "Tools")

        response = await client.get("/api/boxes", headers=bob)

        assert response.json()["boxes"] == []


class TestBoxMutations:

    @pytest.mark.asyncio
    async def test_rename_keeps_qr_code(self, client, alice, api):
        room = await api.create_room(alice)
        box = await api.create_box(alice, room["id"], "Tools")

        response = await client.patch(f"/api/boxes/{box['id']}", json={"name": "Power Tools"}, headers=alice)

        assert response.status_code == 200
        assert response.json()["name"] == "Power Tools"
        assert response.json()["qr_code"] == box["qr_code"]

    @pytest.mark.asyncio
    async def test_other_user_gets_404_everywhere(self, client, alice, bob, api):
        room = await api.create_room(alice)
        box = await api.create_box(alice, room["id"], "Tools")

        assert (await client.get(f"/api/boxes/{box['id']}", headers=bob)).status_code == 404
        assert (
            await client.patch(f"/api/boxes/{box['id']}", json={"name": "x"}, headers=bob)
        ).status_code == 404
        assert (await client.delete(f"/api/boxes/{box['id']}", headers=bob)).status_code == 404
        assert (await client.get(f"/api/boxes/{box['id']}/qr", headers=bob)).status_code == 404
        assert (await client.get(f"/api/boxes/{box['id']}", headers=alice)).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_removes_items_and_images(self, client, alice, api, png_bytes, test_settings):
        room = await api.create_room(alice)
        box = await api.create_box(alice, room["id"], "Tools")
        item = await api.create_item(alice, box["id"], "Drill", image=png_bytes)
        image_file = Path(test_settings.storage_root) / item["image_url"][len("/api/files/"):]

        response = await client.delete(f"/api/boxes/{box['id']}", headers=alice)

        assert response.status_code == 204
        assert (await client.get(f"/api/items/{item['id']}", headers=alice)).status_code == 404
        assert (await client.get(f"/api/public/boxes/{box['qr_code']}")).status_code == 404
        assert not image_file.exists()
        room_after = await client.get(f"/api/storage-rooms/{room['id']}", headers=alice)
        assert room_after.json()["box_count"] == 0


class TestBoxQR:

    @pytest.mark.asyncio
    async def test_qr_uses_origin_header(self, client, alice, api):
        room = await api.create_room(alice)
        box = await api.create_box(alice, room["id"], "Tools")

        response = await client.get(
            f"/api/boxes/{box['id']}/qr", headers={**alice, "Origin": "https://home.example"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["qr_code"] == box["qr_code"]
        assert body["url"] == f"https://home.example/box/{box['qr_code']}"
        prefix = "data:image/png;base64,"
        assert body["qr_code_image"].startswith(prefix)
        image = Image.open(BytesIO(base64.b64decode(body["qr_code_image"][len(prefix):])))
        assert image.format == "PNG"
        assert image.size == (500, 500)

    @pytest.mark.asyncio
    async def test_qr_falls_back_to_public_base_url(self, client, alice, api):
        room = await api.create_room(alice)
        box = await api.create_box(alice, room["id"], "Tools")

        response = await client.get(f"/api/boxes/{box['id']}/qr", headers=alice)

        assert response.json()["url"] == f"http://boxit.test/box/{box['qr_code']}"

"""
BoxIT Backend — Search API Tests
=================================

What we test:
    items match on name, description, category and label names
    boxes and rooms match on name
    results never include another user's inventory
    blank queries and LIKE wildcards
"""

import pytest


@pytest.fixture
def names():
    def _names(hits):
        return sorted(hit["name"] for hit in hits)
    return _names


class TestSearch:

    @pytest.mark.asyncio
    async def test_matches_across_fields(self, client, alice, api, names):
        garage = await api.create_room(alice, "Garage")
        tools = await api.create_box(alice, garage["id"], "Tools")
        kitchen = await api.create_room(alice, "Kitchen")
        pans = await api.create_box(alice, kitchen["id"], "Pots & Pans")
        await api.create_item(alice, tools["id"], "Drill", description="DeWalt cordless")
        await api.create_item(alice, pans["id"], "Skillet", labels=["Heavy"])
        await api.create_item(alice, pans["id"], "Stock pot")

        by_description = await client.get("/api/search", params={"q": "dewalt"}, headers=alice)
        by_label = await client.get("/api/search", params={"q": "heav"}, headers=alice)
        by_box_and_item = await client.get("/api/search", params={"q": "pot"}, headers=alice)
        by_room = await client.get("/api/search", params={"q": "GARAGE"}, headers=alice)

        assert names(by_description.json()["items"]) == ["Drill"]
        hit = by_description.json()["items"][0]
        assert hit["box_name"] == "Tools"
        assert hit["storage_room_name"] == "Garage"
        assert names(by_label.json()["items"]) == ["Skillet"]
        assert names(by_box_and_item.json()["items"]) == ["Stock pot"]
        assert names(by_box_and_item.json()["boxes"]) == ["Pots & Pans"]
        assert names(by_room.json()["storage_rooms"]) == ["Garage"]
        assert by_room.json()["storage_rooms"][0]["box_count"] == 1

    @pytest.mark.asyncio
    async def test_other_users_inventory_is_invisible(self, client, alice, bob, api):
        room = await api.create_room(alice, "Garage")
        box = await api.create_box(alice, room["id"], "Tools")
        await api.create_item(alice, box["id"], "Drill", labels=["Heavy"])

        response = await client.get("/api/search", params={"q": "dr"}, headers=bob)
        label_hit = await client.get("/api/search", params={"q": "heavy"}, headers=bob)

        assert response.json() == {"items": [], "boxes": [], "storage_rooms": []}
        assert label_hit.json()["items"] == []

    @pytest.mark.asyncio
    async def test_blank_query_returns_nothing(self, client, alice, api):
        await api.create_room(alice, "Garage")

        response = await client.get("/api/search", params={"q": "   "}, headers=alice)

        assert response.status_code == 200
        assert response.json() == {"items": [], "boxes": [], "storage_rooms": []}

    @pytest.mark.asyncio
    async def test_wildcards_match_literally(self, client, alice, api, names):
        room = await api.create_room(alice, "Garage")
        box = await api.create_box(alice, room["id"], "Tools")
        await api.create_item(alice, box["id"], "100% cotton sheets")
        await api.create_item(alice, box["id"], "Drill")

        percent = await client.get("/api/search", params={"q": "%"}, headers=alice)
        underscore = await client.get("/api/search", params={"q": "_"}, headers=alice)

        assert names(percent.json()["items"]) == ["100% cotton sheets"]
        assert underscore.json()["items"] == []

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.get("/api/search", params={"q": "drill"})

        assert response.status_code == 401

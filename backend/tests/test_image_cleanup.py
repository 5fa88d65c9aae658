"""
BoxIT Backend — Image Cleanup Tests
====================================

What we test:
    a storage backend that cannot delete never fails an update or delete
    superseded images are deleted only after the transaction commits
    a failed metadata write removes the image uploaded for it

API tests here run against an app whose storage refuses every delete.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from boxit.database import Database, get_db_session, run_after_commit
from boxit.exceptions import UpstreamServiceError
from boxit.main import create_app
from boxit.models import Item, User
from boxit.schemas.inventory import ItemForm
from boxit.services.image_service import ImageUpload
from boxit.services.item_service import ItemService
from boxit.services.local_storage import LocalImageStorage
from boxit.services.storage_base import ImageStorage


class UndeletableStorage(LocalImageStorage):
    """Local storage whose deletes always fail, as during a remote outage."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.delete_attempts = []

    async def delete(self, reference: str) -> None:
        self.delete_attempts.append(reference)
        raise UpstreamServiceError(service="storage")


@pytest.fixture
def undeletable(test_settings) -> UndeletableStorage:
    return UndeletableStorage(test_settings.storage_root)


@pytest_asyncio.fixture
async def app(test_settings, email_outbox, undeletable):
    application = create_app(test_settings, email_sender=email_outbox, storage=undeletable)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def box(alice, api):
    room = await api.create_room(alice, "Garage")
    return await api.create_box(alice, room["id"], "Tools")


class TestFailingRemoteDelete:

    @pytest.mark.asyncio
    async def test_image_replacement_succeeds(self, client, alice, api, box, png_bytes, png_factory, undeletable):
        item = await api.create_item(alice, box["id"], "Drill", image=png_bytes)

        response = await client.patch(
            f"/api/items/{item['id']}",
            data={"name": "Drill"},
            files={"image": ("new.png", png_factory(color="green"), "image/png")},
            headers=alice,
        )

        assert response.status_code == 200
        assert response.json()["item"]["image_url"] != item["image_url"]
        assert undeletable.delete_attempts == [item["image_url"]]

    @pytest.mark.asyncio
    async def test_item_delete_succeeds(self, client, alice, api, box, png_bytes, undeletable):
        item = await api.create_item(alice, box["id"], "Drill", image=png_bytes)

        response = await client.delete(f"/api/items/{item['id']}", headers=alice)

        assert response.status_code == 204
        assert undeletable.delete_attempts == [item["image_url"]]
        assert (await client.get(f"/api/items/{item['id']}", headers=alice)).status_code == 404

    @pytest.mark.asyncio
    async def test_room_delete_succeeds(self, client, alice, api, png_bytes, undeletable):
        room = await api.create_room(alice, "Attic")
        box = await api.create_box(alice, room["id"], "Decorations")
        first = await api.create_item(alice, box["id"], "Lights", image=png_bytes)
        second = await api.create_item(alice, box["id"], "Wreath", image=png_bytes)

        response = await client.delete(f"/api/storage-rooms/{room['id']}", headers=alice)

        assert response.status_code == 204
        assert sorted(undeletable.delete_attempts) == sorted([first["image_url"], second["image_url"]])


class TestAfterCommit:

    @pytest_asyncio.fixture
    async def database(self, test_settings):
        db = Database.from_settings(test_settings)
        await db.create_all()
        yield db
        await db.dispose()

    def request_for(self, database):
        return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(database=database)))

    @pytest.mark.asyncio
    async def test_callbacks_run_once_committed(self, database):
        seen = []
        sessions = get_db_session(self.request_for(database))
        session = await sessions.__anext__()
        session.add(User(email="frank@example.com", password_hash="x"))

        async def check_committed():
            async with database.session_factory() as other:
                seen.append(await other.scalar(select(User.email)))

        run_after_commit(session, check_committed)
        assert seen == []

        with pytest.raises(StopAsyncIteration):
            await sessions.__anext__()

        assert seen == ["frank@example.com"]

    @pytest.mark.asyncio
    async def test_callbacks_dropped_on_rollback(self, database):
        seen = []
        sessions = get_db_session(self.request_for(database))
        session = await sessions.__anext__()

        async def record():
            seen.append("ran")

        run_after_commit(session, record)
        with pytest.raises(RuntimeError):
            await sessions.athrow(RuntimeError("handler failed"))

        assert seen == []


class TestCompensatingDelete:

    def setup_method(self):
        self.service = ItemService()
        self.storage = AsyncMock(spec=ImageStorage)
        self.storage.upload.return_value = "/api/files/boxit/items/new.png"
        self.image = ImageUpload(content=b"\x89PNG", content_type="image/png")

    @pytest.mark.asyncio
    async def test_failed_update_deletes_new_upload(self, mock_db_session):
        item = Item(id=uuid4(), box_id=uuid4(), name="Drill", image_path="/api/files/boxit/items/old.png")
        mock_db_session.flush = AsyncMock(side_effect=SQLAlchemyError("write failed"))

        with patch("boxit.services.item_service.get_owned_item", AsyncMock(return_value=item)):
            with pytest.raises(SQLAlchemyError):
                await self.service.update_item(
                    mock_db_session, self.storage, uuid4(), item.id,
                    ItemForm.from_form(name="Drill v2"), self.image, folder="boxit/items",
                )

        self.storage.delete.assert_awaited_once_with("/api/files/boxit/items/new.png")
        assert mock_db_session.info == {}

    @pytest.mark.asyncio
    async def test_failed_create_deletes_new_upload(self, mock_db_session):
        box = SimpleNamespace(id=uuid4())
        mock_db_session.flush = AsyncMock(side_effect=SQLAlchemyError("write failed"))

        with patch("boxit.services.item_service.get_owned_box", AsyncMock(return_value=box)):
            with pytest.raises(SQLAlchemyError):
                await self.service.create_item(
                    mock_db_session, self.storage, uuid4(), box.id,
                    ItemForm.from_form(name="Drill"), self.image, folder="boxit/items",
                )

        self.storage.delete.assert_awaited_once_with("/api/files/boxit/items/new.png")

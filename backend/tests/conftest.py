"""
BoxIT Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the whole suite.
How:   API tests run the real application against a fresh SQLite file per
       test (aiosqlite) with local image storage in a temp directory and
       the console email sender, driven through httpx's ASGITransport.
       Service unit tests use the mocked AsyncSession below.

Fixture Hierarchy:
    test_settings        Settings pointed at tmp_path
    app                  create_app(test_settings) with tables created
    client               httpx AsyncClient bound to the app
    make_user            signup → verify → login, returns auth headers
    alice, bob           two independent verified accounts
    api                  thin helpers to create rooms, boxes and items
    png_bytes            a real PNG produced by Pillow
    mock_db_session      AsyncMock standing in for AsyncSession
"""

import json
import os
import tempfile
from io import BytesIO
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy import select

# Module-level app creation in boxit.main reads the environment on import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="boxit_test_"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

from boxit.config import Settings  # noqa: E402
from boxit.main import create_app  # noqa: E402
from boxit.models import User  # noqa: E402
from boxit.services.email_service import ConsoleEmailSender  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'boxit.db'}",
        storage_backend="local",
        storage_root=str(tmp_path / "storage"),
        email_backend="console",
        jwt_secret="test-secret-0123456789-abcdefghijklmnop",
        public_base_url="http://boxit.test",
        rate_limit_enabled=False,
        retry_max_attempts=2,
        retry_min_wait=0,
        retry_max_wait=0,
        log_level="WARNING",
    )


@pytest.fixture
def email_outbox() -> ConsoleEmailSender:
    return ConsoleEmailSender()


@pytest_asyncio.fixture
async def app(test_settings, email_outbox):
    application = create_app(test_settings, email_sender=email_outbox)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════

async def fetch_user(app, email: str) -> Optional[User]:
    async with app.state.database.session_factory() as db:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


@pytest.fixture
def load_user(app):
    """Factory: read a User row straight from the database."""

    async def _load_user(email: str) -> Optional[User]:
        return await fetch_user(app, email)

    return _load_user


@pytest_asyncio.fixture
async def make_user(app, client):
    """Factory: create a verified account and return its Authorization header."""

    async def _make_user(email: str, password: str = TEST_PASSWORD, name: str = "Tester") -> Dict[str, str]:
        response = await client.post(
            "/api/auth/signup", json={"email": email, "password": password, "name": name}
        )
        assert response.status_code == 201, response.text

        user = await fetch_user(app, email)
        verify = await client.get("/api/auth/verify", params={"token": user.verification_token})
        assert verify.status_code == 307

        login = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        return {"Authorization": f"Bearer {login.json()['access_token']}"}

    return _make_user


@pytest_asyncio.fixture
async def alice(make_user) -> Dict[str, str]:
    return await make_user("alice@example.com", name="Alice")


@pytest_asyncio.fixture
async def bob(make_user) -> Dict[str, str]:
    return await make_user("bob@example.com", name="Bob")


# ══════════════════════════════════════════════════════════════════════════
# Inventory Helpers
# ══════════════════════════════════════════════════════════════════════════

class Api:
    """Creates inventory through the HTTP API and returns the JSON bodies."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def create_room(self, headers, name: str = "Garage") -> dict:
        response = await self.client.post("/api/storage-rooms", json={"name": name}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    async def create_box(self, headers, room_id: str, name: str = "Tools") -> dict:
        response = await self.client.post(
            "/api/boxes", json={"name": name, "storage_room_id": room_id}, headers=headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    async def create_item(
        self,
        headers,
        box_id: str,
        name: str = "Drill",
        description: Optional[str] = None,
        labels: Optional[List[str]] = None,
        image: Optional[bytes] = None,
        category: Optional[str] = None,
        image_type: str = "image/png",
    ) -> dict:
        data = {"name": name}
        if description is not None:
            data["description"] = description
        if labels is not None:
            data["labels"] = json.dumps(labels)
        if category is not None:
            data["category"] = category
        files = {"image": ("photo.png", image, image_type)} if image is not None else None
        response = await self.client.post(
            f"/api/boxes/{box_id}/items", data=data, files=files, headers=headers
        )
        assert response.status_code == 201, response.text
        return response.json()


@pytest.fixture
def api(client) -> Api:
    return Api(client)


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

def make_png(width: int = 40, height: int = 30, color: str = "red") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for an AsyncSession.

    Usage:
        mock_db_session.flush.side_effect = [IntegrityError(...), None]
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    session.info = {}
    return session


@pytest.fixture
def png_factory():
    return make_png

"""Service test fixtures — async DB, services, actors, and FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - get_db dependency overridden to use test DB sessions
    - db_manager patched for code paths that open their own sessions (SSE stream)
    - Blob store overridden to write under tmp_path

Design Decisions:
    - File-backed SQLite (not :memory:): concurrent sessions need separate
      connections to exercise unique constraints and conditional writes
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from shemarket.api.dependencies import get_blob_store
from shemarket.db.base import Base
from shemarket.infrastructure.blob_store import LocalBlobStore
from shemarket.infrastructure.database import (
    BoundedStore, DatabaseSessionManager, get_db,
)
from shemarket.infrastructure.passwords import PasslibHasher
from shemarket.models.user import User
from shemarket.services.account_service import AccountService
from shemarket.services.conversation_directory import ConversationDirectory
from shemarket.services.listing_lifecycle import ListingLifecycle
from shemarket.services.order_lifecycle import OrderLifecycle
from shemarket.services.session_authority import SessionAuthority, to_identity
import shemarket.infrastructure.database as db_module
import shemarket.models  # noqa: F401
from shemarket.main import app

ADMIN_EMAIL = "admin@shemarket.com"


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'market.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def store(test_db):
    return BoundedStore(test_db, timeout_seconds=5.0)


@pytest.fixture
def authority(store):
    return SessionAuthority(store, ADMIN_EMAIL, ttl_hours=24)


@pytest.fixture
def accounts(store, authority):
    return AccountService(store, PasslibHasher(), authority)


@pytest.fixture
def listings(store):
    return ListingLifecycle(store)


@pytest.fixture
def orders(store):
    return OrderLifecycle(store)


@pytest.fixture
def directory(store):
    return ConversationDirectory(store)


@pytest.fixture
def make_identity(test_db):
    """Insert a user row directly and return its resolved Identity."""
    counter = {"n": 0}

    async def _make(
        name: str | None = None, email: str | None = None, is_seller: bool = False,
    ):
        counter["n"] += 1
        name = name or f"User {counter['n']}"
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash="not-a-real-hash",
            display_name=name,
            phone=f"+91-90000-0000{counter['n']}",
            address=f"{counter['n']} Market Road",
            is_seller=is_seller,
        )
        test_db.add(user)
        await test_db.commit()
        return to_identity(user, ADMIN_EMAIL)

    return _make


@pytest.fixture
async def seller(make_identity):
    return await make_identity("Sita Seller", "sita@example.com", is_seller=True)


@pytest.fixture
async def buyer(make_identity):
    return await make_identity("Bina Buyer", "bina@example.com")


@pytest.fixture
async def admin(make_identity):
    return await make_identity("Admin", ADMIN_EMAIL)


@pytest.fixture
def lamp_draft():
    return {
        "title": "Lamp",
        "description": "Brass table lamp",
        "price": 500,
        "image_ref": "/media/lamp.jpg",
    }


@pytest.fixture
async def approved_listing(listings, seller, admin, lamp_draft):
    listing = await listings.submit(seller, lamp_draft)
    return await listings.approve(admin, listing.id)


@pytest.fixture
async def client(test_engine, test_session_factory, tmp_path):
    """FastAPI test client with DB and blob store dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: LocalBlobStore(
        tmp_path / "media", "/media", max_bytes=1024,
    )

    # Patch db_manager for routes that open their own sessions
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def signup(client):
    """Register + login through the API; returns (auth headers, identity json)."""
    async def _signup(email: str, name: str, is_seller: bool = False):
        res = await client.post("/api/v1/auth/register", json={
            "email": email,
            "password": "secret123",
            "display_name": name,
            "phone": "+91-98765-43210",
            "address": "12 Bazaar Street",
            "is_seller": is_seller,
        })
        assert res.status_code == 201, res.text
        res = await client.post("/api/v1/auth/login", json={
            "email": email, "password": "secret123",
        })
        assert res.status_code == 200, res.text
        body = res.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["identity"]

    return _signup

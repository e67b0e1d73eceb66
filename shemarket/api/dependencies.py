"""API Dependencies — per-request wiring of store, services, and caller identity.

Invariants:
    - Every service gets a BoundedStore over the request's AsyncSession
    - get_current_identity resolves the bearer token on every request (no cache)
    - Missing Authorization header → UnauthenticatedError (401), never 403

Design Decisions:
    - FastAPI Depends over a service container: tests override get_db / get_blob_store
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from shemarket.config import Settings, get_settings
from shemarket.core.errors import UnauthenticatedError
from shemarket.core.identity import Identity
from shemarket.core.repository_protocols import BlobStore
from shemarket.infrastructure.blob_store import LocalBlobStore
from shemarket.infrastructure.database import BoundedStore, get_db
from shemarket.infrastructure.passwords import PasslibHasher
from shemarket.services.account_service import AccountService
from shemarket.services.conversation_directory import ConversationDirectory
from shemarket.services.listing_lifecycle import ListingLifecycle
from shemarket.services.order_lifecycle import OrderLifecycle
from shemarket.services.session_authority import SessionAuthority

_bearer = HTTPBearer(auto_error=False)


def get_store(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> BoundedStore:
    return BoundedStore(db, settings.store_timeout_seconds)


def get_session_authority(
    store: BoundedStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> SessionAuthority:
    return SessionAuthority(store, settings.admin_email, settings.session_ttl_hours)


def get_account_service(
    store: BoundedStore = Depends(get_store),
    authority: SessionAuthority = Depends(get_session_authority),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(
        store, PasslibHasher(), authority, settings.password_min_length,
    )


def get_listing_lifecycle(store: BoundedStore = Depends(get_store)) -> ListingLifecycle:
    return ListingLifecycle(store)


def get_order_lifecycle(store: BoundedStore = Depends(get_store)) -> OrderLifecycle:
    return OrderLifecycle(store)


def get_conversation_directory(
    store: BoundedStore = Depends(get_store),
) -> ConversationDirectory:
    return ConversationDirectory(store)


def get_blob_store(settings: Settings = Depends(get_settings)) -> BlobStore:
    return LocalBlobStore(
        settings.media_dir, settings.media_url_prefix, settings.max_image_bytes,
    )


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()
    return credentials.credentials


async def get_current_identity(
    token: str = Depends(get_bearer_token),
    authority: SessionAuthority = Depends(get_session_authority),
) -> Identity:
    return await authority.resolve_session(token)

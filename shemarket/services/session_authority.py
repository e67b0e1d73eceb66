"""Session Authority — resolves an opaque bearer token into a role-stamped Identity.

Invariants:
    - Stateless: nothing cached between calls, every resolve reads the store
    - Missing, unknown, or expired tokens and vanished profiles are all Unauthenticated
    - Only sha256(token) is persisted; the raw token leaves the process exactly once
    - Role recomputed on every resolve (core.identity.derive_role)

Design Decisions:
    - Opaque server-side tokens over JWT: logout revokes immediately
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select

from shemarket.core.identity import Identity, derive_role
from shemarket.core.domain_types import IdentityId
from shemarket.core.errors import UnauthenticatedError
from shemarket.infrastructure.database import BoundedStore
from shemarket.models.auth_session import AuthSession
from shemarket.models.user import User

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def as_utc(moment: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def to_identity(user: User, admin_email: str) -> Identity:
    return Identity(
        id=IdentityId(user.id),
        email=user.email,
        display_name=user.display_name,
        role=derive_role(user.email, user.is_seller, admin_email),
        phone=user.phone,
        address=user.address,
        created_at=user.created_at,
    )


class SessionAuthority:
    """Issues, resolves and revokes bearer tokens."""

    def __init__(self, store: BoundedStore, admin_email: str, ttl_hours: int):
        self.store = store
        self.admin_email = admin_email
        self.ttl = timedelta(hours=ttl_hours)

    async def resolve_session(self, credential: str | None) -> Identity:
        """Token → Identity, or UnauthenticatedError."""
        if not credential:
            raise UnauthenticatedError()
        row = await self.store.execute(
            select(AuthSession, User)
            .join(User, User.id == AuthSession.identity_id)
            .where(AuthSession.token_hash == hash_token(credential))
        )
        found = row.first()
        if found is None:
            raise UnauthenticatedError("Invalid session token")
        auth_session, user = found
        if as_utc(auth_session.expires_at) <= datetime.now(timezone.utc):
            raise UnauthenticatedError("Session expired")
        return to_identity(user, self.admin_email)

    async def issue(self, user: User) -> str:
        """Create a session for `user` and return the raw token."""
        token = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        self.store.add(AuthSession(
            token_hash=hash_token(token),
            identity_id=user.id,
            created_at=now,
            expires_at=now + self.ttl,
        ))
        await self.store.commit()
        logger.info("Session issued", extra={"identity_id": user.id})
        return token

    async def revoke(self, credential: str) -> None:
        """Delete the session behind `credential`. Unknown tokens are a no-op."""
        await self.store.execute(
            delete(AuthSession).where(
                AuthSession.token_hash == hash_token(credential),
            )
        )
        await self.store.commit()

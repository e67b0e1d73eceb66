"""Account Service — registration, credential login, profile edits, admin user directory.

Invariants:
    - Email stored lower-cased and unique; duplicates rejected as validation errors
    - Wrong email and wrong password fail identically (no account enumeration)
    - Profile edits touch only display_name, phone, address of the caller's own row
    - list_users is admin-only
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from shemarket.core.domain_types import Role
from shemarket.core.errors import (
    MarketValidationError, ResourceNotFoundError, UnauthenticatedError,
)
from shemarket.core.identity import Identity, normalize_email, require_role
from shemarket.core.repository_protocols import PasswordHasher
from shemarket.infrastructure.database import BoundedStore
from shemarket.models.user import User
from shemarket.services.session_authority import SessionAuthority, to_identity

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = ("display_name", "phone", "address")


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise MarketValidationError(f"{field} is required", field)
    return value.strip()


class AccountService:
    """Local identity provider plus profile store operations."""

    def __init__(
        self,
        store: BoundedStore,
        hasher: PasswordHasher,
        authority: SessionAuthority,
        password_min_length: int = 6,
    ):
        self.store = store
        self.hasher = hasher
        self.authority = authority
        self.password_min_length = password_min_length

    async def register(
        self,
        email: str,
        password: str,
        display_name: str,
        phone: str,
        address: str,
        is_seller: bool = False,
    ) -> Identity:
        email = normalize_email(_require_text(email, "email"))
        if not password or len(password) < self.password_min_length:
            raise MarketValidationError(
                f"password must be at least {self.password_min_length} characters",
                "password",
            )
        profile = {
            "display_name": _require_text(display_name, "display_name"),
            "phone": _require_text(phone, "phone"),
            "address": _require_text(address, "address"),
        }
        existing = await self.store.scalar(select(User).where(User.email == email))
        if existing is not None:
            raise MarketValidationError("email is already registered", "email")
        user = User(
            email=email,
            password_hash=self.hasher.hash(password),
            is_seller=is_seller,
            **profile,
        )
        self.store.add(user)
        try:
            await self.store.commit()
        except IntegrityError:
            await self.store.rollback()
            raise MarketValidationError("email is already registered", "email")
        logger.info("Identity registered", extra={"identity_id": user.id})
        return to_identity(user, self.authority.admin_email)

    async def authenticate(self, email: str, password: str) -> User:
        """Credential check. Returns the user row or raises UnauthenticatedError."""
        user = await self.store.scalar(
            select(User).where(User.email == normalize_email(email or "")),
        )
        if user is None or not self.hasher.verify(password or "", user.password_hash):
            logger.warning("Login rejected")
            raise UnauthenticatedError("Invalid email or password")
        return user

    async def login(self, email: str, password: str) -> tuple[str, Identity]:
        user = await self.authenticate(email, password)
        token = await self.authority.issue(user)
        return token, to_identity(user, self.authority.admin_email)

    async def logout(self, credential: str) -> None:
        await self.authority.revoke(credential)

    async def get_profile(self, identity: Identity) -> Identity:
        user = await self._load(identity)
        return to_identity(user, self.authority.admin_email)

    async def update_profile(self, identity: Identity, changes: dict) -> Identity:
        user = await self._load(identity)
        applied = False
        for field in _PROFILE_FIELDS:
            if changes.get(field) is not None:
                setattr(user, field, _require_text(changes[field], field))
                applied = True
        if not applied:
            raise MarketValidationError("no changes supplied", "body")
        await self.store.commit()
        logger.info("Profile updated", extra={"identity_id": user.id})
        return to_identity(user, self.authority.admin_email)

    async def list_users(self, admin: Identity) -> list[Identity]:
        require_role(admin, {Role.ADMIN})
        users = await self.store.scalars(select(User).order_by(User.created_at))
        return [to_identity(u, self.authority.admin_email) for u in users]

    async def _load(self, identity: Identity) -> User:
        user = await self.store.get(User, identity.id)
        if user is None:
            raise ResourceNotFoundError("User", str(identity.id))
        return user

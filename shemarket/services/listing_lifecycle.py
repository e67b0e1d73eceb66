"""Listing Lifecycle Manager — submit, browse, moderate, and edit product listings.

Invariants:
    - New listings start PENDING; only an admin moves them on
    - approve/reject are compare-and-set on status = 'pending': of two racing
      admins exactly one wins, the other observes InvalidTransitionError
    - reject deletes the row outright (no tombstone)
    - Buyers only ever see APPROVED listings; PENDING is visible to owner and admin
    - Role/ownership validated before any write

Design Decisions:
    - Conditional UPDATE/DELETE + rowcount over SELECT ... FOR UPDATE: one
      round-trip, identical semantics on PostgreSQL and SQLite
    - Editing an approved listing sends it back to PENDING for re-approval
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, select, update

from shemarket.core.domain_types import ListingStatus, Role, TRADING_ROLES
from shemarket.core.enforce_listing import (
    check_listing_transition,
    validate_listing_changes,
    validate_listing_draft,
)
from shemarket.core.errors import (
    ErrorContext, ForbiddenError, InvalidTransitionError, ResourceNotFoundError,
)
from shemarket.core.identity import Identity, require_role
from shemarket.infrastructure.database import BoundedStore
from shemarket.models.listing import Listing

logger = logging.getLogger(__name__)


class ListingLifecycle:
    """Listing state machine owner."""

    def __init__(self, store: BoundedStore):
        self.store = store

    # ─── Seller side ────────────────────────────────────────────

    async def submit(self, seller: Identity, draft: dict) -> Listing:
        require_role(seller, TRADING_ROLES)
        cleaned = validate_listing_draft(draft)
        now = datetime.now(timezone.utc)
        listing = Listing(
            owner_id=seller.id,
            status=ListingStatus.PENDING.value,
            created_at=now,
            updated_at=now,
            **cleaned,
        )
        self.store.add(listing)
        await self.store.commit()
        logger.info(
            "Listing submitted",
            extra={"listing_id": listing.id, "identity_id": seller.id},
        )
        return listing

    async def list_by_seller(self, seller: Identity) -> list[Listing]:
        return await self.store.scalars(
            select(Listing)
            .where(Listing.owner_id == seller.id)
            .order_by(Listing.created_at.desc())
        )

    async def edit(self, owner: Identity, listing_id: UUID, changes: dict) -> Listing:
        cleaned = validate_listing_changes(changes)
        listing = await self._get_or_404(listing_id)
        if listing.owner_id != owner.id:
            raise ForbiddenError(
                "Only the listing owner may edit it",
                ErrorContext(identity_id=str(owner.id), resource_id=str(listing_id)),
            )
        observed = listing.status
        # Approved content changed → back into the moderation queue
        result = await self.store.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.status == observed)
            .values(
                status=ListingStatus.PENDING.value,
                updated_at=datetime.now(timezone.utc),
                **cleaned,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._raise_cas_failure(listing_id, ListingStatus(observed))
        await self.store.commit()
        logger.info(
            "Listing edited",
            extra={
                "listing_id": listing_id, "identity_id": owner.id,
                "from_status": observed, "to_status": ListingStatus.PENDING.value,
            },
        )
        return await self._reload(listing_id)

    # ─── Buyer side ─────────────────────────────────────────────

    async def list_approved(self, limit: int = 50, offset: int = 0) -> list[Listing]:
        return await self.store.scalars(
            select(Listing)
            .where(Listing.status == ListingStatus.APPROVED.value)
            .order_by(Listing.created_at.desc())
            .limit(limit)
            .offset(offset)
        )

    async def get_listing(self, identity: Identity, listing_id: UUID) -> Listing:
        listing = await self._get_or_404(listing_id)
        if listing.status == ListingStatus.APPROVED.value:
            return listing
        if listing.owner_id == identity.id or identity.is_admin:
            return listing
        raise ResourceNotFoundError("Listing", str(listing_id))

    # ─── Admin side ─────────────────────────────────────────────

    async def list_pending(self, admin: Identity) -> list[Listing]:
        require_role(admin, {Role.ADMIN})
        return await self.store.scalars(
            select(Listing)
            .where(Listing.status == ListingStatus.PENDING.value)
            .order_by(Listing.created_at)
        )

    async def approve(self, admin: Identity, listing_id: UUID) -> Listing:
        require_role(admin, {Role.ADMIN})
        result = await self.store.execute(
            update(Listing)
            .where(
                Listing.id == listing_id,
                Listing.status == ListingStatus.PENDING.value,
            )
            .values(
                status=ListingStatus.APPROVED.value,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._raise_cas_failure(listing_id, ListingStatus.APPROVED)
        await self.store.commit()
        logger.info(
            "Listing approved",
            extra={"listing_id": listing_id, "identity_id": admin.id},
        )
        return await self._reload(listing_id)

    async def reject(self, admin: Identity, listing_id: UUID) -> None:
        require_role(admin, {Role.ADMIN})
        result = await self.store.execute(
            delete(Listing)
            .where(
                Listing.id == listing_id,
                Listing.status == ListingStatus.PENDING.value,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._raise_cas_failure(listing_id, ListingStatus.REJECTED)
        await self.store.commit()
        logger.info(
            "Listing rejected and deleted",
            extra={"listing_id": listing_id, "identity_id": admin.id},
        )

    # ─── Helpers ────────────────────────────────────────────────

    async def _get_or_404(self, listing_id: UUID) -> Listing:
        listing = await self._reload(listing_id)
        if listing is None:
            raise ResourceNotFoundError("Listing", str(listing_id))
        return listing

    async def _reload(self, listing_id: UUID) -> Listing | None:
        return await self.store.scalar(
            select(Listing)
            .where(Listing.id == listing_id)
            .execution_options(populate_existing=True)
        )

    async def _raise_cas_failure(
        self, listing_id: UUID, target: ListingStatus,
    ) -> None:
        """A conditional write matched no row: work out why and raise it."""
        await self.store.rollback()
        current = await self._reload(listing_id)
        if current is None:
            raise ResourceNotFoundError("Listing", str(listing_id))
        logger.warning(
            "Listing transition refused",
            extra={
                "listing_id": listing_id,
                "from_status": current.status, "to_status": target.value,
            },
        )
        check_listing_transition(ListingStatus(current.status), target)
        # Status moved between read and write but the move is still legal
        raise InvalidTransitionError("Listing", current.status, target.value)

"""Identity — role-stamped caller identity and the pure role gate.

Invariants:
    - role is derived from (email, is_seller, admin_email), never read from storage
    - admin iff email matches the reserved admin address, case-insensitively
    - require_role raises ForbiddenError; it never returns a falsy value

Design Decisions:
    - Frozen dataclass: an Identity is a value resolved per request, not a live record
    - Pure functions, no IO: the Session Authority (services/) loads, core decides
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from shemarket.core.domain_types import IdentityId, Role
from shemarket.core.errors import ErrorContext, ForbiddenError


@dataclass(frozen=True)
class Identity:
    """Authenticated actor resolved from a session token."""

    id: IdentityId
    email: str
    display_name: str
    role: Role
    phone: str = ""
    address: str = ""
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def normalize_email(email: str) -> str:
    return email.strip().lower()


def derive_role(email: str, is_seller: bool, admin_email: str) -> Role:
    """Admin by reserved address; otherwise the self-declared seller flag."""
    if normalize_email(email) == normalize_email(admin_email):
        return Role.ADMIN
    return Role.SELLER if is_seller else Role.BUYER


def require_role(identity: Identity, allowed: Iterable[Role]) -> Identity:
    """Gate used by every mutating operation. Returns the identity on success."""
    allowed = frozenset(allowed)
    if identity.role not in allowed:
        names = ", ".join(sorted(r.value for r in allowed))
        raise ForbiddenError(
            f"Role '{identity.role.value}' may not perform this action "
            f"(requires one of: {names})",
            ErrorContext(identity_id=str(identity.id)),
        )
    return identity

"""ORM Models — SQLAlchemy declarative models for all marketplace entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Status columns hold core.domain_types enum values as plain strings

Design Decisions:
    - One file per entity for locality
    - All models imported here so every table is on Base.metadata before
      create_all or Alembic autogenerate runs
"""

from shemarket.models.user import User  # noqa: F401
from shemarket.models.auth_session import AuthSession  # noqa: F401
from shemarket.models.listing import Listing  # noqa: F401
from shemarket.models.order import Order  # noqa: F401
from shemarket.models.conversation import Conversation  # noqa: F401
from shemarket.models.message import Message  # noqa: F401

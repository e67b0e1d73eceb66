"""Boundary Protocols — contracts between core/services and external collaborators.

Invariants:
    - Services depend on these Protocols, never on a concrete blob or hashing backend
    - Implementations provided by infrastructure/ via FastAPI dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
"""

from typing import Protocol


class BlobStore(Protocol):
    """Object store for listing images; put() rejects data over max_bytes."""
    max_bytes: int

    async def put(self, data: bytes, content_type: str) -> str: ...
    async def ready(self) -> bool: ...


class PasswordHasher(Protocol):
    """One-way credential hashing used by the identity provider."""
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, password_hash: str) -> bool: ...

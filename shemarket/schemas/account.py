"""Account Schemas — registration, login, and profile payloads.

Invariants:
    - RegisterRequest requires every profile field (name, phone, address)
    - Password length is checked by AccountService against settings, not here
    - ProfileUpdate is partial; at least one field must be present (service check)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from shemarket.core.domain_types import Role


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=1, max_length=256)
    display_name: str = Field(min_length=1, max_length=120)
    phone: str = Field(min_length=1, max_length=40)
    address: str = Field(min_length=1, max_length=2000)
    is_seller: bool = False

    @field_validator("email", "display_name", "phone", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=256)


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(None, max_length=120)
    phone: str | None = Field(None, max_length=40)
    address: str | None = Field(None, max_length=2000)


class IdentityResponse(BaseModel):
    """Public view of an Identity (core.identity.Identity)."""
    model_config = {"from_attributes": True}

    id: UUID
    email: str
    display_name: str
    role: Role
    phone: str
    address: str
    created_at: datetime | None = None


class SessionResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    identity: IdentityResponse

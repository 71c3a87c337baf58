"""Authentication and account schemas."""

from qrorder.schemas.common import CamelModel


class LoginRequest(CamelModel):
    """Payload for user login."""

    email: str
    password: str


class TokenResponse(CamelModel):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"
    role: str


class RoleHintRequest(CamelModel):
    role: str | None = None


class AccountCreate(CamelModel):
    """Payload for creating an identity-provider account."""

    email: str = ""
    password: str = ""
    role: str = "staff"


class AccountDTO(CamelModel):
    id: str
    email: str
    role: str


class CallStaffRequest(CamelModel):
    table_number: str | int | None = None
    reason: str | None = None

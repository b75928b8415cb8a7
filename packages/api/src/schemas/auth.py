# This project was developed with assistance from AI tools.
"""Authentication and organization-scoping schemas."""

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Injected by auth middleware into every authenticated request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str
    org_id: str


class OrgContext(BaseModel):
    """Explicit organization scope passed to every profile service call."""

    model_config = ConfigDict(frozen=True)

    org_id: str
    user_id: str | None = None

    @classmethod
    def from_user(cls, user: UserContext) -> "OrgContext":
        return cls(org_id=user.org_id, user_id=user.user_id)


class TokenPayload(BaseModel):
    """Decoded JWT token claims from Keycloak.

    Extra claims are kept so the configured org claim can be read by name.
    """

    model_config = ConfigDict(extra="allow")

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    realm_access: dict = Field(default_factory=dict)

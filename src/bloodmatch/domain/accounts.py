"""
Account credentials and roles.

An account either holds a password hash or is bound to an external identity
provider (social login); it never carries a made-up password. The role starts
as `Role.UNASSIGNED` and is chosen exactly once after sign-up.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class RoleNotAssigned(RuntimeError):
    """Raised when code needs an account's role before the user has picked one."""


class Role(str, Enum):
    UNASSIGNED = "unassigned"
    DONOR = "donor"
    HOSPITAL = "hospital"
    BLOODBANK_ADMIN = "bloodbank_admin"


class PasswordCredential(BaseModel):
    kind: Literal["password"] = "password"
    password_hash: str = Field(..., min_length=1)


class ExternalIdentity(BaseModel):
    kind: Literal["external"] = "external"
    provider: str = Field(..., min_length=1)
    subject_id: str = Field(..., min_length=1)


AccountCredential = Annotated[Union[PasswordCredential, ExternalIdentity], Field(discriminator="kind")]


class Account(BaseModel):
    id: str
    email: str
    name: str | None = None
    mobile_number: str | None = None
    credential: AccountCredential
    role: Role = Role.UNASSIGNED

    @classmethod
    def from_external_login(
        cls, *, id: str, email: str, provider: str, subject_id: str, name: str | None = None
    ) -> "Account":
        """Create an account for a user who signed in through an identity provider."""
        return cls(
            id=id,
            email=email.strip().lower(),
            name=name,
            credential=ExternalIdentity(provider=provider, subject_id=subject_id),
        )

    @property
    def has_password(self) -> bool:
        return isinstance(self.credential, PasswordCredential)

    def assign_role(self, role: Role | str) -> "Account":
        """Return a copy with `role` set. Roles can be picked once."""
        role = Role(role)
        if role is Role.UNASSIGNED:
            raise ValueError("Cannot assign the 'unassigned' role")
        if self.role is not Role.UNASSIGNED:
            raise ValueError(f"Account {self.id} already has role '{self.role.value}'")
        return self.model_copy(update={"role": role})

    def require_role(self) -> Role:
        if self.role is Role.UNASSIGNED:
            raise RoleNotAssigned(f"Account {self.id} has not selected a role yet")
        return self.role

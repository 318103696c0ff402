"""
Principal abstractions for callers of the data layer.

Every repository call receives the principal it acts for. User principals
only see their own bookings, payments and profile; the service principal is
the elevated identity used by the payment webhook, which has no end-user
session and must write on the user's behalf.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

from .core.enums import RoleName


@runtime_checkable
class Principal(Protocol):
    """Represents the entity on whose behalf a data access happens."""

    @property
    def id(self) -> str:
        """Unique identifier for audit trails."""
        ...

    @property
    def principal_type(self) -> Literal["user", "service", "anonymous"]:
        ...

    @property
    def is_authenticated(self) -> bool:
        ...

    @property
    def is_admin(self) -> bool:
        ...

    @property
    def is_elevated(self) -> bool:
        """True when row scoping does not apply."""
        ...


@dataclass(frozen=True)
class UserPrincipal:
    """Principal backed by a verified identity-provider token."""

    user_id: str
    role: str = RoleName.USER.value
    email: str | None = None

    @property
    def id(self) -> str:
        return self.user_id

    @property
    def principal_type(self) -> Literal["user", "service", "anonymous"]:
        return "user"

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    @property
    def is_elevated(self) -> bool:
        return False

    def can_read_user(self, user_id: str) -> bool:
        return self.is_admin or self.user_id == user_id


@dataclass(frozen=True)
class ServicePrincipal:
    """Internal principal for server-to-server work such as webhook reconciliation."""

    name: str

    @property
    def id(self) -> str:
        return self.name

    @property
    def principal_type(self) -> Literal["user", "service", "anonymous"]:
        return "service"

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_admin(self) -> bool:
        return False

    @property
    def is_elevated(self) -> bool:
        return True


@dataclass(frozen=True)
class AnonymousPrincipal:
    """Caller without a valid session; may only read the public catalogue."""

    @property
    def id(self) -> str:
        return "anonymous"

    @property
    def principal_type(self) -> Literal["user", "service", "anonymous"]:
        return "anonymous"

    @property
    def is_authenticated(self) -> bool:
        return False

    @property
    def is_admin(self) -> bool:
        return False

    @property
    def is_elevated(self) -> bool:
        return False


ANONYMOUS = AnonymousPrincipal()
WEBHOOK_PRINCIPAL = ServicePrincipal(name="stripe-webhook")

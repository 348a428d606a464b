from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel

logger = logging.getLogger("users")


class UserRole(str, Enum):
    CLIENT = "client"
    SALES = "sales"
    ADMIN = "admin"

    @classmethod
    def coerce(cls, value: Any) -> Optional["UserRole"]:
        """Return the role matching ``value`` or None for unknown values."""

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_staff(self) -> bool:
        return self in (UserRole.SALES, UserRole.ADMIN)


class User(BaseModel):
    id: UUID
    # Opaque identifier issued by the identity provider (Clerk user id).
    clerk_id: str
    email: str
    name: Optional[str] = None
    # Unset only for records created outside the sync path; treated as
    # unrecognized by the session model.
    role: Optional[UserRole] = None
    country: Optional[str] = None
    # Issued to sales/admin users so clients can sign up under them.
    referral_code: Optional[str] = None
    # Sales/admin user who referred this user.
    referral_id: Optional[UUID] = None


class IdentityEvent(BaseModel):
    """Normalised identity-provider user payload."""

    clerk_id: str
    email: str = ""
    name: Optional[str] = None
    role: Optional[UserRole] = None
    referral_code: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_clerk_payload(cls, data: Mapping[str, Any]) -> "IdentityEvent":
        addresses = data.get("email_addresses") or []
        email = ""
        if addresses:
            email = addresses[0].get("email_address") or ""

        first_name = data.get("first_name") or ""
        last_name = data.get("last_name") or ""
        if first_name and last_name:
            name: Optional[str] = f"{first_name} {last_name}"
        else:
            name = first_name or last_name or None

        metadata = data.get("unsafe_metadata")
        if not isinstance(metadata, Mapping):
            metadata = {}

        # unsafe_metadata is writable by the signing-up browser, so it can
        # only ever ask for the client or sales role.
        role_hint = _metadata_string(metadata, "role", data["id"])
        role = UserRole.coerce(role_hint) if role_hint else None
        if role == UserRole.ADMIN:
            logger.warning("Discarding admin role hint in signup metadata of %s", data["id"])
            role = None
        elif role_hint and role is None:
            logger.warning("Ignoring unknown role hint %r for %s", role_hint, data["id"])

        return cls(
            clerk_id=data["id"],
            email=email,
            name=name,
            role=role,
            referral_code=_metadata_string(metadata, "referralCode", data["id"]),
        )


def _metadata_string(metadata: Mapping[str, Any], key: str, clerk_id: str) -> Optional[str]:
    value = metadata.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        logger.warning("Ignoring non-string %s in signup metadata of %s", key, clerk_id)
        return None
    return value.strip() or None

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from src.chatokay.domain.models.business import (
    Business,
    BusinessService,
    DayAvailability,
    Theme,
    is_valid_subdomain,
)
from src.chatokay.domain.models.user import User, UserRole
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories
from src.chatokay.services.audit.service import audit_service

logger = logging.getLogger("businesses")


class BusinessAlreadyExistsError(Exception):
    """Raised when a client user who already owns a business creates another."""


class SubdomainTakenError(Exception):
    """Raised when the requested subdomain belongs to another tenant."""


class InvalidSubdomainError(ValueError):
    """Raised for subdomains that are malformed or reserved."""


class BusinessOwnerRoleError(Exception):
    """Raised when a non-client user tries to own a business."""


class BusinessNotFoundError(Exception):
    """Raised when a client who has not onboarded yet edits their business."""


UPDATABLE_FIELDS = frozenset(
    {"name", "description", "email", "phone", "welcome_message", "theme", "services", "availability"}
)


def normalize_subdomain(value: str) -> str:
    return value.strip().lower()


class TenantService:
    """Tenant (business) lookup and onboarding."""

    def __init__(self, registry: RepositoryRegistry = repositories) -> None:
        self._registry = registry

    def get_for_owner(self, user: User) -> Optional[Business]:
        return self._registry.businesses.get_by_owner(user.id)

    def get_by_subdomain(self, subdomain: str) -> Optional[Business]:
        return self._registry.businesses.get_by_subdomain(normalize_subdomain(subdomain))

    def create_business(
        self,
        *,
        owner: User,
        name: str,
        subdomain: str,
        description: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        welcome_message: Optional[str] = None,
        theme: Theme = Theme.LIGHT,
        services: Optional[List[BusinessService]] = None,
        availability: Optional[List[DayAvailability]] = None,
    ) -> Business:
        """Complete onboarding for ``owner`` by creating their business."""

        if owner.role != UserRole.CLIENT:
            raise BusinessOwnerRoleError("Only client users can own a business")

        subdomain = normalize_subdomain(subdomain)
        if not is_valid_subdomain(subdomain):
            raise InvalidSubdomainError(f"Invalid subdomain: {subdomain!r}")

        if self._registry.businesses.get_by_owner(owner.id) is not None:
            raise BusinessAlreadyExistsError("User already owns a business")

        if self._registry.businesses.get_by_subdomain(subdomain) is not None:
            raise SubdomainTakenError(f"Subdomain {subdomain!r} is already in use")

        business = Business(
            id=uuid4(),
            user_id=owner.id,
            name=name,
            subdomain=subdomain,
            description=description,
            email=email,
            phone=phone,
            welcome_message=welcome_message,
            theme=theme,
            services=services or [],
            availability=availability or [],
        )
        self._registry.businesses.save(business)
        logger.info("Created business %s on subdomain %s", business.id, subdomain)

        audit_service.log_event(
            action="create_business",
            resource_type="business",
            resource_id=str(business.id),
            extra={"user_id": str(owner.id)},
        )
        return business

    def update_business(self, *, owner: User, changes: Dict[str, Any]) -> Business:
        """Apply settings changes to ``owner``'s business.

        The subdomain and owner are fixed once onboarding is complete.
        """

        if owner.role != UserRole.CLIENT:
            raise BusinessOwnerRoleError("Only client users can own a business")

        business = self._registry.businesses.get_by_owner(owner.id)
        if business is None:
            raise BusinessNotFoundError("User has no business")

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        updated = Business.model_validate({**business.model_dump(), **changes})
        self._registry.businesses.save(updated)
        logger.info("Updated business %s (%s)", business.id, ", ".join(sorted(changes)))

        audit_service.log_event(
            action="update_business",
            resource_type="business",
            resource_id=str(business.id),
            extra={"user_id": str(owner.id), "fields": sorted(changes)},
        )
        return updated


tenant_service = TenantService()

from __future__ import annotations

from datetime import datetime, timezone

from src.chatokay.domain.models.platform_settings import PlatformSettings
from src.chatokay.domain.models.user import User
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories
from src.chatokay.services.audit.service import audit_service


class InvalidPlatformFeeError(ValueError):
    """Raised for a platform fee percentage outside 0-100."""


class PlatformSettingsService:
    def __init__(self, registry: RepositoryRegistry = repositories) -> None:
        self._registry = registry

    def get(self) -> PlatformSettings:
        """Return stored settings, or the defaults when none were saved yet."""

        return self._registry.platform_settings.get() or PlatformSettings()

    def update_fee_percentage(self, percentage: float, *, updated_by: User) -> PlatformSettings:
        if not 0 <= percentage <= 100:
            raise InvalidPlatformFeeError("Platform fee percentage must be between 0 and 100")

        updated = PlatformSettings(
            platform_fee_percentage=percentage,
            updated_at=datetime.now(timezone.utc),
            updated_by=updated_by.id,
        )
        self._registry.platform_settings.save(updated)

        audit_service.log_event(
            action="update_platform_settings",
            resource_type="platform_settings",
            extra={"user_id": str(updated_by.id), "platform_fee_percentage": percentage},
        )
        return updated


platform_settings_service = PlatformSettingsService()

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.chatokay.tenancy import get_current_subdomain

logger = logging.getLogger("audit")


@dataclass
class AuditEvent:
    """One audit trail entry.

    Only identifiers and flags go here. Emails, names and customer contact
    details stay in the stores.
    """

    action: str
    resource_type: str
    resource_id: Optional[str] = None
    # Identity subject of the caller, or the name of the webhook sender
    # ("clerk", "stripe") for provider-driven writes.
    subject: Optional[str] = None
    subdomain: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str, sort_keys=True)


class AuditService:
    def log_event(
        self,
        *,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        subject: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Write a JSON audit line on the ``audit`` logger and return the event.

        When ``subject`` is omitted the identity of the in-flight request is
        used. The tenant subdomain the request was addressed to, if any, is
        recorded alongside.
        """

        if subject is None:
            from src.chatokay.security import get_current_subject

            subject = get_current_subject()

        event = AuditEvent(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            subject=subject,
            subdomain=get_current_subdomain(),
            extra=dict(extra or {}),
        )
        logger.info(event.to_json())
        return event


audit_service = AuditService()

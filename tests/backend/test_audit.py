import json
import logging
from uuid import uuid4

from src.chatokay.domain.models.user import IdentityEvent
from src.chatokay.security import _current_subject
from src.chatokay.services.audit.service import audit_service
from src.chatokay.services.users.service import user_sync_service
from src.chatokay.tenancy import set_current_subdomain


def _audit_lines(caplog):
    return [json.loads(record.getMessage()) for record in caplog.records if record.name == "audit"]


def test_audit_line_uses_request_identity_and_tenant(caplog):
    caplog.set_level(logging.INFO, logger="audit")
    token = _current_subject.set("user_caller")
    set_current_subdomain("polimar")
    try:
        event = audit_service.log_event(
            action="cancel_appointment",
            resource_type="appointment",
            resource_id="a-1",
            extra={"business_id": uuid4()},
        )
    finally:
        _current_subject.reset(token)
        set_current_subdomain(None)

    [line] = _audit_lines(caplog)
    assert line["subject"] == "user_caller"
    assert line["subdomain"] == "polimar"
    assert line["action"] == "cancel_appointment"
    # Non-JSON values such as UUIDs are written as strings.
    assert line["extra"]["business_id"] == str(event.extra["business_id"])


def test_user_sync_writes_audit_line_without_personal_data(caplog, scheduler):
    caplog.set_level(logging.INFO, logger="audit")

    user_sync_service.sync_user(
        IdentityEvent(clerk_id="user_audit", email="private@example.com", name="Private Name"), scheduler
    )

    [line] = _audit_lines(caplog)
    assert line["action"] == "sync_user"
    assert line["subject"] == "clerk"
    assert line["extra"]["created"] is True
    raw = json.dumps(line)
    assert "private@example.com" not in raw
    assert "Private Name" not in raw

from __future__ import annotations

import logging
import secrets
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel

from src.chatokay.domain.models.appointment import Appointment, AppointmentStatus, CustomerData
from src.chatokay.domain.models.business import Business
from src.chatokay.infra.db.registry import RepositoryRegistry, repositories
from src.chatokay.services.audit.service import audit_service

logger = logging.getLogger("appointments")


class CancellationState(str, Enum):
    INVALID = "invalid"
    ALREADY_CANCELLED = "already_cancelled"
    CANCELLABLE = "cancellable"
    CANCELLED = "cancelled"


class CancellationView(BaseModel):
    """What the customer-facing cancellation page shows for a token."""

    state: CancellationState
    appointment: Optional[Appointment] = None
    business_name: Optional[str] = None


class AppointmentService:
    def __init__(self, registry: RepositoryRegistry = repositories) -> None:
        self._registry = registry

    def book(
        self,
        *,
        business: Business,
        customer: CustomerData,
        appointment_time: str,
        service_name: str,
        notes: Optional[str] = None,
    ) -> Appointment:
        appointment = Appointment(
            id=uuid4(),
            business_id=business.id,
            customer=customer,
            appointment_time=appointment_time,
            service_name=service_name,
            status=AppointmentStatus.CONFIRMED,
            notes=notes,
            cancellation_token=secrets.token_urlsafe(32),
        )
        self._registry.appointments.save(appointment)
        return appointment

    def lookup_by_token(self, token: Optional[str]) -> CancellationView:
        if not token:
            return CancellationView(state=CancellationState.INVALID)

        appointment = self._registry.appointments.get_by_cancellation_token(token)
        if appointment is None:
            return CancellationView(state=CancellationState.INVALID)

        business = self._registry.businesses.get(appointment.business_id)
        state = (
            CancellationState.ALREADY_CANCELLED
            if appointment.status == AppointmentStatus.CANCELLED
            else CancellationState.CANCELLABLE
        )
        return CancellationView(
            state=state,
            appointment=appointment,
            business_name=business.name if business else None,
        )

    def cancel_by_token(self, token: Optional[str]) -> CancellationView:
        """Cancel the appointment behind ``token``. Cancelling is irreversible."""

        view = self.lookup_by_token(token)
        if view.state != CancellationState.CANCELLABLE or view.appointment is None:
            return view

        cancelled = view.appointment.model_copy(update={"status": AppointmentStatus.CANCELLED})
        self._registry.appointments.save(cancelled)
        logger.info("Appointment %s cancelled by customer", cancelled.id)

        audit_service.log_event(
            action="cancel_appointment",
            resource_type="appointment",
            resource_id=str(cancelled.id),
            subject="cancellation-token",
            extra={"business_id": str(cancelled.business_id)},
        )
        return CancellationView(
            state=CancellationState.CANCELLED,
            appointment=cancelled,
            business_name=view.business_name,
        )


appointment_service = AppointmentService()

"""
Appointment workflow on top of the entity store and the PDF blob store.

Server-controlled fields (status, collected_by, approved_by, pdf_url) are
always stamped here from the caller, never taken from request payloads.
"""
from typing import List, Optional

import structlog

from ..errors import Conflict, Forbidden, InvalidInput, NotFound
from ..models.models import APPOINTMENT_APPROVED, Appointment, User
from ..schemas.appointments import AppointmentCreate
from ..storage.provider import BlobStore
from .access_policy import ADMIN, check_visible
from .entity_store import EntityStore


logger = structlog.get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def pdf_download_url(appointment_id: int) -> str:
    return f"/api/appointments/{appointment_id}/download-pdf"


def load_existing(store: EntityStore, appointment_id: int) -> Appointment:
    appointment = store.get_appointment(appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found")
    return appointment


def load_visible(store: EntityStore, user: User, appointment_id: int) -> Appointment:
    appointment = load_existing(store, appointment_id)
    check_visible(user, appointment)
    return appointment


def visible_appointments(store: EntityStore, user: User) -> List[Appointment]:
    if user.role == ADMIN:
        return store.get_all_appointments()
    if user.team_id is None:
        return []
    return store.get_team_appointments(user.team_id)


def open_appointment(store: EntityStore, user: User, payload: AppointmentCreate) -> Appointment:
    # A collector with a team always files into it; only a teamless one may name a team
    if user.team_id is not None and payload.team_id not in (None, user.team_id):
        raise Forbidden("Appointments can only be opened for your own team")
    team_id = user.team_id or payload.team_id
    if team_id is None:
        raise InvalidInput("A team is required to open an appointment")
    details = payload.booking_details.model_dump() if payload.booking_details else None
    return store.create_appointment(
        client_id=payload.client_id,
        team_id=team_id,
        collected_by=user.id,
        booking_details=details,
    )


def approve(store: EntityStore, user: User, appointment_id: int) -> Appointment:
    """Approve as ``user``. Gated by role only, not by team."""
    load_existing(store, appointment_id)
    return store.approve_appointment(appointment_id, approver_id=user.id)


def upload_pdf(
    store: EntityStore,
    blobs: BlobStore,
    user: User,
    appointment_id: int,
    data: Optional[bytes],
    content_type: Optional[str],
) -> Appointment:
    appointment = load_existing(store, appointment_id)
    if not data:
        raise InvalidInput("No PDF file uploaded")
    if (content_type or "").split(";")[0].strip().lower() != PDF_CONTENT_TYPE:
        raise InvalidInput("Only PDF files are accepted")
    # PDFs are attached after approval; checked before any bytes are written
    if appointment.status != APPOINTMENT_APPROVED:
        raise Conflict("Appointment must be approved before a PDF is attached")
    blobs.put(appointment_id, data)
    logger.info("pdf_stored", appointment_id=appointment_id, size_bytes=len(data))
    return store.attach_pdf(appointment_id, pdf_download_url(appointment_id))


def read_pdf(store: EntityStore, blobs: BlobStore, user: User, appointment_id: int) -> bytes:
    load_visible(store, user, appointment_id)
    content = blobs.get(appointment_id)
    if content is None:
        raise NotFound("PDF not found")
    return content

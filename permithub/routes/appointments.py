from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from ..deps import get_blob_store, get_store
from ..documents.appointment_pdf import build_appointment_pdf
from ..errors import NotFound
from ..ids import parse_id
from ..models.models import User
from ..schemas.appointments import AppointmentCreate, AppointmentOut
from ..services import appointments as workflow
from ..services.access_policy import require
from ..services.entity_store import EntityStore
from ..storage.provider import BlobStore


router = APIRouter(prefix="/api/appointments", tags=["appointments"])


def _pdf_response(content: bytes, appointment_id: int) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=appointment-{appointment_id}.pdf"},
    )


@router.post("", response_model=AppointmentOut, status_code=201)
def create_appointment(
    payload: AppointmentCreate,
    store: EntityStore = Depends(get_store),
    user: User = Depends(require("appointments:create")),
):
    return workflow.open_appointment(store, user, payload)


@router.get("", response_model=List[AppointmentOut])
def list_appointments(
    store: EntityStore = Depends(get_store),
    user: User = Depends(require("appointments:list")),
):
    return workflow.visible_appointments(store, user)


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(
    appointment_id: str,
    store: EntityStore = Depends(get_store),
    user: User = Depends(require("appointments:read")),
):
    return workflow.load_visible(store, user, parse_id(appointment_id))


@router.patch("/{appointment_id}", response_model=AppointmentOut)
def approve_appointment(
    appointment_id: str,
    store: EntityStore = Depends(get_store),
    user: User = Depends(require("appointments:approve")),
):
    return workflow.approve(store, user, parse_id(appointment_id))


@router.post("/{appointment_id}/pdf", response_model=AppointmentOut)
async def upload_appointment_pdf(
    appointment_id: str,
    pdf: Optional[UploadFile] = File(None),
    store: EntityStore = Depends(get_store),
    blobs: BlobStore = Depends(get_blob_store),
    user: User = Depends(require("appointments:upload_pdf")),
):
    aid = parse_id(appointment_id)
    data = await pdf.read() if pdf is not None else None
    content_type = pdf.content_type if pdf is not None else None
    return workflow.upload_pdf(store, blobs, user, aid, data, content_type)


@router.get("/{appointment_id}/download-pdf")
def download_appointment_pdf(
    appointment_id: str,
    store: EntityStore = Depends(get_store),
    blobs: BlobStore = Depends(get_blob_store),
    user: User = Depends(require("appointments:download_pdf")),
):
    aid = parse_id(appointment_id)
    return _pdf_response(workflow.read_pdf(store, blobs, user, aid), aid)


@router.get("/{appointment_id}/pdf")
def render_appointment_pdf(
    appointment_id: str,
    store: EntityStore = Depends(get_store),
    user: User = Depends(require("appointments:render_pdf")),
):
    appointment = workflow.load_visible(store, user, parse_id(appointment_id))
    client = store.get_client(appointment.client_id)
    if client is None:
        raise NotFound("Client not found")
    return _pdf_response(build_appointment_pdf(appointment, client), appointment.id)

"""
Render a one-page "Appointment Details" summary for an appointment.
"""
import io
import json

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..models.models import Appointment, Client


FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


def build_appointment_pdf(appointment: Appointment, client: Client) -> bytes:
    buf = io.BytesIO()
    page_width, page_height = A4
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(f"Appointment {appointment.id}")

    c.setFont(FONT_BOLD, 25)
    c.drawCentredString(page_width / 2, page_height - 90, "Appointment Details")

    y = page_height - 150
    c.setFont(FONT, 14)
    for line in (
        f"Client: {client.full_name}",
        f"Passport Number: {client.passport_number}",
        f"National ID: {client.national_id}",
        f"Status: {appointment.status}",
        "Booking Details:",
    ):
        c.drawString(72, y, line)
        y -= 22

    c.setFont(FONT, 11)
    for line in json.dumps(appointment.booking_details or {}, indent=2).splitlines():
        c.drawString(90, y, line)
        y -= 16

    c.showPage()
    c.save()
    return buf.getvalue()

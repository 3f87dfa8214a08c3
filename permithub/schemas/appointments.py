from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BookingDetails(BaseModel):
    date: str


class AppointmentCreate(BaseModel):
    # status, collected_by and the approval fields are set by the server;
    # anything the caller sends for them is dropped
    model_config = ConfigDict(extra="ignore")

    client_id: int = Field(gt=0)
    team_id: Optional[int] = Field(default=None, gt=0)
    booking_details: Optional[BookingDetails] = None


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    team_id: int
    status: str
    collected_by: int
    approved_by: Optional[int] = None
    pdf_url: Optional[str] = None
    booking_details: BookingDetails
    created_at: datetime

from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


Workplace = Literal[
    "Bahrain",
    "Kuwait",
    "Oman",
    "Qatar",
    "Saudi Arabia",
    "United Arab Emirates",
    "Other",
]


class ClientBase(BaseModel):
    passport_number: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    phone_number: str = Field(min_length=10)
    email: EmailStr
    national_id: str = Field(min_length=1)
    passport_image: str = Field(min_length=1)  # base64 encoded
    work_type: str = Field(min_length=1)
    workplace: Workplace
    gender: Literal["male", "female"]


class ClientOut(ClientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str

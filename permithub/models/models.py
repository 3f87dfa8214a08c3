from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base


ROLES = ("admin", "collector", "approver")

APPOINTMENT_PENDING = "pending"
APPOINTMENT_APPROVED = "approved"
APPOINTMENT_STATUSES = (APPOINTMENT_PENDING, APPOINTMENT_APPROVED)

GCC_COUNTRIES = (
    "Bahrain",
    "Kuwait",
    "Oman",
    "Qatar",
    "Saudi Arabia",
    "United Arab Emirates",
    "Other",
)

GENDERS = ("male", "female")


def int_pk() -> Mapped[int]:
    return mapped_column(Integer, primary_key=True, autoincrement=True)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = int_pk()
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # admin|collector|approver
    created_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))  # admin who created this user
    team_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("teams.id"), index=True)  # current team
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)  # admin who created the team
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class TeamMember(Base):
    """Membership history. The current team of a user is ``User.team_id``."""

    __tablename__ = "team_members"

    id: Mapped[int] = int_pk()
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    added_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = int_pk()
    passport_number: Mapped[str] = mapped_column(String(50), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    national_id: Mapped[str] = mapped_column(String(50), nullable=False)
    passport_image: Mapped[str] = mapped_column(Text, nullable=False)  # base64
    work_type: Mapped[str] = mapped_column(String(100), nullable=False)
    workplace: Mapped[str] = mapped_column(String(50), nullable=False)  # one of GCC_COUNTRIES
    gender: Mapped[str] = mapped_column(String(10), nullable=False)


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = int_pk()
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=APPOINTMENT_PENDING)
    collected_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    approved_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))
    pdf_url: Mapped[Optional[str]] = mapped_column(String(500))
    booking_details: Mapped[dict] = mapped_column(JSON, nullable=False)  # {"date": iso string}
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

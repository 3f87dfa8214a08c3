"""
Entity store: create/read/update access to users, teams, clients and appointments.

Every ``get_*`` operation treats an id that is not a positive integer the same
as an unknown id and returns ``None``. Rows are never deleted.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.passwords import get_password_hash
from ..errors import Conflict, InvalidInput, NotFound
from ..ids import is_valid_id
from ..models.models import (
    APPOINTMENT_APPROVED,
    APPOINTMENT_PENDING,
    APPOINTMENT_STATUSES,
    GCC_COUNTRIES,
    GENDERS,
    ROLES,
    Appointment,
    Client,
    Team,
    TeamMember,
    User,
)


logger = structlog.get_logger(__name__)

# Fields of an appointment that may change after creation
APPOINTMENT_MUTABLE_FIELDS = frozenset({"status", "approved_by", "pdf_url"})

CLIENT_FIELDS = (
    "passport_number",
    "full_name",
    "phone_number",
    "email",
    "national_id",
    "passport_image",
    "work_type",
    "workplace",
    "gender",
)


class EntityStore:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, model, entity_id: Any):
        if not is_valid_id(entity_id):
            return None
        return self.db.get(model, entity_id)

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    # Users

    def get_user(self, user_id: Any) -> Optional[User]:
        return self._get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        if not username:
            return None
        return self.db.query(User).filter(User.username == username).first()

    def create_user(
        self,
        username: str,
        password: str,
        role: str,
        created_by: Optional[int] = None,
        team_id: Optional[int] = None,
    ) -> User:
        if role not in ROLES:
            raise InvalidInput(f"Unknown role: {role}")
        if not username or not password:
            raise InvalidInput("Username and password are required")
        if team_id is not None and self.get_team(team_id) is None:
            raise InvalidInput("Unknown team")
        if self.get_user_by_username(username) is not None:
            raise Conflict("Username already exists")
        user = User(
            username=username,
            password_hash=get_password_hash(password),
            role=role,
            created_by=created_by,
            team_id=team_id,
        )
        try:
            self._save(user)
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Username already exists")
        logger.info("user_created", user_id=user.id, role=role, created_by=created_by)
        return user

    def get_all_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id.asc()).all()

    def update_user_password(self, user_id: int, new_password: str) -> None:
        user = self.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        if not new_password:
            raise InvalidInput("Password is required")
        user.password_hash = get_password_hash(new_password)
        self.db.commit()
        logger.info("user_password_updated", user_id=user.id)

    def update_user_team(self, user_id: int, team_id: Optional[int]) -> None:
        user = self.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        if team_id is not None and self.get_team(team_id) is None:
            raise NotFound("Team not found")
        user.team_id = team_id
        self.db.commit()
        logger.info("user_team_updated", user_id=user.id, team_id=team_id)

    # Teams

    def create_team(self, name: str, created_by: int, description: Optional[str] = None) -> Team:
        if not name or not name.strip():
            raise InvalidInput("Team name is required")
        team = self._save(Team(name=name.strip(), description=description, created_by=created_by))
        logger.info("team_created", team_id=team.id, created_by=created_by)
        return team

    def get_team(self, team_id: Any) -> Optional[Team]:
        return self._get(Team, team_id)

    def get_all_teams(self) -> List[Team]:
        return self.db.query(Team).order_by(Team.id.asc()).all()

    def get_team_members(self, team_id: Any) -> List[User]:
        if not is_valid_id(team_id):
            return []
        return self.db.query(User).filter(User.team_id == team_id).order_by(User.id.asc()).all()

    def add_team_member(self, team_id: int, user_id: int, added_by: int) -> TeamMember:
        if self.get_team(team_id) is None:
            raise NotFound("Team not found")
        if self.get_user(user_id) is None:
            raise NotFound("User not found")
        member = self._save(TeamMember(team_id=team_id, user_id=user_id, added_by=added_by))
        logger.info("team_member_added", team_id=team_id, user_id=user_id, added_by=added_by)
        return member

    def remove_team_member(self, team_id: Optional[int], user_id: int) -> None:
        """Clear the user's current team.

        A falsy ``team_id`` means "whatever team the user is in". History rows
        in ``team_members`` are left alone.
        """
        user = self.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        if team_id and user.team_id != team_id:
            return
        self.update_user_team(user.id, None)

    # Clients

    def create_client(self, **fields) -> Client:
        unknown = set(fields) - set(CLIENT_FIELDS)
        if unknown:
            raise InvalidInput(f"Unknown client fields: {', '.join(sorted(unknown))}")
        missing = [f for f in CLIENT_FIELDS if not fields.get(f)]
        if missing:
            raise InvalidInput(f"Missing client fields: {', '.join(missing)}")
        if fields["workplace"] not in GCC_COUNTRIES:
            raise InvalidInput(f"Unknown workplace: {fields['workplace']}")
        if fields["gender"] not in GENDERS:
            raise InvalidInput(f"Unknown gender: {fields['gender']}")
        client = self._save(Client(**fields))
        logger.info("client_created", client_id=client.id)
        return client

    def get_client(self, client_id: Any) -> Optional[Client]:
        return self._get(Client, client_id)

    def get_all_clients(self) -> List[Client]:
        return self.db.query(Client).order_by(Client.id.asc()).all()

    # Appointments

    def create_appointment(
        self,
        client_id: int,
        team_id: int,
        collected_by: int,
        booking_details: Optional[Dict[str, Any]] = None,
    ) -> Appointment:
        if self.get_client(client_id) is None:
            raise NotFound("Client not found")
        if self.get_team(team_id) is None:
            raise NotFound("Team not found")
        details = dict(booking_details or {})
        if not details.get("date"):
            details["date"] = datetime.now(timezone.utc).isoformat()
        appointment = self._save(
            Appointment(
                client_id=client_id,
                team_id=team_id,
                status=APPOINTMENT_PENDING,
                collected_by=collected_by,
                approved_by=None,
                pdf_url=None,
                booking_details=details,
            )
        )
        logger.info("appointment_created", appointment_id=appointment.id, collected_by=collected_by)
        return appointment

    def get_appointment(self, appointment_id: Any) -> Optional[Appointment]:
        return self._get(Appointment, appointment_id)

    def get_all_appointments(self) -> List[Appointment]:
        return self.db.query(Appointment).order_by(Appointment.id.asc()).all()

    def get_team_appointments(self, team_id: Any) -> List[Appointment]:
        if not is_valid_id(team_id):
            return []
        return (
            self.db.query(Appointment)
            .filter(Appointment.team_id == team_id)
            .order_by(Appointment.id.asc())
            .all()
        )

    def update_appointment(self, appointment_id: Any, changes: Dict[str, Any]) -> Appointment:
        """Apply a field-level patch to an appointment.

        Only ``status``, ``approved_by`` and ``pdf_url`` may change. ``approved_by``
        is written together with ``status = "approved"`` and never on its own,
        and an approved appointment never goes back to pending.

        The write is conditional on the status read here. If another request
        changed it in the meantime nothing is written and ``Conflict`` is raised.
        """
        if not is_valid_id(appointment_id):
            raise InvalidInput("Invalid appointment ID")
        appointment = self.get_appointment(appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found")

        unknown = set(changes) - APPOINTMENT_MUTABLE_FIELDS
        if unknown:
            raise InvalidInput(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

        status = changes.get("status", appointment.status)
        if status not in APPOINTMENT_STATUSES:
            raise InvalidInput(f"Unknown status: {status}")
        if appointment.status == APPOINTMENT_APPROVED and status != APPOINTMENT_APPROVED:
            raise InvalidInput("An approved appointment cannot return to pending")

        becomes_approved = appointment.status != APPOINTMENT_APPROVED and status == APPOINTMENT_APPROVED
        if "approved_by" in changes and not becomes_approved:
            raise InvalidInput("approved_by is only set when the appointment is approved")
        if becomes_approved and not is_valid_id(changes.get("approved_by")):
            raise InvalidInput("approved_by is required to approve an appointment")

        if not changes:
            return appointment
        result = self.db.execute(
            update(Appointment)
            .where(Appointment.id == appointment.id, Appointment.status == appointment.status)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise Conflict("Appointment is already approved")
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def approve_appointment(self, appointment_id: Any, approver_id: int) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment is not None and appointment.status == APPOINTMENT_APPROVED:
            raise Conflict("Appointment is already approved")
        appointment = self.update_appointment(
            appointment_id, {"status": APPOINTMENT_APPROVED, "approved_by": approver_id}
        )
        logger.info("appointment_approved", appointment_id=appointment.id, approved_by=approver_id)
        return appointment

    def attach_pdf(self, appointment_id: Any, pdf_url: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment is not None and appointment.status != APPOINTMENT_APPROVED:
            raise Conflict("Appointment must be approved before a PDF is attached")
        appointment = self.update_appointment(appointment_id, {"pdf_url": pdf_url})
        logger.info("appointment_pdf_attached", appointment_id=appointment.id)
        return appointment

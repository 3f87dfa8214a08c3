"""
First-run provisioning of the initial administrator.
"""
import structlog

from ..errors import Conflict
from ..models.models import User
from .entity_store import EntityStore


logger = structlog.get_logger(__name__)


def has_admin(store: EntityStore) -> bool:
    return store.db.query(User).filter(User.role == "admin").first() is not None


def provision_admin(store: EntityStore, username: str, password: str) -> User:
    """Create the admin ``username`` unless it already exists.

    An existing admin with that name is returned untouched; an existing
    non-admin with that name is a ``Conflict``.
    """
    existing = store.get_user_by_username(username)
    if existing is not None:
        if existing.role != "admin":
            raise Conflict(f"User {username} exists and is not an admin")
        logger.info("admin_already_provisioned", user_id=existing.id)
        return existing
    user = store.create_user(username=username, password=password, role="admin")
    logger.info("admin_provisioned", user_id=user.id)
    return user

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from teamclock.models.user import MANAGER_ROLES, User
from teamclock.services.auth_service import hash_password

logger = logging.getLogger(__name__)


class DuplicateEmailError(ValueError):
    pass


def validate_manager_reference(db: Session, id_manager: Optional[int]) -> None:
    if id_manager is None:
        return
    manager = db.get(User, int(id_manager))
    if manager is None or manager.role not in MANAGER_ROLES:
        raise ValueError('Only users with the role "manager" or "admin" can be assigned as a manager')


def _ensure_email_free(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    q = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != int(exclude_id))
    if q.first() is not None:
        raise DuplicateEmailError(f"Email {email} is already in use")


def create_user(db: Session, fields: dict[str, Any]) -> User:
    """Caller owns the transaction."""
    email = fields["email"].strip().lower()
    _ensure_email_free(db, email)
    validate_manager_reference(db, fields.get("id_manager"))

    user = User(
        name=fields["name"],
        surname=fields["surname"],
        mobile_number=fields.get("mobile_number"),
        email=email,
        password=hash_password(fields["password"]),
        role=fields["role"],
        id_manager=fields.get("id_manager"),
    )
    db.add(user)
    db.flush()
    db.refresh(user)

    logger.info("User created", extra={"user_id": user.id, "role": user.role})
    return user


def update_user(db: Session, user: User, changes: dict[str, Any]) -> User:
    """Apply only the keys present in ``changes``. Caller owns the transaction."""
    if "email" in changes and changes["email"] is not None:
        email = changes["email"].strip().lower()
        _ensure_email_free(db, email, exclude_id=user.id)
        user.email = email

    if "id_manager" in changes:
        if changes["id_manager"] is not None and int(changes["id_manager"]) == user.id:
            raise ValueError("A user cannot be their own manager")
        validate_manager_reference(db, changes["id_manager"])
        user.id_manager = changes["id_manager"]

    for name in ("name", "surname", "mobile_number", "role"):
        if name in changes and changes[name] is not None:
            setattr(user, name, changes[name])

    if changes.get("password"):
        user.password = hash_password(changes["password"])

    db.flush()
    db.refresh(user)
    return user

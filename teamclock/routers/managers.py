from typing import List

from fastapi import APIRouter, Depends, HTTPException

from teamclock.core.authorization import Role, require_role
from teamclock.database import SessionLocal
from teamclock.deps.auth import CurrentUser
from teamclock.models.user import User
from teamclock.schemas.user import UserResponse

router = APIRouter(prefix="/managers", tags=["Managers"])


@router.get("", response_model=List[UserResponse])
def list_managers(_admin: CurrentUser = Depends(require_role(Role.ADMIN))):
    db = SessionLocal()
    try:
        return db.query(User).filter(User.role == "manager").order_by(User.id.asc()).all()
    finally:
        db.close()


@router.get("/{manager_id}/team", response_model=List[UserResponse])
def get_manager_team(
    manager_id: int,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    """Direct reports of ``manager_id``; managers may only look at their own."""
    if current.role != Role.ADMIN.value and current.id != int(manager_id):
        raise HTTPException(status_code=403, detail="Forbidden: You can only view your own team.")

    db = SessionLocal()
    try:
        if db.get(User, int(manager_id)) is None:
            raise HTTPException(status_code=404, detail="Manager not found")

        return (
            db.query(User)
            .filter(User.id_manager == int(manager_id))
            .order_by(User.id.asc())
            .all()
        )
    finally:
        db.close()

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from teamclock.core.authorization import Role, require_role
from teamclock.database import SessionLocal
from teamclock.deps.auth import CurrentUser, require_auth
from teamclock.models.team import Team
from teamclock.models.user import User
from teamclock.schemas.user import UserCreate, UserResponse, UserUpdate
from teamclock.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserResponse])
def list_users(_current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        return db.query(User).order_by(User.id.asc()).all()
    finally:
        db.close()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, _current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        user = db.get(User, int(user_id))
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        return user
    finally:
        db.close()


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    payload: UserCreate,
    _admin: CurrentUser = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        user = user_service.create_user(db, payload.model_dump())
        db.commit()
        return user
    except user_service.DuplicateEmailError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        db.close()


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    current: CurrentUser = Depends(require_auth),
):
    changes = payload.model_dump(exclude_unset=True)

    if current.role != Role.ADMIN.value:
        if current.id != int(user_id):
            raise HTTPException(status_code=403, detail="You can only update your own profile")
        if "role" in changes or "id_manager" in changes:
            raise HTTPException(status_code=403, detail="Only admins can change role or manager")

    db = SessionLocal()
    try:
        user = db.get(User, int(user_id))
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")

        user_service.update_user(db, user, changes)
        db.commit()
        return user
    except user_service.DuplicateEmailError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        db.close()


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    _admin: CurrentUser = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        user = db.get(User, int(user_id))
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")

        if db.query(Team.id).filter(Team.id_manager == user.id).first() is not None:
            raise HTTPException(
                status_code=409,
                detail="User still manages teams; reassign them first",
            )

        db.delete(user)
        db.commit()
        return {"message": "User deleted successfully"}
    finally:
        db.close()

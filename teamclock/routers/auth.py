from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
import logging

from teamclock.database import SessionLocal
from teamclock.deps.auth import CurrentUser, require_auth
from teamclock.models.user import User
from teamclock.services.auth_service import create_access_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/login")
def login(payload: LoginRequest):
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
        if user is None or not verify_password(payload.password, user.password):
            logger.info("Login rejected", extra={"email": payload.email})
            raise HTTPException(status_code=401, detail="Invalid credentials")

        try:
            token = create_access_token(user_id=user.id, role=user.role)
        except ValueError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
    finally:
        db.close()

    return {
        "access_token": token,
        "token_type": "bearer",
    }


@router.get("/me")
def me(current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        user = db.get(User, current.id)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        return {"id": user.id, "email": user.email, "role": user.role}
    finally:
        db.close()

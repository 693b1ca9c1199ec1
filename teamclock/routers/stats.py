from datetime import date

from fastapi import APIRouter, Depends

from teamclock.core.authorization import Role, require_role
from teamclock.database import SessionLocal
from teamclock.deps.auth import CurrentUser
from teamclock.services import reporting_service

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("/admin")
def get_admin_stats(_admin: CurrentUser = Depends(require_role(Role.ADMIN))):
    db = SessionLocal()
    try:
        return reporting_service.admin_stats(db=db, today=date.today())
    finally:
        db.close()

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from teamclock.core.authorization import Role, require_role
from teamclock.database import SessionLocal
from teamclock.deps.auth import CurrentUser, require_auth
from teamclock.models.timetable import Timetable
from teamclock.schemas.timetable import TimetableCreate, TimetableResponse, TimetableUpdate
from teamclock.services.status_calculator import time_to_minutes

router = APIRouter(prefix="/timetables", tags=["Timetables"])


def _check_window(shift_start: str, shift_end: str) -> None:
    if time_to_minutes(shift_start) >= time_to_minutes(shift_end):
        raise HTTPException(status_code=400, detail="Shift_start must be before Shift_end")


@router.get("", response_model=List[TimetableResponse])
def list_timetables(_current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        return db.query(Timetable).order_by(Timetable.id.asc()).all()
    finally:
        db.close()


@router.get("/{timetable_id}", response_model=TimetableResponse)
def get_timetable(timetable_id: int, _current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        row = db.get(Timetable, int(timetable_id))
        if row is None:
            raise HTTPException(status_code=404, detail="Timetable not found")
        return row
    finally:
        db.close()


@router.post("", response_model=TimetableResponse, status_code=201)
def create_timetable(
    payload: TimetableCreate,
    _writer: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    _check_window(payload.shift_start, payload.shift_end)

    db = SessionLocal()
    try:
        row = Timetable(shift_start=payload.shift_start, shift_end=payload.shift_end)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    finally:
        db.close()


@router.put("/{timetable_id}", response_model=TimetableResponse)
def update_timetable(
    timetable_id: int,
    payload: TimetableUpdate,
    _writer: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    db = SessionLocal()
    try:
        row = db.get(Timetable, int(timetable_id))
        if row is None:
            raise HTTPException(status_code=404, detail="Timetable not found")

        shift_start = payload.shift_start if payload.shift_start is not None else row.shift_start
        shift_end = payload.shift_end if payload.shift_end is not None else row.shift_end
        _check_window(shift_start, shift_end)

        row.shift_start = shift_start
        row.shift_end = shift_end
        db.commit()
        db.refresh(row)
        return row
    finally:
        db.close()


@router.delete("/{timetable_id}")
def delete_timetable(
    timetable_id: int,
    _writer: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    db = SessionLocal()
    try:
        row = db.get(Timetable, int(timetable_id))
        if row is None:
            raise HTTPException(status_code=404, detail="Timetable not found")

        for team in row.teams:
            team.id_timetable = None
        db.delete(row)
        db.commit()
        return {"message": "Timetable deleted successfully"}
    finally:
        db.close()

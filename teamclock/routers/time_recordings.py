from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from teamclock.core.authorization import Role, require_role
from teamclock.database import SessionLocal
from teamclock.deps.auth import CurrentUser, require_auth
from teamclock.models.team import Team
from teamclock.models.time_recording import RECORDING_TYPES, TimeRecording
from teamclock.schemas.time_recording import (
    TimeRecordingCreate,
    TimeRecordingResponse,
    TimeRecordingUpdate,
)
from teamclock.services import reporting_service, time_recording_service
from teamclock.services.time_recording_service import (
    day_bounds,
    manages_user,
    parse_period_bound,
    recordings_between,
    visible_user_ids,
)

router = APIRouter(
    prefix="/time_recordings",
    tags=["Time Recordings"],
)


def _period(start_date: Optional[str], end_date: Optional[str]):
    try:
        return parse_period_bound(start_date), parse_period_bound(end_date, end=True)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _check_can_touch(db: Session, current: CurrentUser, target_user_id: int, action: str) -> None:
    """Employees act on themselves, managers on themselves and their team members."""
    if current.role == Role.ADMIN.value or current.id == int(target_user_id):
        return
    if current.role == Role.MANAGER.value and manages_user(db, current.id, target_user_id):
        return
    raise HTTPException(
        status_code=403,
        detail=f"Forbidden - cannot {action} recordings of users outside your team",
    )


def _to_response(row: TimeRecording) -> TimeRecordingResponse:
    # must run while the session is open so row.user can load
    return TimeRecordingResponse.model_validate(row)


def _get_recording(db: Session, recording_id: int) -> TimeRecording:
    row = (
        db.query(TimeRecording)
        .options(joinedload(TimeRecording.user))
        .filter(TimeRecording.id == int(recording_id))
        .first()
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Time recording not found")
    return row


@router.get("", response_model=list[TimeRecordingResponse])
def list_time_recordings(
    current: CurrentUser = Depends(require_auth),
    id_user: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    type: Optional[str] = None,
    limit: int = Query(default=500, ge=1, le=5000),
    offset: int = Query(default=0, ge=0),
):
    start, end = _period(start_date, end_date)

    db = SessionLocal()
    try:
        q = db.query(TimeRecording).options(joinedload(TimeRecording.user))

        if current.role == Role.EMPLOYEE.value:
            q = q.filter(TimeRecording.id_user == current.id)
        elif id_user is not None:
            _check_can_touch(db, current, id_user, "read")
            q = q.filter(TimeRecording.id_user == int(id_user))
        else:
            visible = visible_user_ids(db, current.id, current.role)
            if visible is not None:
                q = q.filter(TimeRecording.id_user.in_(visible))

        if type in RECORDING_TYPES:
            q = q.filter(TimeRecording.type == type)
        if start is not None:
            q = q.filter(TimeRecording.timestamp >= start)
        if end is not None:
            q = q.filter(TimeRecording.timestamp < end)

        rows = (
            q.order_by(TimeRecording.timestamp.desc(), TimeRecording.id.desc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
        return [_to_response(r) for r in rows]
    finally:
        db.close()


@router.get("/stats")
def get_time_recording_stats(
    current: CurrentUser = Depends(require_auth),
    id_user: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
):
    start, end = _period(start_date, end_date)

    db = SessionLocal()
    try:
        if current.role == Role.EMPLOYEE.value:
            user_ids = [current.id]
        elif id_user is not None:
            _check_can_touch(db, current, id_user, "read")
            user_ids = [int(id_user)]
        else:
            user_ids = visible_user_ids(db, current.id, current.role)

        return reporting_service.time_recording_stats(
            db=db,
            user_ids=user_ids,
            start=start,
            end=end,
            period={"start": start_date, "end": end_date},
        )
    finally:
        db.close()


@router.get("/team/{team_id}", response_model=list[TimeRecordingResponse])
def get_team_time_recordings(
    team_id: int,
    current: CurrentUser = Depends(require_auth),
    day: Optional[date] = Query(default=None, alias="date"),
):
    """One day's recordings (default today) for every member of a team."""
    db = SessionLocal()
    try:
        team = db.get(Team, int(team_id))
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")

        member_ids = [m.id_user for m in team.memberships]
        if (
            current.role != Role.ADMIN.value
            and team.id_manager != current.id
            and current.id not in member_ids
        ):
            raise HTTPException(status_code=403, detail="You are not part of this team")

        start, end = day_bounds(day or date.today())
        return [_to_response(r) for r in recordings_between(db, member_ids, start, end)]
    finally:
        db.close()


@router.get("/{recording_id}", response_model=TimeRecordingResponse)
def get_time_recording(recording_id: int, current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        row = _get_recording(db, recording_id)
        _check_can_touch(db, current, row.id_user, "read")
        return _to_response(row)
    finally:
        db.close()


@router.post("", response_model=TimeRecordingResponse, status_code=201)
def create_time_recording(
    payload: TimeRecordingCreate,
    current: CurrentUser = Depends(require_auth),
):
    db = SessionLocal()
    try:
        if current.role == Role.EMPLOYEE.value and payload.id_user != current.id:
            raise HTTPException(
                status_code=403,
                detail="Forbidden - employees can only create their own recordings",
            )
        _check_can_touch(db, current, payload.id_user, "create")

        row = time_recording_service.create_recording(
            payload.id_user,
            payload.timestamp,
            payload.type,
            db=db,
        )
        db.commit()
        return _to_response(_get_recording(db, row.id))
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        db.close()


@router.put("/{recording_id}", response_model=TimeRecordingResponse)
def update_time_recording(
    recording_id: int,
    payload: TimeRecordingUpdate,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    db = SessionLocal()
    try:
        row = _get_recording(db, recording_id)
        _check_can_touch(db, current, row.id_user, "update")
        if payload.id_user is not None:
            _check_can_touch(db, current, payload.id_user, "update")

        time_recording_service.update_recording(
            row,
            db=db,
            timestamp=payload.timestamp,
            kind=payload.type,
            id_user=payload.id_user,
        )
        db.commit()
        return _to_response(_get_recording(db, row.id))
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        db.close()


@router.delete("/{recording_id}")
def delete_time_recording(
    recording_id: int,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    db = SessionLocal()
    try:
        row = _get_recording(db, recording_id)
        _check_can_touch(db, current, row.id_user, "delete")

        db.delete(row)
        db.commit()
        return {"message": "Time recording deleted successfully"}
    finally:
        db.close()

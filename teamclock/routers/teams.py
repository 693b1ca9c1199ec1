from datetime import date, datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from teamclock.core.authorization import Role, require_role
from teamclock.database import SessionLocal
from teamclock.deps.auth import CurrentUser, require_auth
from teamclock.models.team import Team
from teamclock.models.team_member import TeamMember
from teamclock.models.timetable import Timetable
from teamclock.models.user import MANAGER_ROLES, User
from teamclock.schemas.team import TeamCreate, TeamMemberAdd, TeamResponse, TeamUpdate
from teamclock.services import reporting_service
from teamclock.services.time_recording_service import parse_period_bound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["Teams"])


def _user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "surname": user.surname,
        "email": user.email,
        "role": user.role,
    }


def _to_response(team: Team) -> dict:
    return {
        "id": team.id,
        "name": team.name,
        "id_manager": team.id_manager,
        "id_timetable": team.id_timetable,
        "manager": None if team.manager is None else _user_summary(team.manager),
        "members": [
            _user_summary(m.user) for m in sorted(team.memberships, key=lambda m: m.id_user)
        ],
    }


def _get_team(db: Session, team_id: int) -> Team:
    team = db.get(Team, int(team_id))
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


def _check_manager(db: Session, id_manager: int) -> None:
    manager = db.get(User, int(id_manager))
    if manager is None or manager.role not in MANAGER_ROLES:
        raise HTTPException(status_code=400, detail="Manager does not exist or is not a manager")


def _check_timetable(db: Session, id_timetable: Optional[int]) -> None:
    if id_timetable is not None and db.get(Timetable, int(id_timetable)) is None:
        raise HTTPException(status_code=400, detail="Timetable does not exist")


def _require_team_owner(team: Team, current: CurrentUser) -> None:
    if current.role != Role.ADMIN.value and team.id_manager != current.id:
        raise HTTPException(status_code=403, detail="You can only manage your own teams")


def _require_team_reader(team: Team, current: CurrentUser) -> None:
    if current.role == Role.ADMIN.value or team.id_manager == current.id:
        return
    if any(m.id_user == current.id for m in team.memberships):
        return
    raise HTTPException(status_code=403, detail="You are not part of this team")


@router.get("", response_model=List[TeamResponse])
def list_teams(
    id_user: Optional[int] = None,
    _current: CurrentUser = Depends(require_auth),
):
    db = SessionLocal()
    try:
        q = db.query(Team)
        if id_user is not None:
            q = q.join(TeamMember, TeamMember.id_team == Team.id).filter(
                TeamMember.id_user == int(id_user)
            )
        return [_to_response(t) for t in q.order_by(Team.id.asc()).all()]
    finally:
        db.close()


@router.get("/{team_id}", response_model=TeamResponse)
def get_team(team_id: int, _current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        return _to_response(_get_team(db, team_id))
    finally:
        db.close()


@router.post("", response_model=TeamResponse, status_code=201)
def create_team(
    payload: TeamCreate,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    if current.role != Role.ADMIN.value and payload.id_manager != current.id:
        raise HTTPException(status_code=403, detail="Managers can only create teams they manage")

    db = SessionLocal()
    try:
        _check_manager(db, payload.id_manager)
        _check_timetable(db, payload.id_timetable)

        team = Team(
            name=payload.name,
            id_manager=payload.id_manager,
            id_timetable=payload.id_timetable,
        )
        db.add(team)
        db.commit()
        db.refresh(team)
        logger.info("Team created", extra={"team_id": team.id, "id_manager": team.id_manager})
        return _to_response(team)
    finally:
        db.close()


@router.put("/{team_id}", response_model=TeamResponse)
def update_team(
    team_id: int,
    payload: TeamUpdate,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    changes = payload.model_dump(exclude_unset=True)

    db = SessionLocal()
    try:
        team = _get_team(db, team_id)
        _require_team_owner(team, current)

        if changes.get("id_manager") is not None:
            if current.role != Role.ADMIN.value and changes["id_manager"] != current.id:
                raise HTTPException(status_code=403, detail="Only admins can hand a team over")
            _check_manager(db, changes["id_manager"])
            team.id_manager = changes["id_manager"]

        if "id_timetable" in changes:
            _check_timetable(db, changes["id_timetable"])
            team.id_timetable = changes["id_timetable"]

        if changes.get("name") is not None:
            team.name = changes["name"]

        db.commit()
        db.refresh(team)
        return _to_response(team)
    finally:
        db.close()


@router.delete("/{team_id}")
def delete_team(
    team_id: int,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    db = SessionLocal()
    try:
        team = _get_team(db, team_id)
        _require_team_owner(team, current)

        db.delete(team)
        db.commit()
        return {"message": "Team deleted successfully"}
    finally:
        db.close()


@router.post("/{team_id}/users", status_code=201)
def add_user_to_team(
    team_id: int,
    payload: TeamMemberAdd,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    db = SessionLocal()
    try:
        team = db.get(Team, int(team_id))
        user = db.get(User, int(payload.id_user))
        if team is None or user is None:
            raise HTTPException(status_code=404, detail="Team or user not found")
        _require_team_owner(team, current)

        exists = (
            db.query(TeamMember.id)
            .filter(TeamMember.id_team == team.id, TeamMember.id_user == user.id)
            .first()
        )
        if exists is not None:
            raise HTTPException(status_code=400, detail="User already in this team")

        db.add(TeamMember(id_team=team.id, id_user=user.id))
        db.commit()
        return {"message": "User added to team"}
    finally:
        db.close()


@router.delete("/{team_id}/users/{user_id}")
def remove_user_from_team(
    team_id: int,
    user_id: int,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    db = SessionLocal()
    try:
        team = _get_team(db, team_id)
        _require_team_owner(team, current)

        link = (
            db.query(TeamMember)
            .filter(TeamMember.id_team == team.id, TeamMember.id_user == int(user_id))
            .first()
        )
        if link is None:
            raise HTTPException(status_code=404, detail="User not in this team")

        db.delete(link)
        db.commit()
        return {"message": "User removed from team"}
    finally:
        db.close()


@router.post("/validate/conflicts")
def validate_team_assignments(_current: CurrentUser = Depends(require_auth)):
    """A user may not sit in two teams run by the same manager."""
    db = SessionLocal()
    try:
        seen: dict[int, set[int]] = {}
        for team in db.query(Team).order_by(Team.id.asc()).all():
            for membership in team.memberships:
                managers = seen.setdefault(membership.id_user, set())
                if team.id_manager in managers:
                    raise HTTPException(
                        status_code=400,
                        detail=(
                            f"User {membership.id_user} is in conflicting teams "
                            f"managed by manager {team.id_manager}"
                        ),
                    )
                managers.add(team.id_manager)
        return {"message": "All team assignments are valid"}
    finally:
        db.close()


@router.get("/{team_id}/stats")
def get_team_stats(
    team_id: int,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    current: CurrentUser = Depends(require_role(Role.ADMIN, Role.MANAGER)),
):
    try:
        start = parse_period_bound(start_date)
        end = parse_period_bound(end_date, end=True)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    db = SessionLocal()
    try:
        team = _get_team(db, team_id)
        _require_team_owner(team, current)

        return reporting_service.team_stats(
            db=db,
            team=team,
            start=start,
            end=end,
            period={"start": start_date, "end": end_date},
            today=date.today(),
        )
    finally:
        db.close()


@router.get("/{team_id}/status")
def get_team_status(team_id: int, current: CurrentUser = Depends(require_auth)):
    db = SessionLocal()
    try:
        team = _get_team(db, team_id)
        _require_team_reader(team, current)

        return reporting_service.team_status_board(db=db, team=team, now=datetime.now())
    finally:
        db.close()

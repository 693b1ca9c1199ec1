from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from teamclock.core.config import get_settings
from teamclock.models.team import Team
from teamclock.models.team_member import TeamMember
from teamclock.models.time_recording import ARRIVAL, TimeRecording
from teamclock.models.timetable import Timetable
from teamclock.models.user import User
from teamclock.services import stats_aggregator
from teamclock.services.status_calculator import format_shift, member_snapshot
from teamclock.services.time_recording_service import day_bounds, recordings_between


def _group_by_user(recordings: list[TimeRecording]) -> dict[int, list[TimeRecording]]:
    grouped: dict[int, list[TimeRecording]] = defaultdict(list)
    for rec in recordings:
        grouped[rec.id_user].append(rec)
    return grouped


def shift_start_for_user(db: Session, user_id: int) -> Optional[str]:
    """Shift start of the first team (lowest id) of the user that has a timetable."""
    row = (
        db.query(Timetable.shift_start)
        .join(Team, Team.id_timetable == Timetable.id)
        .join(TeamMember, TeamMember.id_team == Team.id)
        .filter(TeamMember.id_user == int(user_id))
        .order_by(Team.id.asc())
        .first()
    )
    return None if row is None else row[0]


def time_recording_stats(
    *,
    db: Session,
    user_ids: Optional[list[int]],
    start: Optional[datetime],
    end: Optional[datetime],
    period: dict[str, Any],
) -> dict[str, Any]:
    """
    Per-user work statistics over [start, end).

    Only users with at least one recording in the window appear.
    """
    grouped = _group_by_user(recordings_between(db, user_ids, start, end))

    statistics = []
    for user_id in sorted(grouped):
        user = db.get(User, user_id)
        if user is None:
            continue
        statistics.append(
            stats_aggregator.user_statistics(
                user,
                grouped[user_id],
                shift_start=shift_start_for_user(db, user_id),
            )
        )

    return {"statistics": statistics, "period": period}


def team_stats(
    *,
    db: Session,
    team: Team,
    start: Optional[datetime],
    end: Optional[datetime],
    period: dict[str, Any],
    today: date,
) -> dict[str, Any]:
    """
    Statistics for every member of ``team`` plus team aggregates and a
    presence calendar ending on the period end (or ``today``).
    """
    members = sorted((m.user for m in team.memberships), key=lambda u: u.id)
    member_ids = [u.id for u in members]
    shift_start = team.timetable.shift_start if team.timetable is not None else None

    grouped = _group_by_user(recordings_between(db, member_ids, start, end))
    statistics = [
        stats_aggregator.user_statistics(user, grouped.get(user.id, []), shift_start=shift_start)
        for user in members
    ]

    aggregated = stats_aggregator.aggregate_team(statistics)
    aggregated["teamPunctualityRate"] = stats_aggregator.team_punctuality_rate(
        s["punctualityRate"] for s in statistics
    )

    days = get_settings().presence_calendar_days
    calendar_end = (end - timedelta(microseconds=1)).date() if end is not None else today
    window_start, _ = day_bounds(calendar_end - timedelta(days=days - 1))
    _, window_end = day_bounds(calendar_end)

    present: dict[int, list] = defaultdict(list)
    for rec in recordings_between(db, member_ids, window_start, window_end):
        if rec.type == ARRIVAL:
            present[rec.id_user].append(rec.timestamp)

    return {
        "team": {
            "id": team.id,
            "name": team.name,
            "id_manager": team.id_manager,
            "id_timetable": team.id_timetable,
            "shift": format_shift(team.timetable),
        },
        "statistics": statistics,
        "aggregated": aggregated,
        "presenceCalendar": stats_aggregator.presence_calendar(
            present, len(members), calendar_end, days
        ),
        "period": period,
    }


def team_status_board(*, db: Session, team: Team, now: datetime) -> dict[str, Any]:
    """Live status and situation of each team member for the day of ``now``."""
    shift = format_shift(team.timetable)
    members = sorted((m.user for m in team.memberships), key=lambda u: u.id)

    start, end = day_bounds(now.date())
    grouped = _group_by_user(recordings_between(db, [u.id for u in members], start, end))

    return {
        "team": {"id": team.id, "name": team.name, "shift": shift},
        "date": now.date().isoformat(),
        "members": [
            {
                "id": user.id,
                "name": user.name,
                "surname": user.surname,
                "email": user.email,
                "role": user.role,
                **member_snapshot(grouped.get(user.id, []), shift, now),
            }
            for user in members
        ],
    }


def _currently_present(db: Session, today: date) -> int:
    latest = (
        db.query(
            TimeRecording.id_user.label("id_user"),
            func.max(TimeRecording.timestamp).label("last_timestamp"),
        )
        .group_by(TimeRecording.id_user)
        .subquery()
    )
    start, end = day_bounds(today)
    return (
        db.query(func.count(func.distinct(TimeRecording.id_user)))
        .join(
            latest,
            (TimeRecording.id_user == latest.c.id_user)
            & (TimeRecording.timestamp == latest.c.last_timestamp),
        )
        .filter(
            TimeRecording.type == ARRIVAL,
            TimeRecording.timestamp >= start,
            TimeRecording.timestamp < end,
        )
        .scalar()
        or 0
    )


def admin_stats(*, db: Session, today: date) -> dict[str, Any]:
    roles = {"managers": 0, "employees": 0, "admins": 0}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        key = {"manager": "managers", "employee": "employees", "admin": "admins"}.get(role)
        if key is not None:
            roles[key] = int(count)

    start, end = day_bounds(today)
    today_recordings = (
        db.query(func.count(TimeRecording.id))
        .filter(TimeRecording.timestamp >= start, TimeRecording.timestamp < end)
        .scalar()
    )

    team_sizes = (
        db.query(func.count(TeamMember.id).label("member_count"))
        .group_by(TeamMember.id_team)
        .subquery()
    )
    avg_team_size = db.query(func.avg(team_sizes.c.member_count)).scalar()

    active_managers = db.query(func.count(func.distinct(Team.id_manager))).scalar() or 0

    return {
        "totalUsers": db.query(func.count(User.id)).scalar(),
        "totalTeams": db.query(func.count(Team.id)).scalar(),
        "totalTimetables": db.query(func.count(Timetable.id)).scalar(),
        "roles": roles,
        "todayRecordings": int(today_recordings or 0),
        "currentlyPresent": int(_currently_present(db, today)),
        "teamsWithoutTimetable": db.query(func.count(Team.id))
        .filter(Team.id_timetable.is_(None))
        .scalar(),
        "avgTeamSize": f"{float(avg_team_size or 0):.1f}",
        "activeManagers": int(active_managers),
        "inactiveManagers": max(roles["managers"] - int(active_managers), 0),
    }

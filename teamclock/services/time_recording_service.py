from datetime import date, datetime, time, timedelta
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from teamclock.database import SessionLocal
from teamclock.models.team import Team
from teamclock.models.team_member import TeamMember
from teamclock.models.time_recording import ARRIVAL, RECORDING_TYPES, TimeRecording
from teamclock.models.user import User
from teamclock.services.status_calculator import to_local_naive

logger = logging.getLogger(__name__)


def _normalize_timestamp(value) -> datetime:
    ts = to_local_naive(value)
    if ts is None:
        raise ValueError("timestamp must be an ISO-8601 datetime")
    return ts


def _validate_type(kind: str) -> str:
    if kind not in RECORDING_TYPES:
        raise ValueError('type must be "Arrival" or "Departure"')
    return kind


def last_recording(db: Session, user_id: int) -> Optional[TimeRecording]:
    return (
        db.query(TimeRecording)
        .filter(TimeRecording.id_user == int(user_id))
        .order_by(TimeRecording.timestamp.desc(), TimeRecording.id.desc())
        .first()
    )


def managed_user_ids(db: Session, manager_id: int) -> list[int]:
    """Members of every team managed by ``manager_id``."""
    rows = (
        db.query(TeamMember.id_user)
        .join(Team, Team.id == TeamMember.id_team)
        .filter(Team.id_manager == int(manager_id))
        .distinct()
        .all()
    )
    return [r[0] for r in rows]


def manages_user(db: Session, manager_id: int, user_id: int) -> bool:
    return (
        db.query(TeamMember.id)
        .join(Team, Team.id == TeamMember.id_team)
        .filter(Team.id_manager == int(manager_id), TeamMember.id_user == int(user_id))
        .first()
        is not None
    )


def visible_user_ids(db: Session, user_id: int, role: str) -> Optional[list[int]]:
    """
    User ids whose recordings ``user_id`` may read; None means everyone.
    """
    if role == "admin":
        return None
    if role == "manager":
        ids = managed_user_ids(db, user_id)
        if user_id not in ids:
            ids.append(int(user_id))
        return ids
    return [int(user_id)]


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def recordings_between(
    db: Session,
    user_ids: Optional[Iterable[int]],
    start: Optional[datetime],
    end: Optional[datetime],
) -> list[TimeRecording]:
    """
    Recordings with start <= timestamp < end, grouped by user and oldest
    first. ``user_ids=None`` means every user; open bounds are skipped.
    """
    q = db.query(TimeRecording)

    if user_ids is not None:
        ids = [int(u) for u in user_ids]
        if not ids:
            return []
        q = q.filter(TimeRecording.id_user.in_(ids))
    if start is not None:
        q = q.filter(TimeRecording.timestamp >= start)
    if end is not None:
        q = q.filter(TimeRecording.timestamp < end)

    return (
        q.order_by(TimeRecording.id_user.asc(), TimeRecording.timestamp.asc(), TimeRecording.id.asc())
        .all()
    )


def parse_period_bound(value: Optional[str], *, end: bool = False) -> Optional[datetime]:
    """
    Query-string bound to a datetime. A bare ``YYYY-MM-DD`` end date covers
    the whole day, so the returned end is always exclusive.
    """
    if value is None or value == "":
        return None

    value = value.strip()
    if len(value) == 10:
        try:
            day = date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError(f"Invalid date: {value}") from exc
        start_of_day, next_day = day_bounds(day)
        return next_day if end else start_of_day

    ts = to_local_naive(value)
    if ts is None:
        raise ValueError(f"Invalid date: {value}")
    return ts + timedelta(microseconds=1) if end else ts


def create_recording(
    id_user: int,
    timestamp,
    kind: str,
    *,
    db: Optional[Session] = None,
) -> TimeRecording:
    """
    Append a clock event for ``id_user``.

    Two consecutive events of the same type are rejected. If db is provided,
    this function will NOT commit/close; the caller owns the transaction.
    """
    _validate_type(kind)
    ts = _normalize_timestamp(timestamp)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        if db.get(User, int(id_user)) is None:
            raise LookupError(f"User with id {id_user} not found")

        previous = last_recording(db, id_user)
        if previous is not None and previous.type == kind:
            other = "out" if kind == ARRIVAL else "in"
            raise ValueError(
                f"Cannot clock {kind.lower()} twice without clocking {other} first"
            )

        recording = TimeRecording(id_user=int(id_user), timestamp=ts, type=kind)
        db.add(recording)
        db.flush()
        db.refresh(recording)

        if owns_db:
            db.commit()

        logger.info(
            "Time recording created",
            extra={"id_user": int(id_user), "type": kind, "recording_id": recording.id},
        )
        return recording
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def update_recording(
    recording: TimeRecording,
    *,
    db: Session,
    timestamp=None,
    kind: Optional[str] = None,
    id_user: Optional[int] = None,
) -> TimeRecording:
    """
    Edit a recording in place. A type change may not leave two events of the
    same type next to each other for the target user.
    """
    target_user = int(id_user) if id_user is not None else recording.id_user
    target_ts = _normalize_timestamp(timestamp) if timestamp is not None else recording.timestamp

    if id_user is not None and db.get(User, target_user) is None:
        raise LookupError(f"User with id {id_user} not found")

    if kind is not None and kind != recording.type:
        _validate_type(kind)

        previous = (
            db.query(TimeRecording)
            .filter(
                TimeRecording.id_user == target_user,
                TimeRecording.timestamp < target_ts,
                TimeRecording.id != recording.id,
            )
            .order_by(TimeRecording.timestamp.desc())
            .first()
        )
        following = (
            db.query(TimeRecording)
            .filter(
                TimeRecording.id_user == target_user,
                TimeRecording.timestamp > target_ts,
                TimeRecording.id != recording.id,
            )
            .order_by(TimeRecording.timestamp.asc())
            .first()
        )
        if (previous is not None and previous.type == kind) or (
            following is not None and following.type == kind
        ):
            raise ValueError(
                f"Cannot update to {kind} - would create consecutive {kind} recordings"
            )
        recording.type = kind

    recording.timestamp = target_ts
    recording.id_user = target_user

    db.flush()
    db.refresh(recording)
    return recording

"""
Real-time member status derived from the day's clock events.

Every function here is pure and total: empty inputs, unknown timestamps and
malformed shift strings degrade to ``planned`` / ``absent`` instead of raising.

Recordings may be ORM rows or plain mappings. ``timestamp`` may be a
``datetime`` or an ISO-8601 string; aware values are converted to local wall
clock time so they compare with ``datetime.now()``. "Today" always means the
calendar date of ``current_time``.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import re
from typing import Any, Optional, Sequence

from teamclock.core.config import get_settings
from teamclock.models.time_recording import ARRIVAL, DEPARTURE

_SHIFT_RE = re.compile(r"(\d{2}):(\d{2})\s*-\s*(\d{2}):(\d{2})")


class MemberStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "inProgress"
    ON_PAUSE = "onPause"
    LATE = "late"


class SituationType(str, Enum):
    ONSITE = "onsite"
    ABSENT = "absent"
    TELEWORK = "telework"
    BUSINESS_TRIP = "businessTrip"


class LatePolicy(str, Enum):
    # Any Departure as last event after start + grace counts as late.
    LAST_EVENT = "last_event"
    # A member who already has a full Arrival/Departure pair today is not late.
    REQUIRE_COMPLETED_PAIR = "require_completed_pair"


@dataclass(frozen=True)
class ShiftWindow:
    start: str
    end: str

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end)


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def parse_shift(shift: Optional[str]) -> Optional[ShiftWindow]:
    """Parse ``"HH:MM - HH:MM"``; anything else gives None."""
    if not shift or not isinstance(shift, str):
        return None

    match = _SHIFT_RE.search(shift)
    if match is None:
        return None

    sh, sm, eh, em = (int(g) for g in match.groups())
    if sh > 23 or eh > 23 or sm > 59 or em > 59:
        return None

    return ShiftWindow(start=f"{sh:02d}:{sm:02d}", end=f"{eh:02d}:{em:02d}")


def format_shift(timetable: Any) -> Optional[str]:
    if timetable is None:
        return None
    start = record_field(timetable, "shift_start") or record_field(timetable, "Shift_start")
    end = record_field(timetable, "shift_end") or record_field(timetable, "Shift_end")
    if not start or not end:
        return None
    return f"{start} - {end}"


def record_field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def to_local_naive(value: Any) -> Optional[datetime]:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def _now(current_time: Optional[datetime]) -> datetime:
    if current_time is None:
        return datetime.now()
    return to_local_naive(current_time) or datetime.now()


def _timestamp(recording: Any) -> Optional[datetime]:
    return to_local_naive(record_field(recording, "timestamp"))


def _is_on(recording: Any, day: date) -> bool:
    ts = _timestamp(recording)
    return ts is not None and ts.date() == day


def _has_completed_pair(time_recordings: Sequence[Any], day: date) -> bool:
    opened = False
    for rec in time_recordings:
        if not _is_on(rec, day):
            continue
        kind = record_field(rec, "type")
        if kind == ARRIVAL:
            opened = True
        elif kind == DEPARTURE and opened:
            return True
    return False


def calculate_member_status(
    time_recordings: Optional[Sequence[Any]],
    shift: Optional[str],
    current_time: Optional[datetime] = None,
    *,
    late_policy: LatePolicy = LatePolicy.LAST_EVENT,
) -> MemberStatus:
    """
    Status of one member for the day of ``current_time``.

    ``time_recordings`` must be ordered by timestamp ascending; only the last
    one drives the result. A Departure less than the pause threshold ago is a
    break. After that, a Departure as last event past shift start plus the
    late grace is ``late``; see ``LatePolicy`` for the finished-shift case.
    """
    if not time_recordings:
        return MemberStatus.PLANNED

    settings = get_settings()
    now = _now(current_time)
    last = time_recordings[-1]
    last_ts = _timestamp(last)

    if last_ts is None or last_ts.date() != now.date():
        return MemberStatus.PLANNED

    last_type = record_field(last, "type")
    if last_type == ARRIVAL:
        return MemberStatus.IN_PROGRESS

    minutes_since_departure = abs((now - last_ts).total_seconds()) / 60
    if minutes_since_departure < settings.pause_threshold_minutes:
        return MemberStatus.ON_PAUSE

    window = parse_shift(shift)
    if window is None:
        return MemberStatus.PLANNED

    if late_policy == LatePolicy.REQUIRE_COMPLETED_PAIR and _has_completed_pair(
        time_recordings, now.date()
    ):
        return MemberStatus.PLANNED

    current_minutes = now.hour * 60 + now.minute
    if (
        current_minutes > window.start_minutes + settings.late_grace_minutes
        and last_type == DEPARTURE
    ):
        return MemberStatus.LATE

    return MemberStatus.PLANNED


def calculate_situation(
    time_recordings: Optional[Sequence[Any]],
    current_time: Optional[datetime] = None,
) -> dict:
    if has_active_clock_in(time_recordings, current_time):
        return {"type": SituationType.ONSITE.value}
    return {"type": SituationType.ABSENT.value}


def has_active_clock_in(
    time_recordings: Optional[Sequence[Any]],
    current_time: Optional[datetime] = None,
) -> bool:
    if not time_recordings:
        return False

    last = time_recordings[-1]
    return record_field(last, "type") == ARRIVAL and _is_on(last, _now(current_time).date())


def get_elapsed_time(start_time: Any, now: Optional[datetime] = None) -> str:
    """``"1h30"`` for ninety minutes, ``"5min"`` below one hour."""
    start = to_local_naive(start_time)
    if start is None:
        return "0min"

    seconds = max((_now(now) - start).total_seconds(), 0)
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)

    if hours > 0:
        return f"{hours}h{minutes:02d}"
    return f"{minutes}min"


def member_snapshot(
    time_recordings: Optional[Sequence[Any]],
    shift: Optional[str],
    current_time: Optional[datetime] = None,
    *,
    late_policy: LatePolicy = LatePolicy.LAST_EVENT,
) -> dict:
    now = _now(current_time)
    active = has_active_clock_in(time_recordings, now)

    clocked_in_at = None
    elapsed = None
    if active:
        clocked_in_at = _timestamp(time_recordings[-1])
        elapsed = get_elapsed_time(clocked_in_at, now)

    return {
        "status": calculate_member_status(
            time_recordings, shift, now, late_policy=late_policy
        ).value,
        "situation": calculate_situation(time_recordings, now),
        "hasActiveClockIn": active,
        "clockedInAt": None if clocked_in_at is None else clocked_in_at.isoformat(),
        "elapsedTime": elapsed,
    }

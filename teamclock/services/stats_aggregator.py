"""
Attendance statistics built from raw Arrival/Departure events.

Output dictionaries keep the camelCase keys the dashboards consume
(``totalHours``, ``averageHoursPerDay``, ...).
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

from teamclock.core.config import get_settings
from teamclock.models.time_recording import ARRIVAL, DEPARTURE
from teamclock.services.status_calculator import record_field, time_to_minutes, to_local_naive


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return to_local_naive(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _ordered_events(recordings: Iterable[Any]) -> list[tuple[datetime, str]]:
    events = []
    for rec in recordings:
        ts = to_local_naive(record_field(rec, "timestamp"))
        if ts is None:
            continue
        events.append((ts, record_field(rec, "type")))
    events.sort(key=lambda e: e[0])
    return events


def build_work_sessions(recordings: Iterable[Any]) -> list[dict]:
    """
    Pair one user's events into sessions.

    An Arrival opens a session and the next Departure closes it. A second
    Arrival before any Departure replaces the open one; a Departure with
    nothing open is ignored, as are sessions of zero or negative length.
    """
    sessions = []
    opened: Optional[datetime] = None

    for ts, kind in _ordered_events(recordings):
        if kind == ARRIVAL:
            opened = ts
        elif kind == DEPARTURE and opened is not None:
            if ts > opened:
                sessions.append(
                    {
                        "date": opened.date().isoformat(),
                        "arrival": opened.isoformat(),
                        "departure": ts.isoformat(),
                        "hours": (ts - opened).total_seconds() / 3600,
                    }
                )
            opened = None

    return sessions


def summarize_sessions(sessions: Sequence[Mapping[str, Any]]) -> dict:
    total_hours = sum(float(s["hours"]) for s in sessions)
    total_days = len({s["date"] for s in sessions})
    return {
        "totalHours": total_hours,
        "totalDays": total_days,
        "averageHoursPerDay": total_hours / total_days if total_days > 0 else 0,
    }


def aggregate_team(member_summaries: Sequence[Mapping[str, Any]]) -> dict:
    count = len(member_summaries)
    if count == 0:
        return {
            "totalMembers": 0,
            "totalHours": 0,
            "averageDaysWorked": 0,
            "averageHoursPerDay": 0,
        }

    return {
        "totalMembers": count,
        "totalHours": sum(float(m["totalHours"]) for m in member_summaries),
        "averageDaysWorked": sum(m["totalDays"] for m in member_summaries) / count,
        "averageHoursPerDay": sum(float(m["averageHoursPerDay"]) for m in member_summaries) / count,
    }


def presence_calendar(
    present_days_by_user: Mapping[Any, Iterable[Any]],
    total_members: int,
    end_date: date,
    days: Optional[int] = None,
) -> list[dict]:
    """
    One ``{date, present, total}`` entry per day, oldest first, ending on
    ``end_date``. ``present`` counts members with at least one attendance
    that day.
    """
    if days is None:
        days = get_settings().presence_calendar_days

    per_day: dict[date, set] = defaultdict(set)
    for user_key, values in present_days_by_user.items():
        for value in values:
            d = _as_date(value)
            if d is not None:
                per_day[d].add(user_key)

    calendar = []
    for offset in range(days - 1, -1, -1):
        d = end_date - timedelta(days=offset)
        calendar.append(
            {
                "date": d.isoformat(),
                "present": len(per_day.get(d, ())),
                "total": int(total_members),
            }
        )
    return calendar


def punctuality_rate(
    arrivals: Iterable[Any],
    shift_start: Optional[str],
    tolerance_minutes: Optional[int] = None,
) -> Optional[float]:
    """
    Percentage of days whose first arrival is within ``tolerance_minutes`` of
    ``shift_start`` ("HH:MM"). None when there is no shift or no arrival.
    """
    if not shift_start:
        return None
    try:
        limit = time_to_minutes(shift_start)
    except ValueError:
        return None

    if tolerance_minutes is None:
        tolerance_minutes = get_settings().punctuality_tolerance_minutes
    limit += tolerance_minutes

    first_by_day: dict[date, datetime] = {}
    for value in arrivals:
        ts = to_local_naive(value)
        if ts is None:
            continue
        current = first_by_day.get(ts.date())
        if current is None or ts < current:
            first_by_day[ts.date()] = ts

    if not first_by_day:
        return None

    punctual = sum(
        1
        for ts in first_by_day.values()
        if ts.hour * 60 + ts.minute + ts.second / 60 <= limit
    )
    return round(100 * punctual / len(first_by_day), 1)


def team_punctuality_rate(rates: Iterable[Optional[float]]) -> Optional[float]:
    known = [r for r in rates if r is not None]
    if not known:
        return None
    return round(sum(known) / len(known), 1)


def user_statistics(
    user: Any,
    recordings: Sequence[Any],
    shift_start: Optional[str] = None,
) -> dict:
    """Full per-user block: identity, summary, punctuality and sessions."""
    sessions = build_work_sessions(recordings)
    arrivals = [record_field(r, "timestamp") for r in recordings if record_field(r, "type") == ARRIVAL]

    return {
        "user": {
            "id": record_field(user, "id"),
            "name": record_field(user, "name"),
            "surname": record_field(user, "surname"),
            "email": record_field(user, "email"),
        },
        **summarize_sessions(sessions),
        "punctualityRate": punctuality_rate(arrivals, shift_start),
        "workSessions": sessions,
    }

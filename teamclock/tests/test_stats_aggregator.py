from datetime import date, datetime
from types import SimpleNamespace

import pytest

from teamclock.services import stats_aggregator as agg


def _rec(kind: str, ts: str) -> dict:
    return {"type": kind, "timestamp": ts}


def test_sessions_and_summary_over_two_days():
    recs = [
        _rec("Arrival", "2026-03-02T09:00:00"),
        _rec("Departure", "2026-03-02T17:00:00"),
        _rec("Arrival", "2026-03-03T09:00:00"),
        _rec("Departure", "2026-03-03T17:30:00"),
    ]

    sessions = agg.build_work_sessions(recs)

    assert [s["hours"] for s in sessions] == [8, 8.5]
    assert sessions[0]["date"] == "2026-03-02"
    assert sessions[1]["arrival"] == "2026-03-03T09:00:00"
    assert agg.summarize_sessions(sessions) == {
        "totalHours": 16.5,
        "totalDays": 2,
        "averageHoursPerDay": 8.25,
    }


def test_unordered_input_is_sorted_before_pairing():
    recs = [
        _rec("Departure", "2026-03-02T12:00:00"),
        _rec("Arrival", "2026-03-02T08:00:00"),
    ]

    assert [s["hours"] for s in agg.build_work_sessions(recs)] == [4]


def test_repeated_arrival_replaces_open_session():
    recs = [
        _rec("Arrival", "2026-03-02T08:00:00"),
        _rec("Arrival", "2026-03-02T09:00:00"),
        _rec("Departure", "2026-03-02T12:00:00"),
    ]

    sessions = agg.build_work_sessions(recs)

    assert len(sessions) == 1
    assert sessions[0]["hours"] == 3


def test_orphan_departure_and_open_arrival_are_ignored():
    recs = [
        _rec("Departure", "2026-03-02T07:00:00"),
        _rec("Arrival", "2026-03-02T08:00:00"),
        _rec("Departure", "2026-03-02T10:00:00"),
        _rec("Arrival", "2026-03-02T13:00:00"),
    ]

    sessions = agg.build_work_sessions(recs)

    assert [s["hours"] for s in sessions] == [2]


def test_summary_of_nothing_is_zero():
    assert agg.summarize_sessions([]) == {"totalHours": 0, "totalDays": 0, "averageHoursPerDay": 0}


def test_two_sessions_on_same_day_count_one_day():
    sessions = [
        {"date": "2026-03-02", "hours": 3},
        {"date": "2026-03-02", "hours": 4},
    ]

    assert agg.summarize_sessions(sessions) == {
        "totalHours": 7,
        "totalDays": 1,
        "averageHoursPerDay": 7,
    }


def test_aggregate_team():
    members = [
        {"totalHours": 40, "totalDays": 5, "averageHoursPerDay": 8},
        {"totalHours": 21, "totalDays": 3, "averageHoursPerDay": 7},
    ]

    assert agg.aggregate_team(members) == {
        "totalMembers": 2,
        "totalHours": 61,
        "averageDaysWorked": 4,
        "averageHoursPerDay": 7.5,
    }


def test_aggregate_empty_team():
    assert agg.aggregate_team([]) == {
        "totalMembers": 0,
        "totalHours": 0,
        "averageDaysWorked": 0,
        "averageHoursPerDay": 0,
    }


def test_presence_calendar_counts_distinct_members_per_day():
    present = {
        1: [date(2026, 3, 1), datetime(2026, 3, 2, 9, 0)],
        2: ["2026-03-02T08:00:00", "2026-03-02T13:00:00"],
    }

    calendar = agg.presence_calendar(present, 3, date(2026, 3, 2), days=3)

    assert calendar == [
        {"date": "2026-02-28", "present": 0, "total": 3},
        {"date": "2026-03-01", "present": 1, "total": 3},
        {"date": "2026-03-02", "present": 2, "total": 3},
    ]


def test_presence_calendar_defaults_to_configured_window(monkeypatch):
    monkeypatch.delenv("PRESENCE_CALENDAR_DAYS", raising=False)
    calendar = agg.presence_calendar({}, 4, date(2026, 3, 28))

    assert len(calendar) == 28
    assert calendar[0]["date"] == "2026-03-01"
    assert calendar[-1]["date"] == "2026-03-28"
    assert all(day["present"] == 0 and day["total"] == 4 for day in calendar)


def test_punctuality_uses_first_arrival_of_each_day():
    arrivals = [
        "2026-03-02T09:10:00",
        "2026-03-02T13:00:00",
        "2026-03-03T09:20:00",
        datetime(2026, 3, 4, 8, 50),
    ]

    assert agg.punctuality_rate(arrivals, "09:00", tolerance_minutes=15) == 66.7


def test_punctuality_tolerance_boundary_is_inclusive():
    assert agg.punctuality_rate(["2026-03-02T09:15:00"], "09:00", tolerance_minutes=15) == 100.0
    assert agg.punctuality_rate(["2026-03-02T09:15:30"], "09:00", tolerance_minutes=15) == 0.0


@pytest.mark.parametrize("shift_start", [None, "", "nine"])
def test_punctuality_without_usable_shift_is_unknown(shift_start):
    assert agg.punctuality_rate(["2026-03-02T09:00:00"], shift_start) is None


def test_punctuality_without_arrivals_is_unknown():
    assert agg.punctuality_rate([], "09:00") is None


def test_team_punctuality_skips_unknown_members():
    assert agg.team_punctuality_rate([80.0, None, 60.0]) == 70.0
    assert agg.team_punctuality_rate([None, None]) is None


def test_user_statistics_block():
    user = SimpleNamespace(id=7, name="Ada", surname="Lovelace", email="ada@example.com")
    recs = [
        SimpleNamespace(type="Arrival", timestamp=datetime(2026, 3, 2, 9, 5)),
        SimpleNamespace(type="Departure", timestamp=datetime(2026, 3, 2, 17, 5)),
    ]

    stats = agg.user_statistics(user, recs, shift_start="09:00")

    assert stats["user"] == {"id": 7, "name": "Ada", "surname": "Lovelace", "email": "ada@example.com"}
    assert stats["totalHours"] == 8
    assert stats["totalDays"] == 1
    assert stats["averageHoursPerDay"] == 8
    assert stats["punctualityRate"] == 100.0
    assert len(stats["workSessions"]) == 1

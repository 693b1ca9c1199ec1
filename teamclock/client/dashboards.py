"""
Loaders that shape stats endpoints into dashboard-ready data.

Both loaders catch API failures at this boundary: the error is logged,
pushed to the notification center unless it is silent, and returned as
a message next to an empty result.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Optional

from teamclock.client.api_client import ApiClient, ApiError, UnknownError, describe_error
from teamclock.client.notifications import NotificationCenter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatsResult:
    data: Optional[dict[str, Any]]
    error: Optional[str]


def _fail(err: ApiError, context: str, notifications: Optional[NotificationCenter]) -> StatsResult:
    classified = describe_error(err)
    if classified.should_log:
        logger.error(
            "Failed to load stats",
            extra={"context": context, "kind": err.kind, "status_code": classified.status_code},
        )
    else:
        logger.warning(
            "Failed to load stats",
            extra={"context": context, "kind": err.kind, "status_code": classified.status_code},
        )

    if notifications is not None and classified.severity != "silent":
        notifications.error(classified.user_message)
    return StatsResult(data=None, error=classified.user_message)


def _pick_user_stats(statistics: list[dict], user_id: int) -> Optional[dict]:
    for stat in statistics:
        if stat.get("user", {}).get("id") == user_id:
            return stat
    return statistics[0] if statistics else None


def _hours_timeline(sessions: list[dict]) -> list[dict]:
    per_day: dict[str, float] = {}
    for session in sessions:
        per_day[session["date"]] = per_day.get(session["date"], 0.0) + float(session["hours"])
    return [{"date": d, "hours": round(h, 2)} for d, h in sorted(per_day.items())]


def load_employee_stats(
    client: ApiClient,
    user_id: int,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    *,
    notifications: Optional[NotificationCenter] = None,
) -> StatsResult:
    try:
        payload = client.get(
            "/time_recordings/stats",
            {"id_user": user_id, "start_date": start_date, "end_date": end_date},
        )
        stat = _pick_user_stats(payload.get("statistics") or [], user_id)
        if stat is None:
            return StatsResult(
                data={
                    "hoursTimeline": [],
                    "punctualityRate": None,
                    "totalHours": 0,
                    "averageHours": 0,
                },
                error=None,
            )

        return StatsResult(
            data={
                "hoursTimeline": _hours_timeline(stat.get("workSessions") or []),
                "punctualityRate": stat.get("punctualityRate"),
                "totalHours": stat["totalHours"],
                "averageHours": stat["averageHoursPerDay"],
            },
            error=None,
        )
    except ApiError as err:
        return _fail(err, "employee_stats", notifications)
    except (AttributeError, KeyError, TypeError) as exc:
        return _fail(UnknownError(f"Malformed stats payload: {exc}"), "employee_stats", notifications)


def load_manager_stats(
    client: ApiClient,
    team_id: Optional[int],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    *,
    notifications: Optional[NotificationCenter] = None,
) -> StatsResult:
    if not team_id:
        return StatsResult(data=None, error=None)

    try:
        payload = client.get(
            f"/teams/{team_id}/stats",
            {"start_date": start_date, "end_date": end_date},
        )
        aggregated = payload["aggregated"]
        return StatsResult(
            data={
                "teamMembers": [
                    {
                        "name": f"{s['user']['name']} {s['user']['surname']}",
                        "hours": s["totalHours"],
                        "punctualityRate": s.get("punctualityRate"),
                    }
                    for s in payload.get("statistics") or []
                ],
                "presenceCalendar": payload.get("presenceCalendar") or [],
                "averageTeamHours": aggregated["averageHoursPerDay"],
                "totalTeamHours": aggregated["totalHours"],
                "teamPunctualityRate": aggregated.get("teamPunctualityRate"),
            },
            error=None,
        )
    except ApiError as err:
        return _fail(err, "manager_stats", notifications)
    except (AttributeError, KeyError, TypeError) as exc:
        return _fail(UnknownError(f"Malformed stats payload: {exc}"), "manager_stats", notifications)

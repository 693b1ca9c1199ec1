import httpx

from teamclock.client.api_client import ApiClient
from teamclock.client.dashboards import load_employee_stats, load_manager_stats
from teamclock.client.notifications import NotificationCenter


def _client(handler) -> ApiClient:
    return ApiClient("http://teamclock.test", "tok", transport=httpx.MockTransport(handler))


def _center():
    center = NotificationCenter()
    received = []
    center.subscribe(received.append)
    return center, received


EMPLOYEE_PAYLOAD = {
    "statistics": [
        {
            "user": {"id": 1, "name": "Other", "surname": "User", "email": "o@example.com"},
            "totalHours": 1,
            "totalDays": 1,
            "averageHoursPerDay": 1,
            "punctualityRate": None,
            "workSessions": [],
        },
        {
            "user": {"id": 2, "name": "Ada", "surname": "Lovelace", "email": "ada@example.com"},
            "totalHours": 16.5,
            "totalDays": 2,
            "averageHoursPerDay": 8.25,
            "punctualityRate": 50.0,
            "workSessions": [
                {"date": "2026-03-03", "hours": 8.5},
                {"date": "2026-03-02", "hours": 3},
                {"date": "2026-03-02", "hours": 5},
            ],
        },
    ],
    "period": {"start": None, "end": None},
}


def test_employee_stats_are_shaped_for_the_dashboard():
    def handler(request):
        assert request.url.path == "/time_recordings/stats"
        assert request.url.params["id_user"] == "2"
        return httpx.Response(200, json=EMPLOYEE_PAYLOAD)

    result = load_employee_stats(_client(handler), 2)

    assert result.error is None
    assert result.data == {
        "hoursTimeline": [
            {"date": "2026-03-02", "hours": 8.0},
            {"date": "2026-03-03", "hours": 8.5},
        ],
        "punctualityRate": 50.0,
        "totalHours": 16.5,
        "averageHours": 8.25,
    }


def test_employee_without_recordings_gets_empty_stats():
    def handler(request):
        return httpx.Response(200, json={"statistics": [], "period": {}})

    result = load_employee_stats(_client(handler), 2)

    assert result.error is None
    assert result.data["hoursTimeline"] == []
    assert result.data["totalHours"] == 0


def test_manager_stats_without_team_is_empty():
    def handler(request):
        raise AssertionError("no request expected")

    assert load_manager_stats(_client(handler), None).data is None
    assert load_manager_stats(_client(handler), None).error is None


def test_manager_stats_are_shaped_for_the_dashboard():
    payload = {
        "team": {"id": 4, "name": "Support"},
        "statistics": [
            {
                "user": {"id": 2, "name": "Ada", "surname": "Lovelace"},
                "totalHours": 8,
                "punctualityRate": 100.0,
            },
        ],
        "aggregated": {
            "totalMembers": 1,
            "totalHours": 8,
            "averageDaysWorked": 1,
            "averageHoursPerDay": 8,
            "teamPunctualityRate": 100.0,
        },
        "presenceCalendar": [{"date": "2026-03-02", "present": 1, "total": 1}],
        "period": {"start": "2026-03-01", "end": "2026-03-02"},
    }

    def handler(request):
        assert request.url.path == "/teams/4/stats"
        assert request.url.params["start_date"] == "2026-03-01"
        return httpx.Response(200, json=payload)

    result = load_manager_stats(_client(handler), 4, "2026-03-01", "2026-03-02")

    assert result.error is None
    assert result.data == {
        "teamMembers": [{"name": "Ada Lovelace", "hours": 8, "punctualityRate": 100.0}],
        "presenceCalendar": [{"date": "2026-03-02", "present": 1, "total": 1}],
        "averageTeamHours": 8,
        "totalTeamHours": 8,
        "teamPunctualityRate": 100.0,
    }


def test_server_error_is_surfaced_and_notified():
    center, received = _center()

    def handler(request):
        return httpx.Response(500, json={"detail": "Internal Server Error"})

    result = load_manager_stats(_client(handler), 4, notifications=center)

    assert result.data is None
    assert result.error == "Something went wrong. Please try again later."
    assert [(n.kind, n.message) for n in received] == [("error", result.error)]


def test_expired_session_is_not_notified():
    center, received = _center()

    def handler(request):
        return httpx.Response(401, json={"detail": "Invalid or expired token"})

    result = load_employee_stats(_client(handler), 2, notifications=center)

    assert result.error == "Session expired. Please log in again."
    assert received == []


def test_network_failure_is_surfaced():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    result = load_employee_stats(_client(handler), 2)

    assert result.error == "Network error. Please check your connection."


def test_malformed_payload_is_an_unknown_error():
    def handler(request):
        return httpx.Response(200, json={"statistics": []})

    result = load_manager_stats(_client(handler), 4)

    assert result.data is None
    assert result.error.startswith("Malformed stats payload")

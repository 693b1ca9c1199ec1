import asyncio
from datetime import date

import httpx

from teamclock.client.api_client import ApiClient
from teamclock.client.notifications import NotificationCenter
from teamclock.client.poller import TeamRecordingsPoller, group_by_user


def _row(rid, user, ts, kind="Arrival"):
    return {"id": rid, "id_user": user, "timestamp": ts, "type": kind}


class _Server:
    def __init__(self):
        self.rows = []
        self.status = 200
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, json={"detail": "boom"})
        return httpx.Response(200, json=self.rows)


def _poller(server, changes, **kwargs):
    client = ApiClient("http://teamclock.test", "tok", transport=httpx.MockTransport(server))
    return TeamRecordingsPoller(client, 4, changes.append, **kwargs)


def test_group_by_user_sorts_each_user_by_time():
    grouped = group_by_user(
        [
            _row(2, 1, "2026-03-02T12:00:00", "Departure"),
            _row(1, 1, "2026-03-02T09:00:00"),
            _row(3, 2, "2026-03-02T08:00:00"),
        ]
    )

    assert [r["id"] for r in grouped[1]] == [1, 2]
    assert [r["id"] for r in grouped[2]] == [3]


def test_poll_only_reports_changes():
    server = _Server()
    changes = []
    poller = _poller(server, changes, interval=1)
    server.rows = [_row(1, 7, "2026-03-02T09:00:00")]

    assert poller.poll_once(date(2026, 3, 2)) is True
    assert poller.poll_once(date(2026, 3, 2)) is False

    server.rows.append(_row(2, 7, "2026-03-02T12:00:00", "Departure"))
    assert poller.poll_once(date(2026, 3, 2)) is True

    assert len(changes) == 2
    assert [r["id"] for r in changes[-1][7]] == [1, 2]
    assert server.requests[0].url.path == "/time_recordings/team/4"
    assert server.requests[0].url.params["date"] == "2026-03-02"


def test_poll_failure_sets_error_and_notifies():
    server = _Server()
    server.status = 500
    center = NotificationCenter()
    received = []
    center.subscribe(received.append)
    changes = []
    poller = _poller(server, changes, notifications=center)

    assert poller.poll_once() is False
    assert poller.error == "Something went wrong. Please try again later."
    assert [n.kind for n in received] == ["error"]
    assert changes == []

    server.status = 200
    poller.poll_once()
    assert poller.error is None


def test_expired_session_is_ignored():
    server = _Server()
    server.status = 401
    poller = _poller(server, [])

    assert poller.poll_once() is False
    assert poller.error is None


def test_interval_defaults_to_configured_value(monkeypatch):
    monkeypatch.setenv("TEAM_POLL_SECONDS", "15")

    assert _poller(_Server(), []).interval == 15.0


def test_run_stops_when_asked():
    server = _Server()
    server.rows = [_row(1, 7, "2026-03-02T09:00:00")]
    changes = []
    poller = _poller(server, changes, interval=60)
    poller.on_change = lambda grouped: (changes.append(grouped), poller.stop())

    asyncio.run(asyncio.wait_for(poller.run(), timeout=5))

    assert len(changes) == 1
    assert len(server.requests) == 1


def test_group_by_user_orders_mixed_offsets_by_instant():
    grouped = group_by_user(
        [
            _row(1, 7, "2026-03-02T09:00:00Z"),
            _row(2, 7, "2026-03-02T10:00:00+02:00"),
        ]
    )

    # 10:00+02:00 is 08:00 UTC, an hour before the other one
    assert [r["id"] for r in grouped[7]] == [2, 1]


def test_malformed_payload_sets_error_instead_of_raising():
    server = _Server()
    server.rows = {"detail": "not a list"}
    center = NotificationCenter()
    received = []
    center.subscribe(received.append)
    changes = []
    poller = _poller(server, changes, notifications=center)

    assert poller.poll_once() is False
    assert poller.error.startswith("Malformed recordings payload")
    assert [n.kind for n in received] == ["error"]
    assert changes == []


def test_run_keeps_polling_after_malformed_payload():
    payloads = [{"detail": "not a list"}, [_row(1, 7, "2026-03-02T09:00:00")]]
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=payloads[min(len(requests), len(payloads)) - 1])

    changes = []
    client = ApiClient("http://teamclock.test", "tok", transport=httpx.MockTransport(handler))
    poller = TeamRecordingsPoller(client, 4, changes.append, interval=0.01)
    poller.on_change = lambda grouped: (changes.append(grouped), poller.stop())

    asyncio.run(asyncio.wait_for(poller.run(), timeout=5))

    assert len(requests) == 2
    assert len(changes) == 1
    assert poller.error is None


def test_failing_subscriber_gets_the_data_again_next_poll():
    server = _Server()
    server.rows = [_row(1, 7, "2026-03-02T09:00:00")]
    delivered = []

    def flaky(grouped):
        if not delivered:
            delivered.append(None)
            raise RuntimeError("render failed")
        delivered.append(grouped)

    client = ApiClient("http://teamclock.test", "tok", transport=httpx.MockTransport(server))
    poller = TeamRecordingsPoller(client, 4, flaky)

    assert poller.poll_once() is False
    assert poller.poll_once() is True
    assert poller.poll_once() is False
    assert [r["id"] for r in delivered[-1][7]] == [1]


def test_stop_before_run_prevents_polling():
    server = _Server()
    poller = _poller(server, [], interval=60)

    poller.stop()
    asyncio.run(asyncio.wait_for(poller.run(), timeout=2))

    assert server.requests == []


def test_expired_session_clears_previous_error():
    server = _Server()
    server.status = 500
    poller = _poller(server, [])
    poller.poll_once()
    assert poller.error is not None

    server.status = 401
    assert poller.poll_once() is False
    assert poller.error is None

from __future__ import annotations

import asyncio
from datetime import date, datetime
import json
import logging
from typing import Any, Callable, Optional

from teamclock.client.api_client import ApiClient, ApiError, UnknownError, describe_error
from teamclock.client.notifications import NotificationCenter
from teamclock.core.config import get_settings
from teamclock.services.status_calculator import to_local_naive

logger = logging.getLogger(__name__)

RecordingsByUser = dict[int, list[dict[str, Any]]]


def _sort_key(rec: dict[str, Any]) -> datetime:
    return to_local_naive(rec.get("timestamp")) or datetime.min


def group_by_user(recordings: list[dict[str, Any]]) -> RecordingsByUser:
    grouped: RecordingsByUser = {}
    for rec in recordings:
        grouped.setdefault(int(rec["id_user"]), []).append(rec)
    for recs in grouped.values():
        recs.sort(key=_sort_key)
    return grouped


class TeamRecordingsPoller:
    """
    Periodically fetches one team's recordings for the day and calls
    ``on_change`` only when the grouped result differs from the last one.

    A stopped poller stays stopped, including when ``stop()`` comes before
    ``run()``; create a new one to poll again.
    """

    def __init__(
        self,
        client: ApiClient,
        team_id: int,
        on_change: Callable[[RecordingsByUser], None],
        *,
        interval: Optional[float] = None,
        notifications: Optional[NotificationCenter] = None,
    ):
        self.client = client
        self.team_id = int(team_id)
        self.on_change = on_change
        self.interval = get_settings().team_poll_seconds if interval is None else float(interval)
        self.notifications = notifications

        self.recordings: RecordingsByUser = {}
        self.error: Optional[str] = None
        self._fingerprint: Optional[str] = None
        self._stopped = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _fail(self, err: ApiError) -> bool:
        classified = describe_error(err)
        if classified.severity == "silent":
            self.error = None
            return False

        self.error = classified.user_message
        logger.warning(
            "Team recordings poll failed",
            extra={"team_id": self.team_id, "kind": err.kind},
        )
        if self.notifications is not None:
            self.notifications.error(classified.user_message)
        return False

    def poll_once(self, day: Optional[date] = None) -> bool:
        """Fetch once; True when the data changed and ``on_change`` fired."""
        try:
            rows = self.client.get(
                f"/time_recordings/team/{self.team_id}",
                {"date": (day or date.today()).isoformat()},
            )
            grouped = group_by_user(rows)
        except ApiError as err:
            return self._fail(err)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            return self._fail(UnknownError(f"Malformed recordings payload: {exc}"))

        self.error = None
        fingerprint = json.dumps(grouped, sort_keys=True, default=str)
        if fingerprint == self._fingerprint:
            return False

        try:
            self.on_change(grouped)
        except Exception:
            # fingerprint is left unchanged so the next poll delivers again
            logger.exception("Team recordings subscriber failed", extra={"team_id": self.team_id})
            return False

        self._fingerprint = fingerprint
        self.recordings = grouped
        return True

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        while not self._stopped.is_set():
            await asyncio.to_thread(self.poll_once)
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    def stop(self) -> None:
        # on_change runs in a worker thread during run()
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._stopped.set)
        else:
            self._stopped.set()

"""
Thin httpx wrapper for the dashboard consumers.

Failures come back as one of three exception types tagged by ``kind`` so
callers branch on type instead of probing response shapes.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Literal, Optional

import httpx

logger = logging.getLogger(__name__)

Severity = Literal["user-facing", "silent", "critical"]


class ApiError(Exception):
    kind = "unknown"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class HttpError(ApiError):
    kind = "http"

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = int(status)


class NetworkError(ApiError):
    kind = "network"


class UnknownError(ApiError):
    kind = "unknown"


@dataclass(frozen=True)
class ClassifiedError:
    severity: Severity
    user_message: str
    should_log: bool
    log_level: Literal["warn", "error"]
    status_code: Optional[int] = None


def describe_error(err: ApiError) -> ClassifiedError:
    """How an API failure should be shown and logged."""
    if isinstance(err, HttpError):
        status = err.status
        if status == 401:
            return ClassifiedError("silent", "Session expired. Please log in again.", False, "warn", status)
        if status == 400:
            return ClassifiedError(
                "user-facing", err.message or "Invalid request. Please check your input.", False, "warn", status
            )
        if status == 403:
            return ClassifiedError(
                "user-facing", err.message or "You don't have permission to do this.", False, "warn", status
            )
        if status == 404:
            return ClassifiedError("user-facing", "Resource not found.", False, "warn", status)
        if status == 500:
            return ClassifiedError(
                "critical", "Something went wrong. Please try again later.", True, "error", status
            )
        if status > 500:
            return ClassifiedError("critical", "Server error. Please try again later.", True, "error", status)
        return ClassifiedError("user-facing", err.message or "Request failed.", False, "warn", status)

    if isinstance(err, NetworkError):
        return ClassifiedError("user-facing", "Network error. Please check your connection.", False, "warn")

    return ClassifiedError("critical", err.message or "An unexpected error occurred.", True, "error")


def _extract_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    if isinstance(data, dict):
        for key in ("detail", "message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = self._client.get(path, params=query)
        except httpx.TransportError as exc:
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        if response.status_code >= 400:
            raise HttpError(response.status_code, _extract_message(response))

        try:
            return response.json()
        except ValueError as exc:
            raise UnknownError("Response was not valid JSON") from exc

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

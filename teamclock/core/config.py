from dataclasses import dataclass
import os


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    pause_threshold_minutes: int = 30
    late_grace_minutes: int = 15
    punctuality_tolerance_minutes: int = 15
    presence_calendar_days: int = 28
    team_poll_seconds: float = 60.0
    jwt_exp_hours: int = 8


def get_settings() -> Settings:
    """Snapshot of the tunables; read on every call so tests can patch the env."""
    return Settings(
        pause_threshold_minutes=_env_int("PAUSE_THRESHOLD_MINUTES", 30),
        late_grace_minutes=_env_int("LATE_GRACE_MINUTES", 15),
        punctuality_tolerance_minutes=_env_int("PUNCTUALITY_TOLERANCE_MINUTES", 15),
        presence_calendar_days=_env_int("PRESENCE_CALENDAR_DAYS", 28),
        team_poll_seconds=_env_float("TEAM_POLL_SECONDS", 60.0),
        jwt_exp_hours=_env_int("JWT_EXP_HOURS", 8),
    )

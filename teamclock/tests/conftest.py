import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret

import subprocess
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import text

_TEST_DB_PATH = Path(tempfile.gettempdir()) / f"teamclock_test_{os.getpid()}.db"
TEST_DATABASE_URL = os.getenv("TEAMCLOCK_TEST_DATABASE_URL", f"sqlite:///{_TEST_DB_PATH}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from teamclock import database
from teamclock.models import Team, TeamMember, TimeRecording, Timetable, User
from teamclock.services.auth_service import create_access_token, hash_password

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database():
    if TEST_DATABASE_URL.startswith("sqlite") and _TEST_DB_PATH.exists():
        _TEST_DB_PATH.unlink()

    env = os.environ.copy()
    env["DATABASE_URL"] = TEST_DATABASE_URL

    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        cwd=Path(__file__).resolve().parents[2],
        env=env,
    )

    database.configure_database()
    yield
    database.engine.dispose()


def _clear_tables() -> None:
    with database.engine.begin() as conn:
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(text(f'DELETE FROM "{table.name}"'))


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture
def db_session():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


_hashed_default = None


def _default_hash() -> str:
    global _hashed_default
    if _hashed_default is None:
        _hashed_default = hash_password(DEFAULT_PASSWORD)
    return _hashed_default


@pytest.fixture
def user_factory():
    counter = {"n": 0}

    def make(role="employee", name=None, surname="Tester", email=None, id_manager=None, password=None):
        counter["n"] += 1
        n = counter["n"]
        db = database.SessionLocal()
        try:
            user = User(
                name=name or f"{role.title()}{n}",
                surname=surname,
                email=email or f"{role}{n}@example.com",
                password=hash_password(password) if password else _default_hash(),
                role=role,
                id_manager=id_manager,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            return user
        finally:
            db.close()

    return make


@pytest.fixture
def timetable_factory():
    def make(shift_start="09:00", shift_end="17:00"):
        db = database.SessionLocal()
        try:
            row = Timetable(shift_start=shift_start, shift_end=shift_end)
            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        finally:
            db.close()

    return make


@pytest.fixture
def team_factory():
    def make(manager, members=(), timetable=None, name="Support"):
        db = database.SessionLocal()
        try:
            team = Team(
                name=name,
                id_manager=manager.id,
                id_timetable=None if timetable is None else timetable.id,
            )
            db.add(team)
            db.flush()
            for member in members:
                db.add(TeamMember(id_team=team.id, id_user=member.id))
            db.commit()
            db.refresh(team)
            return team
        finally:
            db.close()

    return make


@pytest.fixture
def recording_factory():
    def make(user, timestamp, kind="Arrival"):
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        db = database.SessionLocal()
        try:
            row = TimeRecording(id_user=user.id, timestamp=timestamp, type=kind)
            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        finally:
            db.close()

    return make


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id=user.id, role=user.role)}"}


@pytest.fixture
def headers_for():
    return auth_headers

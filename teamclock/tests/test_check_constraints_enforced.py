from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from teamclock.database import SessionLocal
from teamclock.models import TeamMember, TimeRecording, User


def test_check_constraint_blocks_unknown_recording_type(user_factory):
    emp = user_factory("employee")
    db = SessionLocal()
    try:
        db.add(TimeRecording(id_user=emp.id, timestamp=datetime(2026, 3, 2, 9, 0), type="Lunch"))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_check_constraint_blocks_unknown_role():
    db = SessionLocal()
    try:
        db.add(User(name="X", surname="Y", email="x@example.com", password="h", role="intern"))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_team_membership_is_unique_per_pair(user_factory, team_factory):
    mgr = user_factory("manager")
    emp = user_factory("employee")
    team = team_factory(mgr, members=[emp])

    db = SessionLocal()
    try:
        db.add(TeamMember(id_team=team.id, id_user=emp.id))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_recording_for_missing_user_is_rejected():
    db = SessionLocal()
    try:
        db.add(TimeRecording(id_user=999999, timestamp=datetime(2026, 3, 2, 9, 0), type="Arrival"))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()

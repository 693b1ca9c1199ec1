"""create teamclock schema

Revision ID: 3c1f7a9d2b40
Revises:
Create Date: 2026-10-19 09:12:44.218305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f7a9d2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("surname", sa.String(), nullable=False),
        sa.Column("mobile_number", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("id_manager", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["id_manager"], ["users.id"], ondelete="SET NULL"),
        sa.CheckConstraint("role IN ('manager', 'employee', 'admin')", name="ck_users_role"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_id_manager", "users", ["id_manager"], unique=False)

    op.create_table(
        "timetables",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("Shift_start", sa.String(), nullable=False),
        sa.Column("Shift_end", sa.String(), nullable=False),
    )
    op.create_index("ix_timetables_id", "timetables", ["id"], unique=False)

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("id_manager", sa.Integer(), nullable=False),
        sa.Column("id_timetable", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["id_manager"], ["users.id"]),
        sa.ForeignKeyConstraint(["id_timetable"], ["timetables.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_teams_id", "teams", ["id"], unique=False)
    op.create_index("ix_teams_id_manager", "teams", ["id_manager"], unique=False)
    op.create_index("ix_teams_id_timetable", "teams", ["id_timetable"], unique=False)

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("id_user", sa.Integer(), nullable=False),
        sa.Column("id_team", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["id_user"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["id_team"], ["teams.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("id_user", "id_team", name="uq_team_members_user_team"),
    )
    op.create_index("ix_team_members_id", "team_members", ["id"], unique=False)
    op.create_index("ix_team_members_id_user", "team_members", ["id_user"], unique=False)
    op.create_index("ix_team_members_id_team", "team_members", ["id_team"], unique=False)

    op.create_table(
        "time_recordings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("id_user", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["id_user"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("type IN ('Arrival', 'Departure')", name="ck_time_recordings_type"),
    )
    op.create_index("ix_time_recordings_id", "time_recordings", ["id"], unique=False)
    op.create_index("ix_time_recordings_id_user", "time_recordings", ["id_user"], unique=False)
    op.create_index(
        "ix_time_recordings_user_timestamp",
        "time_recordings",
        ["id_user", "timestamp"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_time_recordings_user_timestamp", table_name="time_recordings")
    op.drop_index("ix_time_recordings_id_user", table_name="time_recordings")
    op.drop_index("ix_time_recordings_id", table_name="time_recordings")
    op.drop_table("time_recordings")

    op.drop_index("ix_team_members_id_team", table_name="team_members")
    op.drop_index("ix_team_members_id_user", table_name="team_members")
    op.drop_index("ix_team_members_id", table_name="team_members")
    op.drop_table("team_members")

    op.drop_index("ix_teams_id_timetable", table_name="teams")
    op.drop_index("ix_teams_id_manager", table_name="teams")
    op.drop_index("ix_teams_id", table_name="teams")
    op.drop_table("teams")

    op.drop_index("ix_timetables_id", table_name="timetables")
    op.drop_table("timetables")

    op.drop_index("ix_users_id_manager", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")

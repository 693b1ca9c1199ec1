from teamclock.models.team import Team
from teamclock.models.team_member import TeamMember
from teamclock.models.time_recording import TimeRecording
from teamclock.models.timetable import Timetable
from teamclock.models.user import User

__all__ = [
    "Team",
    "TeamMember",
    "TimeRecording",
    "Timetable",
    "User",
]

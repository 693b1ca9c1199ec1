from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from teamclock.schemas.user import UserSummary


class TeamCreate(BaseModel):
    name: str = Field(min_length=1)
    id_manager: int
    id_timetable: Optional[int] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    id_manager: Optional[int] = None
    id_timetable: Optional[int] = None


class TeamMemberAdd(BaseModel):
    id_user: int


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    id_manager: int
    id_timetable: Optional[int]
    manager: Optional[UserSummary] = None
    members: list[UserSummary] = []

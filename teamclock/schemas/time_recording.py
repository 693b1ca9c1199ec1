from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

RecordingType = Literal["Arrival", "Departure"]


class TimeRecordingCreate(BaseModel):
    id_user: int
    timestamp: datetime
    type: RecordingType


class TimeRecordingUpdate(BaseModel):
    id_user: Optional[int] = None
    timestamp: Optional[datetime] = None
    type: Optional[RecordingType] = None


class RecordingUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    surname: str
    email: str


class TimeRecordingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    id_user: int
    timestamp: datetime
    type: str
    user: Optional[RecordingUser] = None

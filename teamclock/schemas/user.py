from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RoleName = Literal["manager", "employee", "admin"]


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    surname: str = Field(min_length=1)
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8)
    role: RoleName
    id_manager: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    surname: Optional[str] = Field(default=None, min_length=1)
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+$")
    password: Optional[str] = Field(default=None, min_length=8)
    role: Optional[RoleName] = None
    id_manager: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    surname: str
    mobile_number: Optional[str] = Field(default=None, serialization_alias="mobileNumber")
    email: str
    role: str
    id_manager: Optional[int]
    created_at: datetime


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    surname: str
    email: str
    role: str

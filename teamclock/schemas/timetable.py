from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class TimetableCreate(BaseModel):
    shift_start: str = Field(validation_alias=AliasChoices("Shift_start", "shift_start"), pattern=HHMM)
    shift_end: str = Field(validation_alias=AliasChoices("Shift_end", "shift_end"), pattern=HHMM)


class TimetableUpdate(BaseModel):
    shift_start: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("Shift_start", "shift_start"), pattern=HHMM
    )
    shift_end: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("Shift_end", "shift_end"), pattern=HHMM
    )


class TimetableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shift_start: str = Field(serialization_alias="Shift_start")
    shift_end: str = Field(serialization_alias="Shift_end")

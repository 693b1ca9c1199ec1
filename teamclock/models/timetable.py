from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from teamclock.database import Base


class Timetable(Base):
    __tablename__ = "timetables"

    id = Column(Integer, primary_key=True, index=True)
    shift_start = Column("Shift_start", String, nullable=False)
    shift_end = Column("Shift_end", String, nullable=False)

    teams = relationship("Team", back_populates="timetable", passive_deletes=True)

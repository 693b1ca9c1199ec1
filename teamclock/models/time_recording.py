from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from teamclock.database import Base

ARRIVAL = "Arrival"
DEPARTURE = "Departure"
RECORDING_TYPES = (ARRIVAL, DEPARTURE)


class TimeRecording(Base):
    __tablename__ = "time_recordings"
    __table_args__ = (
        CheckConstraint("type IN ('Arrival', 'Departure')", name="ck_time_recordings_type"),
        Index("ix_time_recordings_user_timestamp", "id_user", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    id_user = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False)
    type = Column(String, nullable=False)

    user = relationship("User", back_populates="time_recordings")

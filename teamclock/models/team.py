from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from teamclock.database import Base


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    id_manager = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    id_timetable = Column(
        Integer,
        ForeignKey("timetables.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    manager = relationship("User")
    timetable = relationship("Timetable", back_populates="teams")
    memberships = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from teamclock.database import Base


class TeamMember(Base):
    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("id_user", "id_team", name="uq_team_members_user_team"),
    )

    id = Column(Integer, primary_key=True, index=True)
    id_user = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    id_team = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="team_memberships")
    team = relationship("Team", back_populates="memberships")

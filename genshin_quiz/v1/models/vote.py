from sqlalchemy import Column, Integer, String, Text, Boolean, Enum, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from genshin_quiz.db.database import Base
from genshin_quiz.utils.lifecycle import utcnow

VOTE_TYPES = ("single_choice", "multiple_choice")


class Vote(Base):
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(Enum(*VOTE_TYPES, name="vote_type"), default="single_choice")
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)  # NULL means open-ended
    max_choices = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    creator = relationship("User", back_populates="votes")
    options = relationship(
        "VoteOption",
        back_populates="vote",
        cascade="all, delete-orphan",
        order_by="VoteOption.sort_order",
    )
    ballots = relationship("UserVote", back_populates="vote", cascade="all, delete")

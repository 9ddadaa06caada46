from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from genshin_quiz.db.database import Base
from genshin_quiz.utils.lifecycle import utcnow


class UserVote(Base):
    __tablename__ = "user_votes"
    __table_args__ = (
        # a user may pick several options of one vote, but each option only once
        UniqueConstraint(
            "vote_id", "user_id", "vote_option_id", name="uq_user_votes_vote_user_option"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    vote_id = Column(Integer, ForeignKey("votes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vote_option_id = Column(
        Integer, ForeignKey("vote_options.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    vote = relationship("Vote", back_populates="ballots")
    user = relationship("User", back_populates="ballots")
    option = relationship("VoteOption", back_populates="ballots")

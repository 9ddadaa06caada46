from sqlalchemy import Column, String, Boolean, Enum, Integer, DateTime
from sqlalchemy.orm import relationship
from genshin_quiz.db.database import Base
from genshin_quiz.utils.lifecycle import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100))
    email = Column(String(100), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(Enum("user", "admin", name="user_role"), nullable=False, default="user")
    avatar_url = Column(String(500))
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    quizzes = relationship("Quiz", back_populates="creator")
    attempts = relationship("QuizAttempt", back_populates="user", cascade="all, delete")
    votes = relationship("Vote", back_populates="creator")
    ballots = relationship("UserVote", back_populates="user", cascade="all, delete")

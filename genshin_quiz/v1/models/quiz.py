from sqlalchemy import Column, Integer, String, Text, Boolean, Enum, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from genshin_quiz.db.database import Base
from genshin_quiz.utils.lifecycle import utcnow

DIFFICULTIES = ("easy", "medium", "hard")
QUIZ_TYPES = ("single_choice", "multiple_choice", "true_false", "text")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    question = Column(String(255), nullable=False)
    answer = Column(String(255), nullable=False)
    options = Column(Text, nullable=True)  # JSON-encoded list of str
    category = Column(String(100), index=True)
    difficulty = Column(Enum(*DIFFICULTIES, name="quiz_difficulty"), default="easy")
    type = Column(Enum(*QUIZ_TYPES, name="quiz_type"), default="single_choice")
    explanation = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    creator = relationship("User", back_populates="quizzes")
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete")

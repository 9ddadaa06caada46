from sqlalchemy import Column, Integer, Boolean, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from genshin_quiz.db.database import Base
from genshin_quiz.utils.lifecycle import utcnow


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), index=True)
    user_answer = Column(Text)  # raw text, or JSON for list and mapping answers
    is_correct = Column(Boolean)
    score = Column(Integer, nullable=False, default=0)
    time_spent = Column(Integer)  # seconds
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="attempts")
    quiz = relationship("Quiz", back_populates="attempts")

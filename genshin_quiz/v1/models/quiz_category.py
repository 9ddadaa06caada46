from sqlalchemy import Column, Integer, String, Boolean, DateTime
from genshin_quiz.db.database import Base
from genshin_quiz.utils.lifecycle import utcnow


# Matched to Quiz.category by name only; there is no foreign key between them.
class QuizCategory(Base):
    __tablename__ = "quiz_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(255))
    icon_url = Column(String(500))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

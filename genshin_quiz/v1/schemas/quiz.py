from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Literal, Any
from datetime import datetime
from genshin_quiz.utils.exceptions import InvalidQuizOptions
from genshin_quiz.v1.repositories.quiz import check_options

Difficulty = Literal["easy", "medium", "hard"]
QuizType = Literal["single_choice", "multiple_choice", "true_false", "text"]


class QuizCreate(BaseModel):
    question: str = Field(..., min_length=1, max_length=255)
    answer: str = Field(..., min_length=1, max_length=255)
    options: Optional[List[str]] = None
    category: Optional[str] = Field(default=None, max_length=100)
    difficulty: Difficulty = "easy"
    type: QuizType = "single_choice"
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def options_match_type(self):
        try:
            check_options(self.type, self.options)
        except InvalidQuizOptions as e:
            raise ValueError(str(e)) from e
        return self


class QuizUpdate(BaseModel):
    question: Optional[str] = Field(default=None, min_length=1, max_length=255)
    answer: Optional[str] = Field(default=None, min_length=1, max_length=255)
    options: Optional[List[str]] = None
    category: Optional[str] = Field(default=None, max_length=100)
    difficulty: Optional[Difficulty] = None
    type: Optional[QuizType] = None
    explanation: Optional[str] = None


class QuizOut(BaseModel):
    id: int
    question: str
    answer: str
    options: Optional[List[str]]
    category: Optional[str]
    difficulty: Difficulty
    type: QuizType
    explanation: Optional[str]
    created_by: Optional[int]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class QuizFilters(BaseModel):
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    type: Optional[QuizType] = None


class AttemptCreate(BaseModel):
    # free text, a list of picked options, or any structured payload
    answer: Any
    time_spent: Optional[int] = Field(default=None, ge=0)


class AttemptOut(BaseModel):
    id: int
    user_id: int
    quiz_id: int
    user_answer: Any
    is_correct: bool
    score: int
    time_spent: Optional[int]
    created_at: Optional[datetime]


class QuizStats(BaseModel):
    total_attempts: int
    correct_attempts: int
    accuracy: str
    avg_time_spent: int


class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    icon_url: Optional[str]
    is_active: bool


class CategoryCount(BaseModel):
    category: Optional[str]
    count: int

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, Any
from datetime import datetime


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    avatar_url: Optional[str] = Field(default=None, max_length=500)

    class Config:
        str_strip_whitespace = True


class UserSignin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)

    class Config:
        str_strip_whitespace = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    avatar_url: Optional[str] = Field(default=None, max_length=500)
    # only honoured when an admin makes the change
    role: Optional[Literal["user", "admin"]] = None


class UserOut(BaseModel):
    id: int
    name: Optional[str]
    email: str
    role: Literal["user", "admin"]
    avatar_url: Optional[str]
    is_active: bool
    created_at: Optional[datetime]


class Token(BaseModel):
    access_token: str
    token_type: str


class VoteHistoryEntry(BaseModel):
    id: int
    vote_id: int
    vote_title: str
    option_id: int
    option_title: str
    voted_at: Optional[datetime]


class QuizHistoryEntry(BaseModel):
    id: int
    quiz_id: int
    question: str
    category: Optional[str]
    difficulty: Optional[str]
    user_answer: Any
    is_correct: Optional[bool]
    score: int
    time_spent: Optional[int]
    attempted_at: Optional[datetime]

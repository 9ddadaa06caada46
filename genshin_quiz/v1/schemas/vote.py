from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Literal
from datetime import datetime
from genshin_quiz.utils.lifecycle import to_naive_utc


class VoteOptionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=500)


class VoteCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: Literal["single_choice", "multiple_choice"] = "single_choice"
    is_anonymous: bool = False
    start_time: datetime
    end_time: Optional[datetime] = None
    max_choices: int = Field(default=1, ge=1)
    options: List[VoteOptionCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def window_is_ordered(self):
        if self.end_time is not None and to_naive_utc(self.end_time) < to_naive_utc(self.start_time):
            raise ValueError("end_time must not be before start_time")
        return self


class VoteOptionOut(BaseModel):
    id: int
    vote_id: int
    title: str
    description: Optional[str]
    image_url: Optional[str]
    sort_order: int


class VoteOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    type: str
    created_by: Optional[int]
    is_active: bool
    is_anonymous: bool
    start_time: datetime
    end_time: Optional[datetime]
    max_choices: int
    status: Literal["scheduled", "open", "closed"]
    created_at: Optional[datetime]


class VoteDetail(VoteOut):
    options: List[VoteOptionOut]


class BallotSubmission(BaseModel):
    option_ids: List[int] = Field(..., min_length=1)


class BallotReceipt(BaseModel):
    vote_id: int
    message: str


class OptionTally(BaseModel):
    id: int
    title: str
    description: Optional[str]
    vote_count: int
    percentage: str


class VoteResults(BaseModel):
    results: List[OptionTally]
    total_votes: int


class VotedStatus(BaseModel):
    vote_id: int
    has_voted: bool

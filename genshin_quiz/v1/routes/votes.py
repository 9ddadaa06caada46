from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from genshin_quiz.db.database import get_db
from genshin_quiz.utils import exceptions
from genshin_quiz.utils.authentication import get_current_user, require_admin
from genshin_quiz.v1.models.user import User
from genshin_quiz.v1.schemas import vote as schemas
from genshin_quiz.v1.services.voting import VotingEngine

votes = APIRouter(prefix="/votes", tags=["Votes"])

# each rejection reason gets its own status so clients can tell them apart
BALLOT_ERROR_STATUS = {
    exceptions.AlreadyVoted: status.HTTP_409_CONFLICT,
    exceptions.VoteNotActive: status.HTTP_403_FORBIDDEN,
    exceptions.VoteEnded: status.HTTP_410_GONE,
    exceptions.TooManyChoices: 422,
    exceptions.InvalidVoteWindow: 422,
    exceptions.ConstraintViolation: status.HTTP_400_BAD_REQUEST,
}


def raise_for_voting_error(error: exceptions.QuizAppError):
    for error_type, status_code in BALLOT_ERROR_STATUS.items():
        if isinstance(error, error_type):
            raise HTTPException(status_code=status_code, detail=str(error)) from error
    raise error


@votes.get("/", response_model=List[schemas.VoteOut])
def list_active_votes(db: Session = Depends(get_db)):
    return VotingEngine(db).find_all_active()


@votes.get("/{vote_id}", response_model=schemas.VoteDetail)
def get_vote(vote_id: int, db: Session = Depends(get_db)):
    vote = VotingEngine(db).find_by_id_with_options(vote_id)
    if not vote:
        raise HTTPException(status_code=404, detail="Vote not found.")
    return vote


@votes.post("/", response_model=schemas.VoteDetail, status_code=status.HTTP_201_CREATED)
def create_vote(
    payload: schemas.VoteCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    vote_data = payload.model_dump(exclude={"options"})
    vote_data["created_by"] = admin.id
    options = [option.model_dump() for option in payload.options]
    try:
        return VotingEngine(db).create(vote_data, options)
    except exceptions.QuizAppError as e:
        raise_for_voting_error(e)


@votes.post("/{vote_id}/submit", response_model=schemas.BallotReceipt)
def submit_vote(
    vote_id: int,
    payload: schemas.BallotSubmission,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        VotingEngine(db).submit_vote(vote_id, current_user.id, payload.option_ids)
    except exceptions.QuizAppError as e:
        raise_for_voting_error(e)
    return {"vote_id": vote_id, "message": "Vote recorded"}


@votes.get("/{vote_id}/results", response_model=schemas.VoteResults)
def get_vote_results(vote_id: int, db: Session = Depends(get_db)):
    engine = VotingEngine(db)
    if not engine.find_by_id_with_options(vote_id):
        raise HTTPException(status_code=404, detail="Vote not found.")
    return engine.get_results(vote_id)


@votes.get("/{vote_id}/voted", response_model=schemas.VotedStatus)
def has_voted(
    vote_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"vote_id": vote_id, "has_voted": VotingEngine(db).has_user_voted(vote_id, current_user.id)}

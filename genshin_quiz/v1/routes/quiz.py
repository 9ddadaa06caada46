from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List

from genshin_quiz.db.database import get_db
from genshin_quiz.utils.authentication import get_current_user, require_admin
from genshin_quiz.utils.exceptions import ConstraintViolation, InvalidQuizOptions
from genshin_quiz.v1.models.user import User
from genshin_quiz.v1.repositories.quiz import QuizRepository, is_answer_correct
from genshin_quiz.v1.schemas import quiz as schemas

quiz = APIRouter(prefix="/quizzes", tags=["Quizzes"])


@quiz.get("/", response_model=List[schemas.QuizOut])
def list_quizzes(
    filters: schemas.QuizFilters = Depends(),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return QuizRepository(db).list(**filters.model_dump(), limit=limit, offset=offset)


@quiz.get("/random", response_model=schemas.QuizOut)
def get_random_quiz(filters: schemas.QuizFilters = Depends(), db: Session = Depends(get_db)):
    picked = QuizRepository(db).get_random(**filters.model_dump())
    if not picked:
        raise HTTPException(status_code=404, detail="No quiz matches these filters.")
    return picked


@quiz.get("/categories", response_model=List[schemas.CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return QuizRepository(db).list_categories()


@quiz.get("/categories/stats", response_model=List[schemas.CategoryCount])
def get_category_stats(db: Session = Depends(get_db)):
    return QuizRepository(db).get_category_stats()


@quiz.get("/{quiz_id}", response_model=schemas.QuizOut)
def get_quiz(quiz_id: int, db: Session = Depends(get_db)):
    found = QuizRepository(db).get_by_id(quiz_id)
    if not found:
        raise HTTPException(status_code=404, detail="Quiz not found.")
    return found


@quiz.post("/", response_model=schemas.QuizOut, status_code=status.HTTP_201_CREATED)
def create_quiz(
    payload: schemas.QuizCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        return QuizRepository(db).create({**payload.model_dump(), "created_by": admin.id})
    except ConstraintViolation as e:
        raise HTTPException(status_code=400, detail=str(e))


@quiz.put("/{quiz_id}", response_model=schemas.QuizOut)
def update_quiz(
    quiz_id: int,
    payload: schemas.QuizUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        updated = QuizRepository(db).update(quiz_id, payload.model_dump(exclude_unset=True))
    except InvalidQuizOptions as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ConstraintViolation as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Quiz not found.")
    return updated


@quiz.delete("/{quiz_id}")
def delete_quiz(quiz_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    if not QuizRepository(db).soft_delete(quiz_id):
        raise HTTPException(status_code=404, detail="Quiz not found.")
    return {"message": "Quiz retired"}


@quiz.post(
    "/{quiz_id}/attempts",
    response_model=schemas.AttemptOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_attempt(
    quiz_id: int,
    payload: schemas.AttemptCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    repository = QuizRepository(db)
    target = repository.get_by_id(quiz_id)
    if not target:
        raise HTTPException(status_code=404, detail="Quiz not found.")

    correct = is_answer_correct(target["answer"], payload.answer)
    try:
        return repository.record_attempt(
            current_user.id, quiz_id, payload.answer, correct, payload.time_spent
        )
    except ConstraintViolation as e:
        raise HTTPException(status_code=400, detail=str(e))


@quiz.get("/{quiz_id}/stats", response_model=schemas.QuizStats)
def get_quiz_stats(quiz_id: int, db: Session = Depends(get_db)):
    return QuizRepository(db).get_stats(quiz_id)

from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from genshin_quiz.db.database import get_db
from genshin_quiz.utils.authentication import get_current_user, hash_password, require_admin
from genshin_quiz.utils.exceptions import ConstraintViolation
from genshin_quiz.v1.models.user import User
from genshin_quiz.v1.repositories.user import UserRepository, public_profile
from genshin_quiz.v1.schemas import user as schemas

users = APIRouter(prefix="/users", tags=["Users"])


def ensure_self_or_admin(repository: UserRepository, current_user: User, user_id: int) -> bool:
    """Raise 403 unless the caller is ``user_id`` or an admin; returns whether they are an admin."""
    acting_admin = repository.is_admin(current_user.id)
    if current_user.id != user_id and not acting_admin:
        raise HTTPException(status_code=403, detail="You can only access your own account.")
    return acting_admin


def apply_update(
    repository: UserRepository, user_id: int, user_data: schemas.UserUpdate, acting_admin: bool
) -> dict:
    patch = user_data.model_dump(exclude_unset=True)
    if "role" in patch and not acting_admin:
        raise HTTPException(status_code=403, detail="Only admins can change roles.")

    try:
        user = repository.update(user_id, patch)
    except ConstraintViolation as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return user


@users.post("/", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def register_user(user_data: schemas.UserCreate, db: Session = Depends(get_db)):
    try:
        return UserRepository(db).create(
            {
                "name": user_data.name,
                "email": user_data.email,
                "password": hash_password(user_data.password),
                "avatar_url": user_data.avatar_url,
            }
        )
    except ConstraintViolation as e:
        raise HTTPException(status_code=400, detail=str(e))


@users.get("/", response_model=List[schemas.UserOut])
def list_users(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return UserRepository(db).list(limit=limit, offset=offset, search=search)


@users.get("/me", response_model=schemas.UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return public_profile(current_user)


@users.put("/me", response_model=schemas.UserOut)
def update_me(
    user_data: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    repository = UserRepository(db)
    return apply_update(repository, current_user.id, user_data, repository.is_admin(current_user.id))


@users.get("/{user_id}", response_model=schemas.UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = UserRepository(db).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return user


@users.put("/{user_id}", response_model=schemas.UserOut)
def update_user(
    user_id: int,
    user_data: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    repository = UserRepository(db)
    acting_admin = ensure_self_or_admin(repository, current_user, user_id)
    return apply_update(repository, user_id, user_data, acting_admin)


@users.delete("/{user_id}")
def deactivate_user(
    user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)
):
    if not UserRepository(db).soft_delete(user_id):
        raise HTTPException(status_code=404, detail="User not found.")
    return {"message": "User account deactivated"}


@users.get("/{user_id}/votes", response_model=List[schemas.VoteHistoryEntry])
def get_vote_history(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    repository = UserRepository(db)
    ensure_self_or_admin(repository, current_user, user_id)
    # anonymous ballots stay private even from admins
    return repository.get_vote_history(user_id, include_anonymous=current_user.id == user_id)


@users.get("/{user_id}/quizzes", response_model=List[schemas.QuizHistoryEntry])
def get_quiz_history(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    repository = UserRepository(db)
    ensure_self_or_admin(repository, current_user, user_id)
    return repository.get_quiz_history(user_id)

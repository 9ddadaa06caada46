import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from genshin_quiz.db.database import transaction
from genshin_quiz.utils.exceptions import (
    ConstraintViolation,
    EmailAlreadyRegistered,
    is_unique_violation,
)
from genshin_quiz.utils.lifecycle import Lifecycle, utcnow
from genshin_quiz.utils.serialization import decode_answer
from genshin_quiz.v1.models.quiz import Quiz
from genshin_quiz.v1.models.quiz_attempt import QuizAttempt
from genshin_quiz.v1.models.user import User
from genshin_quiz.v1.models.user_vote import UserVote
from genshin_quiz.v1.models.vote import Vote
from genshin_quiz.v1.models.vote_option import VoteOption

logger = logging.getLogger(__name__)

USER_FIELDS = ("name", "email", "password", "role", "avatar_url", "is_active")


def public_profile(user: User) -> dict:
    """The outward-facing projection of a user; never carries the password hash."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "avatar_url": user.avatar_url,
        "is_active": user.is_active,
        "lifecycle": Lifecycle.from_flag(user.is_active),
        "created_at": user.created_at,
    }


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def _save(self, user: User):
        try:
            with transaction(self.db):
                self.db.add(user)
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.warning("Duplicate email rejected: %s", user.email)
                raise EmailAlreadyRegistered() from e
            raise ConstraintViolation(f"User could not be saved: {e.orig}") from e
        self.db.refresh(user)

    def list(
        self, limit: Optional[int] = None, offset: int = 0, search: Optional[str] = None
    ) -> List[dict]:
        query = self.db.query(User)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        query = query.order_by(User.id)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [public_profile(user) for user in query.all()]

    def get_by_id(self, user_id: int) -> Optional[dict]:
        user = (
            self.db.query(User)
            .filter(User.id == user_id, User.is_active.is_(True))
            .first()
        )
        return public_profile(user) if user else None

    def get_by_email(self, email: str) -> Optional[User]:
        # Full row, password hash included: only the login flow should call this.
        return self.db.query(User).filter(User.email == email).first()

    def create(self, data: dict) -> dict:
        values = {key: value for key, value in data.items() if key in USER_FIELDS}
        now = utcnow()
        user = User(**values, created_at=now, updated_at=now)
        self._save(user)
        logger.info("Registered user %s", user.id)
        return public_profile(user)

    def update(self, user_id: int, patch: dict) -> Optional[dict]:
        user = self._get_row(user_id)
        if not user:
            return None

        for key, value in patch.items():
            if key in USER_FIELDS:
                setattr(user, key, value)
        user.updated_at = utcnow()
        self._save(user)
        return public_profile(user)

    def touch_last_login(self, user_id: int) -> bool:
        user = self._get_row(user_id)
        if not user:
            return False
        with transaction(self.db):
            user.last_login_at = utcnow()
        return True

    def soft_delete(self, user_id: int) -> bool:
        user = self._get_row(user_id)
        if not user:
            return False
        with transaction(self.db):
            user.is_active = False
            user.updated_at = utcnow()
        logger.info("Deactivated user %s", user_id)
        return True

    def is_admin(self, user_id: int) -> bool:
        role = self.db.query(User.role).filter(User.id == user_id).scalar()
        return role == "admin"

    def get_vote_history(self, user_id: int, include_anonymous: bool = True) -> List[dict]:
        """Ballots cast by a user, newest first.

        Ballots on anonymous votes are left out unless ``include_anonymous`` is set;
        only the voter should see those.
        """
        query = (
            self.db.query(
                UserVote.id,
                UserVote.created_at,
                Vote.id.label("vote_id"),
                Vote.title.label("vote_title"),
                VoteOption.id.label("option_id"),
                VoteOption.title.label("option_title"),
            )
            .join(Vote, Vote.id == UserVote.vote_id)
            .join(VoteOption, VoteOption.id == UserVote.vote_option_id)
            .filter(UserVote.user_id == user_id)
        )
        if not include_anonymous:
            query = query.filter(Vote.is_anonymous.is_(False))
        rows = query.order_by(UserVote.created_at.desc(), UserVote.id.desc()).all()
        return [
            {
                "id": row.id,
                "vote_id": row.vote_id,
                "vote_title": row.vote_title,
                "option_id": row.option_id,
                "option_title": row.option_title,
                "voted_at": row.created_at,
            }
            for row in rows
        ]

    def get_quiz_history(self, user_id: int) -> List[dict]:
        rows = (
            self.db.query(
                QuizAttempt,
                Quiz.question,
                Quiz.category,
                Quiz.difficulty,
            )
            .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
            .filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.desc(), QuizAttempt.id.desc())
            .all()
        )
        return [
            {
                "id": attempt.id,
                "quiz_id": attempt.quiz_id,
                "question": question,
                "category": category,
                "difficulty": difficulty,
                "user_answer": decode_answer(attempt.user_answer),
                "is_correct": attempt.is_correct,
                "score": attempt.score,
                "time_spent": attempt.time_spent,
                "attempted_at": attempt.created_at,
            }
            for attempt, question, category, difficulty in rows
        ]

import math
import logging
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from genshin_quiz.db.database import transaction
from genshin_quiz.utils.exceptions import ConstraintViolation, InvalidQuizOptions
from genshin_quiz.utils.lifecycle import Lifecycle, utcnow
from genshin_quiz.utils.serialization import (
    decode_answer,
    decode_options,
    encode_answer,
    encode_options,
    format_percentage,
)
from genshin_quiz.v1.models.quiz import Quiz
from genshin_quiz.v1.models.quiz_attempt import QuizAttempt
from genshin_quiz.v1.models.quiz_category import QuizCategory

logger = logging.getLogger(__name__)

QUIZ_FIELDS = (
    "question",
    "answer",
    "options",
    "category",
    "difficulty",
    "type",
    "explanation",
    "created_by",
    "is_active",
)

# single/multiple choice must list their options, text answers must not
OPTIONS_REQUIRED = {"single_choice", "multiple_choice"}
OPTIONS_FORBIDDEN = {"text"}


def check_options(quiz_type: Optional[str], options) -> None:
    if quiz_type in OPTIONS_REQUIRED and not options:
        raise InvalidQuizOptions(f"{quiz_type} quizzes need at least one option")
    if quiz_type in OPTIONS_FORBIDDEN and options:
        raise InvalidQuizOptions("text quizzes cannot have options")


def quiz_to_dict(quiz: Quiz) -> dict:
    return {
        "id": quiz.id,
        "question": quiz.question,
        "answer": quiz.answer,
        "options": decode_options(quiz.options),
        "category": quiz.category,
        "difficulty": quiz.difficulty,
        "type": quiz.type,
        "explanation": quiz.explanation,
        "created_by": quiz.created_by,
        "is_active": quiz.is_active,
        "lifecycle": Lifecycle.from_flag(quiz.is_active),
        "created_at": quiz.created_at,
        "updated_at": quiz.updated_at,
    }


def attempt_to_dict(attempt: QuizAttempt) -> dict:
    return {
        "id": attempt.id,
        "user_id": attempt.user_id,
        "quiz_id": attempt.quiz_id,
        "user_answer": decode_answer(attempt.user_answer),
        "is_correct": attempt.is_correct,
        "score": attempt.score,
        "time_spent": attempt.time_spent,
        "created_at": attempt.created_at,
    }


def category_to_dict(category: QuizCategory) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "icon_url": category.icon_url,
        "is_active": category.is_active,
    }


def round_half_up(value) -> int:
    return int(math.floor(float(value) + 0.5))


class QuizRepository:
    """Data access for quizzes, their attempts and the category lookup table."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, category=None, difficulty=None, type=None):
        query = self.db.query(Quiz).filter(Quiz.is_active.is_(True))
        if category:
            query = query.filter(Quiz.category == category)
        if difficulty:
            query = query.filter(Quiz.difficulty == difficulty)
        if type:
            query = query.filter(Quiz.type == type)
        return query

    def _get_row(self, quiz_id: int) -> Optional[Quiz]:
        return self.db.query(Quiz).filter(Quiz.id == quiz_id).first()

    def list(
        self, category=None, difficulty=None, type=None, limit: Optional[int] = None, offset: int = 0
    ) -> List[dict]:
        query = self._filtered(category, difficulty, type).order_by(
            Quiz.created_at.desc(), Quiz.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        quizzes = query.all()
        return [quiz_to_dict(quiz) for quiz in quizzes]

    def get_by_id(self, quiz_id: int) -> Optional[dict]:
        quiz = (
            self.db.query(Quiz)
            .filter(Quiz.id == quiz_id, Quiz.is_active.is_(True))
            .first()
        )
        return quiz_to_dict(quiz) if quiz else None

    def get_random(self, category=None, difficulty=None, type=None) -> Optional[dict]:
        # ORDER BY random() scans the whole filtered set; fine for small tables
        quiz = (
            self._filtered(category, difficulty, type)
            .order_by(func.random())
            .first()
        )
        return quiz_to_dict(quiz) if quiz else None

    def create(self, data: dict) -> dict:
        values = {key: value for key, value in data.items() if key in QUIZ_FIELDS}
        if "options" in values:
            values["options"] = encode_options(values["options"])
        now = utcnow()
        quiz = Quiz(**values, created_at=now, updated_at=now)

        try:
            with transaction(self.db):
                self.db.add(quiz)
        except IntegrityError as e:
            logger.warning("Rejected quiz insert: %s", e.orig)
            raise ConstraintViolation(f"Quiz could not be saved: {e.orig}") from e
        self.db.refresh(quiz)

        logger.info("Created quiz %s in category %r", quiz.id, quiz.category)
        return quiz_to_dict(quiz)

    def update(self, quiz_id: int, patch: dict) -> Optional[dict]:
        quiz = self._get_row(quiz_id)
        if not quiz:
            return None

        changes = {key: value for key, value in patch.items() if key in QUIZ_FIELDS}
        # the patch is judged together with whatever it leaves untouched
        check_options(
            changes.get("type", quiz.type),
            changes["options"] if "options" in changes else decode_options(quiz.options),
        )
        if "options" in changes:
            changes["options"] = encode_options(changes["options"])

        try:
            with transaction(self.db):
                for key, value in changes.items():
                    setattr(quiz, key, value)
                quiz.updated_at = utcnow()
        except IntegrityError as e:
            raise ConstraintViolation(f"Quiz {quiz_id} could not be updated: {e.orig}") from e
        self.db.refresh(quiz)
        return quiz_to_dict(quiz)

    def soft_delete(self, quiz_id: int) -> bool:
        quiz = self._get_row(quiz_id)
        if not quiz:
            return False

        with transaction(self.db):
            quiz.is_active = False
            quiz.updated_at = utcnow()
        logger.info("Retired quiz %s", quiz_id)
        return True

    def record_attempt(self, user_id, quiz_id, answer, is_correct, time_spent) -> dict:
        now = utcnow()
        attempt = QuizAttempt(
            user_id=user_id,
            quiz_id=quiz_id,
            user_answer=encode_answer(answer),
            is_correct=bool(is_correct),
            score=1 if is_correct else 0,
            time_spent=time_spent,
            created_at=now,
            updated_at=now,
        )

        try:
            with transaction(self.db):
                self.db.add(attempt)
        except IntegrityError as e:
            logger.warning("Rejected attempt for quiz %s by user %s: %s", quiz_id, user_id, e.orig)
            raise ConstraintViolation("Attempt references an unknown user or quiz") from e
        self.db.refresh(attempt)
        return attempt_to_dict(attempt)

    def get_stats(self, quiz_id: int) -> dict:
        total, correct, avg_time = (
            self.db.query(
                func.count(QuizAttempt.id),
                func.sum(case((QuizAttempt.is_correct.is_(True), 1), else_=0)),
                func.avg(QuizAttempt.time_spent),
            )
            .filter(QuizAttempt.quiz_id == quiz_id)
            .one()
        )
        total = int(total or 0)
        correct = int(correct or 0)

        return {
            "total_attempts": total,
            "correct_attempts": correct,
            "accuracy": format_percentage(correct, total),
            "avg_time_spent": round_half_up(avg_time or 0),
        }

    def list_categories(self) -> List[dict]:
        categories = (
            self.db.query(QuizCategory)
            .filter(QuizCategory.is_active.is_(True))
            .order_by(QuizCategory.name)
            .all()
        )
        return [category_to_dict(category) for category in categories]

    def create_category(self, data: dict) -> dict:
        if not data.get("name"):
            raise ConstraintViolation("Category name is required")
        now = utcnow()
        category = QuizCategory(
            name=data["name"],
            description=data.get("description"),
            icon_url=data.get("icon_url"),
            is_active=data.get("is_active", True),
            created_at=now,
            updated_at=now,
        )
        try:
            with transaction(self.db):
                self.db.add(category)
        except IntegrityError as e:
            logger.warning("Rejected category insert: %s", e.orig)
            raise ConstraintViolation(f"Category could not be saved: {e.orig}") from e
        self.db.refresh(category)
        return category_to_dict(category)

    def get_category_stats(self) -> List[dict]:
        rows = (
            self.db.query(Quiz.category, func.count(Quiz.id).label("count"))
            .filter(Quiz.is_active.is_(True))
            .group_by(Quiz.category)
            .order_by(Quiz.category)
            .all()
        )
        return [{"category": row.category, "count": row.count} for row in rows]


def is_answer_correct(canonical: str, answer) -> bool:
    """Compare a submitted answer with the canonical one, ignoring case and spacing.

    Multiple-choice canonical answers are comma separated ("Mora,Primogem") and
    match a list answer in any order.
    """
    def normalize(value) -> str:
        return str(value).strip().casefold()

    if isinstance(answer, (list, tuple)):
        expected = sorted(normalize(part) for part in canonical.split(","))
        return sorted(normalize(part) for part in answer) == expected
    return normalize(answer) == normalize(canonical)

"""Vote creation, ballot submission and tallying.

Every multi-row write runs inside ``transaction(db)``, so a rejected ballot or a
failed option insert leaves nothing behind. The pre-submission ballot lookup is
only a fast path: the unique constraint on ``user_votes`` is what actually stops
a second ballot for the same option, and its violation is reported as
``AlreadyVoted`` like the fast path.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from genshin_quiz.db.database import transaction
from genshin_quiz.utils.exceptions import (
    AlreadyVoted,
    ConstraintViolation,
    InvalidVoteWindow,
    TooManyChoices,
    VoteEnded,
    VoteNotActive,
    is_unique_violation,
)
from genshin_quiz.utils.lifecycle import to_naive_utc, utcnow, vote_status
from genshin_quiz.utils.serialization import format_percentage
from genshin_quiz.v1.models.user_vote import UserVote
from genshin_quiz.v1.models.vote import Vote
from genshin_quiz.v1.models.vote_option import VoteOption

logger = logging.getLogger(__name__)

VOTE_FIELDS = (
    "title",
    "description",
    "type",
    "created_by",
    "is_active",
    "is_anonymous",
    "start_time",
    "end_time",
    "max_choices",
)
OPTION_FIELDS = ("title", "description", "image_url")


def option_to_dict(option: VoteOption) -> dict:
    return {
        "id": option.id,
        "vote_id": option.vote_id,
        "title": option.title,
        "description": option.description,
        "image_url": option.image_url,
        "sort_order": option.sort_order,
    }


def vote_to_dict(vote: Vote, now=None) -> dict:
    return {
        "id": vote.id,
        "title": vote.title,
        "description": vote.description,
        "type": vote.type,
        "created_by": vote.created_by,
        "is_active": vote.is_active,
        "is_anonymous": vote.is_anonymous,
        "start_time": vote.start_time,
        "end_time": vote.end_time,
        "max_choices": vote.max_choices,
        "status": vote_status(now or utcnow(), vote.start_time, vote.end_time, vote.is_active),
        "created_at": vote.created_at,
        "updated_at": vote.updated_at,
    }


class VotingEngine:
    def __init__(self, db: Session):
        self.db = db

    def find_all_active(self) -> List[dict]:
        now = utcnow()
        votes = (
            self.db.query(Vote)
            .filter(Vote.is_active.is_(True))
            .order_by(Vote.created_at.desc(), Vote.id.desc())
            .all()
        )
        return [vote_to_dict(vote, now) for vote in votes]

    def find_by_id_with_options(self, vote_id: int) -> Optional[dict]:
        vote = self.db.query(Vote).filter(Vote.id == vote_id).first()
        if not vote:
            return None

        options = (
            self.db.query(VoteOption)
            .filter(VoteOption.vote_id == vote_id)
            .order_by(VoteOption.sort_order, VoteOption.id)
            .all()
        )
        record = vote_to_dict(vote)
        record["options"] = [option_to_dict(option) for option in options]
        return record

    def create(self, vote_data: dict, options: Iterable[dict]) -> dict:
        """Insert a vote and its options atomically.

        Options are numbered by their position in ``options``, starting at 1.
        """
        values = {key: value for key, value in vote_data.items() if key in VOTE_FIELDS}
        values["start_time"] = to_naive_utc(values.get("start_time"))
        values["end_time"] = to_naive_utc(values.get("end_time"))
        if (
            values["start_time"] is not None
            and values["end_time"] is not None
            and values["end_time"] < values["start_time"]
        ):
            raise InvalidVoteWindow()

        now = utcnow()
        with transaction(self.db):
            vote = Vote(**values, created_at=now, updated_at=now)
            self.db.add(vote)
            self.db.flush()

            for index, option in enumerate(options):
                option_values = {
                    key: value for key, value in option.items() if key in OPTION_FIELDS
                }
                self.db.add(
                    VoteOption(
                        **option_values,
                        vote_id=vote.id,
                        sort_order=index + 1,
                        created_at=now,
                        updated_at=now,
                    )
                )
            self.db.flush()
            vote_id = vote.id

        logger.info("Created vote %s (%r)", vote_id, values.get("title"))
        return self.find_by_id_with_options(vote_id)

    def submit_vote(self, vote_id: int, user_id: int, option_ids: List[int]) -> bool:
        # option_ids are not checked for membership in vote_id, nor deduplicated
        option_ids = list(option_ids)
        try:
            with transaction(self.db):
                existing = (
                    self.db.query(UserVote.id)
                    .filter(UserVote.vote_id == vote_id, UserVote.user_id == user_id)
                    .first()
                )
                if existing:
                    raise AlreadyVoted()

                vote = self.db.query(Vote).filter(Vote.id == vote_id).first()
                if not vote or not vote.is_active:
                    raise VoteNotActive()

                if vote.end_time is not None and vote.end_time < utcnow():
                    raise VoteEnded()

                if len(option_ids) > vote.max_choices:
                    raise TooManyChoices(
                        f"Too many choices selected: {len(option_ids)} > {vote.max_choices}"
                    )

                self.db.add_all(
                    UserVote(vote_id=vote_id, user_id=user_id, vote_option_id=option_id)
                    for option_id in option_ids
                )
                self.db.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.warning(
                    "Duplicate ballot for vote %s by user %s caught by constraint",
                    vote_id,
                    user_id,
                )
                raise AlreadyVoted() from e
            logger.warning("Ballot for vote %s rejected by the store: %s", vote_id, e.orig)
            raise ConstraintViolation(f"Ballot could not be recorded: {e.orig}") from e
        except (AlreadyVoted, VoteNotActive, VoteEnded, TooManyChoices) as e:
            logger.warning("Ballot for vote %s by user %s rejected: %s", vote_id, user_id, e)
            raise

        logger.info("User %s voted on %s for options %s", user_id, vote_id, option_ids)
        return True

    def get_results(self, vote_id: int) -> dict:
        rows = (
            self.db.query(
                VoteOption.id,
                VoteOption.title,
                VoteOption.description,
                func.count(UserVote.id).label("vote_count"),
            )
            .outerjoin(UserVote, VoteOption.id == UserVote.vote_option_id)
            .filter(VoteOption.vote_id == vote_id)
            .group_by(
                VoteOption.id,
                VoteOption.title,
                VoteOption.description,
                VoteOption.sort_order,
            )
            .order_by(VoteOption.sort_order, VoteOption.id)
            .all()
        )

        total_votes = sum(int(row.vote_count) for row in rows)
        return {
            "results": [
                {
                    "id": row.id,
                    "title": row.title,
                    "description": row.description,
                    "vote_count": int(row.vote_count),
                    "percentage": format_percentage(int(row.vote_count), total_votes),
                }
                for row in rows
            ],
            "total_votes": total_votes,
        }

    def has_user_voted(self, vote_id: int, user_id: int) -> bool:
        ballot = (
            self.db.query(UserVote.id)
            .filter(UserVote.vote_id == vote_id, UserVote.user_id == user_id)
            .first()
        )
        return ballot is not None

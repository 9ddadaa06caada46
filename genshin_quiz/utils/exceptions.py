from sqlalchemy.exc import IntegrityError


class QuizAppError(Exception):
    """Base class for errors raised by the repositories and the voting engine."""

    message = "Quiz application error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class VotingError(QuizAppError):
    message = "Vote could not be recorded"


class AlreadyVoted(VotingError):
    message = "User has already voted"


class VoteNotActive(VotingError):
    message = "Vote is not active"


class VoteEnded(VotingError):
    message = "Vote has ended"


class TooManyChoices(VotingError):
    message = "Too many choices selected"


class InvalidVoteWindow(VotingError):
    message = "Vote end time must not be before its start time"


class InvalidQuizOptions(QuizAppError):
    message = "Quiz options do not match its type"


class ConstraintViolation(QuizAppError):
    message = "Database constraint violated"


class EmailAlreadyRegistered(ConstraintViolation):
    message = "Email already registered"


# SQLSTATE 23505 is unique_violation on PostgreSQL
UNIQUE_VIOLATION_CODES = {"23505"}


def is_unique_violation(error: IntegrityError) -> bool:
    orig = getattr(error, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is not None:
        return code in UNIQUE_VIOLATION_CODES
    text = str(orig if orig is not None else error).lower()
    return "unique" in text or "duplicate" in text

# Importing every model registers its table on Base.metadata.
from genshin_quiz.v1.models.user import User
from genshin_quiz.v1.models.quiz import Quiz
from genshin_quiz.v1.models.quiz_category import QuizCategory
from genshin_quiz.v1.models.quiz_attempt import QuizAttempt
from genshin_quiz.v1.models.vote import Vote
from genshin_quiz.v1.models.vote_option import VoteOption
from genshin_quiz.v1.models.user_vote import UserVote

__all__ = [
    "User",
    "Quiz",
    "QuizCategory",
    "QuizAttempt",
    "Vote",
    "VoteOption",
    "UserVote",
]

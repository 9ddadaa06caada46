from fastapi import APIRouter
from genshin_quiz.v1.routes.authentication import auth
from genshin_quiz.v1.routes.users import users
from genshin_quiz.v1.routes.quiz import quiz
from genshin_quiz.v1.routes.votes import votes
api_version_one = APIRouter(prefix="/api/v1")

api_version_one.include_router(auth)
api_version_one.include_router(users)
api_version_one.include_router(quiz)
api_version_one.include_router(votes)

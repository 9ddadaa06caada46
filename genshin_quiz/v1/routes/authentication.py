import logging
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.orm import Session
from genshin_quiz.db.database import get_db
from genshin_quiz.v1.repositories.user import UserRepository
from genshin_quiz.v1.schemas.user import UserSignin, Token
from genshin_quiz.utils.authentication import verify_password, create_access_token

logger = logging.getLogger(__name__)

auth = APIRouter(prefix="/auth", tags=["Authentication"])


@auth.post("/login", response_model=Token)
def login(user_data: UserSignin, db: Session = Depends(get_db)):
    users = UserRepository(db)
    user = users.get_by_email(user_data.email)
    if not user or not verify_password(user_data.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    users.touch_last_login(user.id)
    logger.info("User %s logged in", user.id)

    access_token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"access_token": access_token, "token_type": "bearer"}

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.tokens import Token
from app.schemas.user import UserLogin, UserOut, UserSignup
from app.services.user_service import UserService
from app.utils.auth import get_current_user
from app.utils.security import create_access_token

router = APIRouter()


def _token_response(user: User) -> dict:
    token = create_access_token(data={"sub": user.email})
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user,
    }


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
def signup(user: UserSignup, db: Session = Depends(get_db)):
    """Register a STAFF account in an existing department"""
    new_user = UserService(db).signup(user)
    return _token_response(new_user)


@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = UserService(db).authenticate(user.email, user.password)
    if not db_user:
        raise HTTPException(status_code=400, detail="Invalid credentials")
    if not db_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been deactivated. Please contact administrator.",
        )
    return _token_response(db_user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user

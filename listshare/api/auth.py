"""Account and session endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from listshare.api.dependencies import get_current_user
from listshare.database import get_db
from listshare.models.user import User
from listshare.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from listshare.services.auth import authenticate_user, create_access_token, register_user

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def session_for(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=create_access_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Sign up and start a session. Taken emails or usernames give a 409."""
    user = register_user(
        db, user_data.email, user_data.password, user_data.username, user_data.name
    )
    return session_for(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    user = authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session_for(user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get the signed-in user's profile."""
    return current_user

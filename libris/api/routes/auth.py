"""
Authentication API Routes for Libris.

Handles:
- User registration (Sign Up)
- User login (Token generation)
- Current user retrieval
- User directory
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger

from libris.api.dependencies import (
    get_current_user_id,
    get_identity_gate,
    get_user_repository,
)
from libris.api.schemas import SignupResponse, Token, UserCreate, UserResponse
from libris.errors import AuthenticationError, NotFoundError
from libris.security import get_password_hash, verify_password


router = APIRouter(prefix="/auth", tags=["auth"])
users_router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    user: UserCreate,
    users=Depends(get_user_repository),
    gate=Depends(get_identity_gate),
):
    """Register a new user and return a session token."""
    new_user = users.create(
        email=user.email,
        hashed_password=get_password_hash(user.password),
        name=user.name,
    )
    token = gate.create_access_token(new_user.id)
    return {
        "user": new_user,
        "session": {"access_token": token, "token_type": "bearer"},
    }


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    users=Depends(get_user_repository),
    gate=Depends(get_identity_gate),
):
    """
    Login endpoint.
    Returns a JWT if the email/password pair is valid.
    """
    # OAuth2 form calls the email field "username"
    user = users.get_by_email(form_data.username)

    if not user or not user.is_active or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Failed login for {form_data.username}")
        raise AuthenticationError("Incorrect email or password")

    return {"access_token": gate.create_access_token(user.id), "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def read_users_me(
    user_id: str = Depends(get_current_user_id),
    users=Depends(get_user_repository),
):
    """Get current user profile."""
    user = users.get(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


@users_router.get("", response_model=list[UserResponse])
def list_users(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _: str = Depends(get_current_user_id),
    users=Depends(get_user_repository),
):
    """List registered users, newest first."""
    return users.list_all(limit=limit, offset=offset)

"""
User storage for the bundled identity gate.
"""

import uuid
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from libris.errors import ConflictError
from .database import Database
from .models import User


class UserRepository:
    """Accounts: create on signup, look up on login and token checks."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, email: str, hashed_password: str, name: Optional[str] = None) -> User:
        """
        Create a new account.

        Raises:
            ConflictError: email already registered
        """
        try:
            with self.db.transaction() as session:
                user = User(
                    id=str(uuid.uuid4()),
                    email=email.lower(),
                    hashed_password=hashed_password,
                    name=name,
                )
                session.add(user)
                session.flush()
                session.refresh(user)
        except IntegrityError as e:
            raise ConflictError("Email already registered", detail=email) from e

        logger.info(f"User registered: {user.id}")
        return user

    def get(self, user_id: str) -> Optional[User]:
        with self.db.get_session() as session:
            return session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with self.db.get_session() as session:
            return session.execute(
                select(User).where(User.email == email.lower())
            ).scalar_one_or_none()

    def list_all(self, limit: int = 100, offset: int = 0) -> list[User]:
        with self.db.get_session() as session:
            return list(
                session.execute(
                    select(User).order_by(User.created_at.desc()).offset(offset).limit(limit)
                ).scalars()
            )

"""
Identity gate for Libris.

The circulation core only needs "verify token -> user id". This module
ships a JWT implementation of that contract plus password hashing for
the bundled signup/login endpoints.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from libris.errors import AuthenticationError

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7


def get_password_hash(password: str) -> str:
    return generate_password_hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return check_password_hash(hashed_password, plain_password)


class TokenIdentityGate:
    """
    Issues and verifies bearer tokens.

    Usage:
        gate = TokenIdentityGate(secret_key="...")
        token = gate.create_access_token(user_id)
        user_id = gate.verify(token)
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = ALGORITHM,
        expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_access_token(
        self,
        user_id: str,
        expires_delta: Optional[timedelta] = None,
        extra_claims: Optional[dict] = None,
    ) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.expire_minutes)
        )
        claims = dict(extra_claims or {})
        claims.update({"sub": user_id, "exp": expire})
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Resolve a bearer token to a user id.

        Raises:
            AuthenticationError: bad signature, expired, or no subject
        """
        if not token:
            raise AuthenticationError("No token provided")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise AuthenticationError("Invalid token", detail=str(e)) from e

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token", detail="Token has no subject")
        return user_id

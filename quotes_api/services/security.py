"""
Quotes API — Password Hashing and Bearer Tokens
=================================================

What:  bcrypt password helpers and the TokenService that signs and verifies
       HS256 JWTs.
Who:   UserService (hashing, issuing) and the auth dependencies (verifying).

Token claims:
    {"id": ..., "email": ..., "username": ..., "iat": ..., "exp": ...}
    exp defaults to 24 hours after issuance. There is no server-side session
    state; a token stays valid until it expires or the secret changes.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from quotes_api.exceptions import AuthError
from quotes_api.schemas.user import User
from quotes_api.timestamps import utcnow

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases reject longer input
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """
    Hash a plaintext password with a fresh random salt.

    Args:
        password: Plaintext password.
        rounds: bcrypt cost factor (log2 of the iteration count).

    Returns:
        The bcrypt hash as a str, salt and cost embedded.
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """True when `password` matches the bcrypt `password_hash`."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error("Password verification error: %s", str(e))
        return False


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_hours: int = 24):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_hours = expire_hours

    def issue_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a signed token for `user`.

        Args:
            user: The authenticated account.
            expires_delta: Lifetime override; defaults to `expire_hours`.
        """
        issued_at = utcnow()
        if expires_delta is None:
            expires_delta = timedelta(hours=self.expire_hours)
        claims = {
            "id": user.id,
            "email": user.email,
            "username": user.username,
            "iat": issued_at,
            "exp": issued_at + expires_delta,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and check a token.

        Returns:
            The embedded claims.

        Raises:
            AuthError: bad signature, malformed token, expired, or no `id`.
        """
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise AuthError("Invalid token")
        except JWTError as e:
            logger.info("Rejected token: %s", str(e))
            raise AuthError("Invalid token")

        if not claims.get("id"):
            raise AuthError("Invalid token")
        return claims

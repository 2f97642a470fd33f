"""
Password hashing and bearer token handling.

- bcrypt for one-way password hashes (fixed cost factor)
- JWT (HS256) bearer tokens carrying the user's id and email
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from loguru import logger

from .exceptions import BadRequestError, UnauthorizedError

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60
BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72

# Placeholder used when JWT_SECRET is unset. Never valid outside development.
INSECURE_SECRET_PLACEHOLDER = "insecure-dev-secret-change-me"


# =============================================================================
# Passwords
# =============================================================================

def get_password_hash(password: str) -> str:
    """Hash a password with a fresh salt."""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise BadRequestError(
            "Password too long",
            detail=f"Passwords are limited to {MAX_PASSWORD_BYTES} bytes",
        )
    hashed = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a stored hash. Malformed input never matches."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


@lru_cache()
def dummy_password_hash() -> str:
    """
    Hash compared against when the email is unknown, so a failed login
    costs the same whether or not the account exists.
    """
    return get_password_hash("storefront-dummy-password")


# =============================================================================
# Tokens
# =============================================================================

class TokenIssuer:
    """
    Signs and verifies bearer tokens.

    Usage:
        issuer = TokenIssuer(secret_key=settings.jwt_secret)
        token = issuer.sign({"id": 1, "email": "a@example.com"})
        payload = issuer.verify(token)
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = ALGORITHM,
        expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        if secret_key == INSECURE_SECRET_PLACEHOLDER:
            logger.warning("TokenIssuer is using the placeholder JWT secret; set JWT_SECRET")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def sign(self, payload: dict, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a signed token.

        Args:
            payload: Claims to embed (at least id and email).
            expires_delta: Lifetime override.

        Returns:
            Encoded JWT.
        """
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.expire_minutes)

        to_encode = dict(payload)
        to_encode["iat"] = now
        to_encode["exp"] = now + expires_delta

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> dict:
        """
        Decode and validate a token.

        Raises:
            UnauthorizedError: Expired, tampered or malformed token.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise UnauthorizedError("Token expired")
        except JWTError:
            raise UnauthorizedError("Invalid token")

        if payload.get("id") is None or not payload.get("email"):
            raise UnauthorizedError("Invalid token", detail="Token is missing identity claims")

        return payload

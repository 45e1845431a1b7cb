"""
Password hashing and signed session tokens.
"""
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt
from passlib.context import CryptContext

from config import Settings


class TokenError(Exception):
    pass


class InvalidToken(TokenError):
    pass


class ExpiredToken(TokenError):
    pass


# Passwords

@lru_cache
def password_context(rounds: int = 12) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int = 12) -> str:
    return password_context(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # the cost factor is read back from the stored hash
    return password_context().verify(plain_password, hashed_password)


# Tokens

def create_access_token(principal_id: str, settings: Settings,
                        expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token binding `principal_id`, valid for `jwt_expire_minutes` by default."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"id": str(principal_id), "iat": now, "exp": now + expires_delta}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> str:
    """Return the principal id carried by `token`.

    Raises ExpiredToken once past expiry and InvalidToken for anything else
    wrong with it (signature, format, missing claims).
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "id"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise ExpiredToken(str(e)) from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken(str(e)) from e
    principal_id = payload.get("id")
    if not isinstance(principal_id, str) or not principal_id:
        raise InvalidToken("Token carries no principal id")
    return principal_id

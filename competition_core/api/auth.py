"""
Authentication helper library for the core REST API

Access tokens and session cookies are both JSON web tokens signed with the
same key, distinguished by their ``typ`` claim. Access tokens carry their
granted scopes, session cookies carry the token used to prevent CSRF.
"""

import datetime
import secrets
from typing import Any, Dict, Iterable, Optional

from jose import jwt
from sqlalchemy.orm import Session
from argon2 import PasswordHasher, profiles

from ..persistence import models
from ..schemas import config


ACCESS_TOKEN_TYPE = "access"
SESSION_TOKEN_TYPE = "session"
SESSION_COOKIE = "session"
CSRF_HEADER = "X-CSRF-Token"

runtime_key = secrets.token_hex(32)

_secret_key: Optional[str] = None
_password_check: Optional[PasswordHasher] = None


def configure(server: config.ServerConfig):
    """
    Set up the token signing key and password hashing parameters from the server config
    """

    global _secret_key, _password_check
    _secret_key = server.token_secret
    if server.allow_weak_insecure_password_hashes:
        _password_check = PasswordHasher.from_parameters(profiles.CHEAPEST)
    else:
        _password_check = PasswordHasher.from_parameters(profiles.RFC_9106_LOW_MEMORY)


def _get_password_check() -> PasswordHasher:
    global _password_check
    if _password_check is None:
        _password_check = PasswordHasher.from_parameters(profiles.RFC_9106_LOW_MEMORY)
    return _password_check


def _get_key() -> str:
    return _secret_key or runtime_key


def hash_password(password: str) -> str:
    return _get_password_check().hash(password)


async def check_user_credentials(username: str, password: str, session: Session) -> models.User:
    """
    Check the correctness of a password for a given username, raise some error otherwise

    :raises ValueError: when the user is unknown
    :raises argon2.exceptions.VerificationError: when the password doesn't match
    """

    checker = _get_password_check()
    user = session.query(models.User).filter_by(name=username).one_or_none()
    if user is None:
        raise ValueError(f"Unknown user {username!r}!")
    checker.verify(user.hashed_password, password)
    if checker.check_needs_rehash(user.hashed_password):
        user.hashed_password = checker.hash(password)
        session.add(user)
        session.commit()
    return user


def _encode(claims: Dict[str, Any], expiration_minutes: int) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return jwt.encode(
        {
            "exp": now + datetime.timedelta(minutes=expiration_minutes),
            "iat": now,
            **claims
        },
        _get_key(),
        algorithm=jwt.ALGORITHMS.HS256
    )


def create_access_token(user_id: int, scopes: Iterable[str], expiration_minutes: int = 120) -> str:
    return _encode(
        {"sub": str(user_id), "typ": ACCESS_TOKEN_TYPE, "scope": " ".join(sorted(set(scopes)))},
        expiration_minutes
    )


def create_session_token(user_id: int, csrf_token: str, expiration_minutes: int = 120) -> str:
    return _encode(
        {"sub": str(user_id), "typ": SESSION_TOKEN_TYPE, "csrf": csrf_token},
        expiration_minutes
    )


def decode_token(token: str, token_type: str) -> Dict[str, Any]:
    """
    Verify a token and return its claims

    :raises jose.JWTError: when the signature or expiration is invalid
    :raises ValueError: when the token has the wrong type or no subject
    """

    claims = jwt.decode(
        token,
        _get_key(),
        algorithms=[jwt.ALGORITHMS.HS256],
        options={"require_exp": True, "require_iat": True, "require_sub": True}
    )
    if claims.get("typ") != token_type:
        raise ValueError(f"Expected token of type {token_type!r}, got {claims.get('typ')!r}")
    return claims

"""Password hashing, JWT tokens and credential validation."""

import re
from datetime import timedelta
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from flowbalance.config.settings import get_settings
from flowbalance.core.timezone import now_utc, UTC

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    rounds = rounds or get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token carrying the user id and email."""
    settings = get_settings()
    expire = now_utc() + (expires_delta or timedelta(days=settings.jwt_expire_days))
    payload = {
        "userId": user_id,
        "email": email,
        "exp": UTC.localize(expire),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Return the token payload, or None if it is invalid or expired."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if not payload.get("userId"):
        return None
    return payload


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def password_problems(password: str) -> list[str]:
    """Return the list of rules the password breaks (empty when acceptable)."""
    problems = []
    if len(password or "") < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not re.search(r"[a-z]", password or ""):
        problems.append("Password must contain a lowercase letter")
    if not re.search(r"\d", password or ""):
        problems.append("Password must contain a digit")
    return problems

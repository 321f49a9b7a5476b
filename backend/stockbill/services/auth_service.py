# Overview: Staff accounts: registration, bcrypt credentials and login.

"""
User accounts

Every product and invoice records the user who created it, so the API only
serves logged-in users. Two roles exist: admin (may delete products) and
staff. Passwords are stored as bcrypt hashes; bearer tokens live in
session_service.
"""

import logging
import re

import bcrypt

from ..models import User
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError

logger = logging.getLogger(__name__)

ROLES = ("admin", "staff")


class PasswordValidationError(ValidationError):
    """Password too short, or missing a letter or a digit."""


def validate_password_strength(password: str) -> None:
    """At least 8 characters including a letter and a digit."""
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str, rounds: int = 12) -> str:
    """Strength-check then bcrypt ``password``; ``rounds`` is BCRYPT_ROUNDS."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time bcrypt comparison; a corrupt stored hash never matches."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def create_user(session, *, name: str, email: str, password: str, role: str = "staff", bcrypt_rounds: int = 12) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        PasswordValidationError: Weak password
        ConflictError: Email already registered
        ValidationError: Unknown role
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    email = email.strip().lower()
    existing = session.query(User).filter_by(email=email).first()
    if existing:
        raise ConflictError("Email already registered")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=role,
    )
    session.add(user)
    session.commit()

    logger.info("Created user id=%s role=%s", user.id, user.role)
    return user


def authenticate(session, email: str, password: str) -> User | None:
    """Return the active user matching the credentials, or None."""
    user = session.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        logger.warning("Failed login for user id=%s", user.id)
        return None

    user.last_login_at = utcnow()
    session.commit()
    return user

# Overview: Bearer-token sessions for the staff API.

"""
Session tokens

Login hands the client a random 32-byte hex token; only its SHA-256 digest is
kept in session_tokens. Tokens expire 24 hours after login or after 2 idle
hours; logout revokes them early.
"""

import secrets
import hashlib
from datetime import timedelta

from ..models import SessionToken, User
from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


def generate_token() -> str:
    """Plaintext token for the client; never persisted."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Digest stored in session_tokens.token_hash."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    session,
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """Returns (record, plaintext_token); the plaintext is shown to the caller once."""
    plaintext_token = generate_token()

    now = utcnow()
    record = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )

    session.add(record)
    session.commit()

    return record, plaintext_token


def validate_session(session, token: str) -> User | None:
    """
    Resolve a bearer token to its active user, or None.

    A successful lookup refreshes last_used_at, which drives the idle timeout.
    """
    record = session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not record or record.is_revoked:
        return None

    now = utcnow()
    if record.expires_at <= now or now - record.last_used_at > SESSION_IDLE_TIMEOUT:
        return None

    user = record.user
    if not user or not user.is_active:
        return None

    record.last_used_at = now
    session.commit()
    return user


def revoke_session(session, token: str, reason: str = "User logout") -> bool:
    """Revoke a session. Returns False when the token is unknown or already revoked."""
    record = session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not record or record.is_revoked:
        return False

    record.is_revoked = True
    record.revoked_at = utcnow()
    record.revoked_reason = reason
    session.commit()
    return True

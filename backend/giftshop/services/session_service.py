# Overview: Service-layer operations for admin sessions; encapsulates business logic and database work.

"""
Admin Session Token Service

Tokens are opaque bearer strings: cryptographically random, returned to the
client once, stored only as a SHA-256 hash, and valid until their absolute
expiry or until revoked at logout.
"""

import hashlib
import re
import secrets
from datetime import timedelta

from flask import current_app

from ..errors import AuthError
from ..extensions import db
from ..models import AdminSession
from giftshop.time_utils import utcnow


TOKEN_BYTES = 32
_TOKEN_RE = re.compile(r"^[0-9a-f]{64}$")


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def is_well_formed(token: str | None) -> bool:
    return bool(token) and bool(_TOKEN_RE.match(token))


def create_session(
    admin_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[AdminSession, str]:
    """
    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()
    lifetime = timedelta(hours=current_app.config["ADMIN_SESSION_HOURS"])

    session = AdminSession(
        admin_id=admin_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + lifetime,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str | None) -> AdminSession | None:
    """
    Returns the live session for token, or None if the token is malformed,
    unknown, revoked, or expired.
    """
    if not is_well_formed(token):
        return None

    session = db.session.query(AdminSession).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < utcnow():
        return None

    if session.admin is None:
        return None

    return session


def revoke_session(token: str, reason: str = "Admin logout") -> bool:
    """Returns True if a live session was revoked, False if not found."""
    if not is_well_formed(token):
        return False

    session = db.session.query(AdminSession).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()
    return True


def cleanup_expired_sessions(retention_days: int = 30) -> int:
    """Delete sessions that are expired or revoked and older than the retention window."""
    cutoff = utcnow() - timedelta(days=retention_days)

    deleted = db.session.query(AdminSession).filter(
        db.or_(
            AdminSession.expires_at < utcnow(),
            AdminSession.is_revoked.is_(True),
        ),
        AdminSession.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted


def require_session(token: str | None) -> AdminSession:
    """
    Like validate_session, but raises instead of returning None.

    Raises:
        AuthError: Token malformed, unknown, revoked, or expired
    """
    session = validate_session(token)
    if session is None:
        raise AuthError("Invalid or expired token")
    return session

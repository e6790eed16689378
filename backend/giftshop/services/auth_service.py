# Overview: Service-layer operations for admin auth; encapsulates business logic and database work.

"""
Admin Authentication Service

Uses bcrypt for password hashing. Admins are provisioned from the CLI
(`flask admins create`); there is no HTTP registration path.
"""

import bcrypt
from ..extensions import db
from ..models import Admin


MIN_PASSWORD_LENGTH = 8
DEFAULT_BCRYPT_ROUNDS = 12


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash password using bcrypt. Password is validated for strength before hashing."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for malformed hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_admin(username: str, password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> Admin:
    """
    Create an admin account.

    Raises:
        ValueError: Username blank or already taken
        PasswordValidationError: Password too short
    """
    username = (username or "").strip()
    if not username:
        raise ValueError("Username is required")

    existing = db.session.query(Admin).filter_by(username=username).first()
    if existing:
        raise ValueError("Username already exists")

    admin = Admin(username=username, password_hash=hash_password(password, rounds=rounds))
    db.session.add(admin)
    db.session.commit()
    return admin


def authenticate(username: str, password: str) -> Admin | None:
    """Return the Admin if credentials match, None otherwise."""
    if not username or not password:
        return None

    admin = db.session.query(Admin).filter_by(username=username).first()
    if not admin:
        return None

    if verify_password(password, admin.password_hash):
        return admin
    return None

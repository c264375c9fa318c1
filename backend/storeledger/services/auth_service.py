# Overview: Service-layer operations for user accounts; password hashing and credential checks.

"""
Authentication Service

WHY: Every ledger mutation is attributed to a user (created_by, updated_by,
audit rows). Uses bcrypt for secure password hashing and validates password
strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..models import User
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(name: str, email: str, password: str, *, is_admin: bool = False) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: missing name/email or weak password
        ConflictError: email already registered
    """
    name = (name or "").strip()
    email = normalize_email(email)
    if not name:
        raise ValidationError("name is required")
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise ConflictError("Email already registered")

    # Hash password with bcrypt (validates strength automatically)
    password_hash = hash_password(password)

    user = User(
        name=name,
        email=email,
        password_hash=password_hash,
        is_active=True,
        is_admin=is_admin,
    )

    db.session.add(user)
    db.session.commit()
    return user


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == normalize_email(email)).first()


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password or "", user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None

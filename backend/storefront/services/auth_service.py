# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Uses bcrypt for password hashing and validates password strength. Two kinds
of accounts exist: OWNER (runs one storefront) and CUSTOMER (shops on any
public catalog). Customers get a CustomerProfile row at registration so owners
can later see and edit their name/phone.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import User, CustomerProfile
from ..models.auth import ROLE_CUSTOMER, VALID_ROLES
from ..validation import normalize_email, only_digits, optional_text
from storefront.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Hash password using bcrypt. Password is validated for strength before hashing."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe. Malformed hashes never verify."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def register_user(
    email: str,
    password: str,
    role: str = ROLE_CUSTOMER,
    name: str | None = None,
    phone: str | None = None,
) -> User:
    """
    Create a user account.

    CUSTOMER accounts also get their CustomerProfile (name/phone).
    Raises ValidationError for bad input and ConflictError for a taken email.
    """
    email = normalize_email(email)
    role = (role or ROLE_CUSTOMER).upper()
    if role not in VALID_ROLES:
        raise ValidationError("role must be OWNER or CUSTOMER")

    if db.session.query(User.id).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)

    try:
        db.session.flush()
        if role == ROLE_CUSTOMER:
            db.session.add(CustomerProfile(
                user_id=user.id,
                name=optional_text(name),
                phone=only_digits(phone) or None,
            ))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already registered")

    return user


def authenticate(email: str, password: str) -> User | None:
    """Return the active user for valid credentials, otherwise None."""
    email = (email or "").strip().lower()
    user = db.session.query(User).filter_by(email=email).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password or "", user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def get_profile(user_id: int) -> CustomerProfile:
    """The customer's own shared profile (created lazily for older accounts)."""
    profile = db.session.get(CustomerProfile, user_id)
    if profile is None:
        profile = CustomerProfile(user_id=user_id)
        db.session.add(profile)
        db.session.commit()
    return profile


def update_profile(user_id: int, name=None, phone=None) -> CustomerProfile:
    profile = get_profile(user_id)
    if name is not None:
        profile.name = optional_text(name)
    if phone is not None:
        profile.phone = only_digits(phone) or None
    profile.updated_at = utcnow()
    db.session.commit()
    return profile

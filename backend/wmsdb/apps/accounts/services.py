# backend/wmsdb/apps/accounts/services.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from wmsdb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    needs_rehash,
    verify_password,
)

from . import models, schemas

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are invalid or the account is disabled."""


class DuplicateUserError(ValueError):
    """Raised when a username is already taken."""


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _normalise_username(value: str) -> str:
    return value.strip().lower()


def _validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_user_by_id(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.username == _normalise_username(username))
        .first()
    )


def list_users(db: Session) -> List[models.User]:
    return db.query(models.User).order_by(models.User.username.asc()).all()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    username = _normalise_username(data.username)
    if get_user_by_username(db, username):
        raise DuplicateUserError("A user with this username already exists.")

    _validate_password_strength(data.password)

    user = models.User(
        username=username,
        full_name=(data.full_name or "").strip() or None,
        role=data.role,
        hashed_password=get_password_hash(data.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(
    db: Session,
    user: models.User,
    data: schemas.UserUpdate,
) -> models.User:
    if data.full_name is not None:
        user.full_name = data.full_name.strip() or None
    if data.role is not None:
        user.role = data.role
    if data.is_active is not None:
        user.is_active = data.is_active
    if data.password is not None:
        _validate_password_strength(data.password)
        user.hashed_password = get_password_hash(data.password)

    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Authentication and access tokens
# ---------------------------------------------------------------------------


def authenticate_user(
    db: Session,
    *,
    login_req: schemas.LoginRequest,
) -> models.User:
    """
    Password login by username.

    Raises AuthenticationError for unknown users, inactive accounts and bad
    passwords alike so callers cannot enumerate usernames. Legacy hashes are
    upgraded to Argon2id after a successful match.
    """
    user = get_user_by_username(db, login_req.username)
    if not user or not verify_password(login_req.password, user.hashed_password):
        logger.info("Failed login", extra={"username": login_req.username})
        raise AuthenticationError("Invalid credentials.")
    if not user.is_active:
        raise AuthenticationError("Inactive user account.")

    if needs_rehash(user.hashed_password):
        user.hashed_password = get_password_hash(login_req.password)
        logger.info("Upgraded password hash", extra={"user_id": user.id})

    user.last_login_at = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "role": user.role.value if hasattr(user.role, "value") else str(user.role),
    }
    access_token = create_access_token(data=payload, expires_delta=expires_delta)
    return access_token, int(ACCESS_TOKEN_EXPIRE_MINUTES * 60)

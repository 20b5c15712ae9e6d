"""Helpers for resolving and provisioning users."""
from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mindy.core.errors import NotFoundError
from mindy.db.models.user import User


def find_user(db: Session, external_id: str) -> Optional[User]:
    return db.query(User).filter(User.external_id == external_id).one_or_none()


def resolve_user(db: Session, external_id: str) -> User:
    """Return the user behind an identity-provider id or raise NotFoundError."""
    user = find_user(db, external_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def provision_user(
    db: Session,
    external_id: str,
    *,
    email: str | None = None,
    username: str | None = None,
) -> Tuple[User, bool]:
    """Fetch or create the user row for an identity-provider id.

    Returns ``(user, created)``. A concurrent insert of the same id resolves
    to the row that won.
    """
    user = find_user(db, external_id)
    if user:
        return user, False

    if not username and email:
        username = email.split("@")[0]
    user = User(external_id=external_id, email=email, username=username, role="user")
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = find_user(db, external_id)
        if existing:
            return existing, False
        raise
    db.refresh(user)
    return user, True

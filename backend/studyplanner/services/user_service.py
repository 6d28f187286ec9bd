"""Helpers for working with users."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studyplanner.db.models.user import User

logger = logging.getLogger(__name__)


def ensure_user(db: Session, user_id: UUID, display_name: str | None = None) -> User:
    """Return the user row, creating it on first sight (the profile-on-signup step)."""
    user = db.get(User, user_id)
    if user:
        if display_name and not user.display_name:
            user.display_name = display_name
        return user

    user = User(id=user_id, display_name=display_name)
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # Another request created the same user between get and flush.
        db.rollback()
        existing = db.get(User, user_id)
        if existing is None:
            raise
        return existing
    logger.info("Created user %s", user_id)
    return user

"""User profile settings."""

import logging
import traceback
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..db import crud
from ..db.models import User
from ..models.results import ErrorKind, Result
from ..utils.config import USER_PROFILE_FIELDS

logger = logging.getLogger(__name__)


def profile_dict(user: User) -> Dict:
    """Public view of a user row. The Plaid token is reported, never returned."""
    data = {"id": user.id, "bank_connected": bool(user.plaid_token)}
    for field in USER_PROFILE_FIELDS:
        data[field] = getattr(user, field)
    return data


def _clean_profile(values: Optional[Dict]) -> Dict:
    return {
        key: value
        for key, value in (values or {}).items()
        if key in USER_PROFILE_FIELDS and value is not None
    }


def create_profile(db: Session, user_id: str, values: Optional[Dict] = None) -> Result:
    if not user_id:
        return Result.fail(ErrorKind.INVALID_INPUT, "User ID is required")
    try:
        if crud.user_exists(db, user_id):
            return Result.fail(ErrorKind.INVALID_INPUT, "User already exists")
        user = crud.create_user(db, user_id, **_clean_profile(values))
    except Exception as e:
        logger.error(f"Error creating user {user_id}: {str(e)}")
        logger.error(traceback.format_exc())
        db.rollback()
        return Result.fail(ErrorKind.UPSTREAM, "Failed to create user")
    return Result.ok(user=profile_dict(user))


def get_profile(db: Session, user_id: str) -> Result:
    try:
        user = crud.get_user(db, user_id)
    except Exception as e:
        logger.error(f"Error fetching user {user_id}: {str(e)}")
        return Result.fail(ErrorKind.UPSTREAM, "Failed to fetch user")
    if user is None:
        return Result.fail(ErrorKind.NOT_FOUND, "User not found")
    return Result.ok(user=profile_dict(user))


def update_profile(db: Session, user_id: str, values: Dict) -> Result:
    updates = _clean_profile(values)
    try:
        user = crud.update_user(db, user_id, updates)
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {str(e)}")
        db.rollback()
        return Result.fail(ErrorKind.UPSTREAM, "Failed to update user")
    if user is None:
        return Result.fail(ErrorKind.NOT_FOUND, "User not found")
    logger.info(f"Updated profile for {user_id}: {sorted(updates)}")
    return Result.ok(user=profile_dict(user))


def delete_profile(db: Session, user_id: str) -> Result:
    """Delete a user together with their accounts and transactions."""
    try:
        crud.delete_user_transactions(db, user_id)
        user = crud.delete_user(db, user_id)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {str(e)}")
        db.rollback()
        return Result.fail(ErrorKind.UPSTREAM, "Failed to delete user")
    if user is None:
        return Result.fail(ErrorKind.NOT_FOUND, "User not found")
    return Result.ok(deleted=user_id)

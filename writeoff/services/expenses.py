"""Manually entered expenses."""

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ..db import crud
from ..db.models import TransactionSource
from ..models.results import ErrorKind, Result
from ..utils.config import EXPENSE_CATEGORIES, MANUAL_ENTRY_REASON

logger = logging.getLogger(__name__)


def manual_account_id(user_id: str) -> str:
    return f"manual-{user_id}"


def add_manual_expense(
    db: Session,
    user_id: str,
    description: str,
    amount: float,
    category: str = "Office Supplies",
    expense_date: Optional[date] = None,
    is_deductible: bool = True,
    notes: Optional[str] = None,
) -> Result:
    """Store an expense typed in by the user on their manual account."""
    if not description:
        return Result.fail(ErrorKind.INVALID_INPUT, "Description is required")
    if amount is None or amount <= 0:
        return Result.fail(ErrorKind.INVALID_INPUT, "Amount must be positive")
    if category not in EXPENSE_CATEGORIES:
        return Result.fail(ErrorKind.INVALID_INPUT, f"Unknown category: {category}")

    try:
        if not crud.user_exists(db, user_id):
            return Result.fail(ErrorKind.NOT_FOUND, "User not found")

        account_id = manual_account_id(user_id)
        if crud.get_account(db, account_id) is None:
            crud.add_account(db, account_id, user_id)

        transaction = crud.save_transaction(
            db,
            {
                "trans_id": f"manual-{uuid.uuid4().hex}",
                "account_id": account_id,
                "date": expense_date or date.today(),
                "amount": abs(amount),
                "merchant_name": description,
                "category": category,
                "is_deductible": is_deductible,
                "deductible_reason": MANUAL_ENTRY_REASON if is_deductible else None,
                "deduction_score": None,
                "notes": notes,
                "source": TransactionSource.MANUAL,
            },
        )
    except Exception as e:
        logger.error(f"Error saving expense for {user_id}: {str(e)}")
        db.rollback()
        return Result.fail(ErrorKind.UPSTREAM, "Failed to save expense")

    logger.info(f"Saved manual expense {transaction.trans_id} for {user_id}")
    return Result.ok(transaction=transaction.as_dict())

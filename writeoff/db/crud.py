from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from . import models


# --- Users ---


def user_exists(db: Session, user_id: str) -> bool:
    return db.query(models.User.id).filter(models.User.id == user_id).first() is not None


def get_user(db: Session, user_id: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def create_user(db: Session, user_id: str, **profile) -> models.User:
    db_user = models.User(id=user_id, **profile)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user_id: str, updates: Dict) -> Optional[models.User]:
    db_user = get_user(db, user_id)
    if db_user:
        for key, value in updates.items():
            setattr(db_user, key, value)
        db.commit()
        db.refresh(db_user)
    return db_user


def delete_user(db: Session, user_id: str) -> Optional[models.User]:
    db_user = get_user(db, user_id)
    if db_user:
        db.delete(db_user)
        db.commit()
    return db_user


# --- Accounts ---


def get_accounts(db: Session, user_id: str) -> List[models.Account]:
    return db.query(models.Account).filter(models.Account.user_id == user_id).all()


def get_account_ids(db: Session, user_id: str) -> Set[str]:
    rows = (
        db.query(models.Account.account_id)
        .filter(models.Account.user_id == user_id)
        .all()
    )
    return {row.account_id for row in rows}


def get_account(db: Session, account_id: str) -> Optional[models.Account]:
    return (
        db.query(models.Account)
        .filter(models.Account.account_id == account_id)
        .first()
    )


def add_account(db: Session, account_id: str, user_id: str) -> models.Account:
    db_account = models.Account(account_id=account_id, user_id=user_id)
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    return db_account


def update_account(db: Session, account_id: str, **updates) -> Optional[models.Account]:
    db_account = get_account(db, account_id)
    if db_account:
        for key, value in updates.items():
            setattr(db_account, key, value)
        db.commit()
        db.refresh(db_account)
    return db_account


def delete_accounts(db: Session, account_ids: Iterable[str]) -> int:
    account_ids = list(account_ids)
    if not account_ids:
        return 0
    count = (
        db.query(models.Account)
        .filter(models.Account.account_id.in_(account_ids))
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


# --- Transactions ---


def _user_transactions_query(db: Session, user_id: str):
    return (
        db.query(models.Transaction)
        .join(models.Account)
        .filter(models.Account.user_id == user_id)
    )


def get_transactions(db: Session, user_id: str) -> List[models.Transaction]:
    return (
        _user_transactions_query(db, user_id)
        .order_by(models.Transaction.date.desc())
        .all()
    )


def get_transactions_by_date_range(
    db: Session, user_id: str, start_date: date, end_date: date
) -> List[models.Transaction]:
    return (
        _user_transactions_query(db, user_id)
        .filter(
            models.Transaction.date >= start_date,
            models.Transaction.date <= end_date,
        )
        .order_by(models.Transaction.date.desc())
        .all()
    )


def get_transaction(db: Session, trans_id: str) -> Optional[models.Transaction]:
    return (
        db.query(models.Transaction)
        .filter(models.Transaction.trans_id == trans_id)
        .first()
    )


def save_transaction(db: Session, transaction_data: Dict) -> models.Transaction:
    """Insert a transaction, or overwrite the stored row with the same trans_id."""
    db_transaction = db.merge(models.Transaction(**transaction_data))
    db.commit()
    return db_transaction


def update_transaction(
    db: Session, trans_id: str, updates: Dict
) -> Optional[models.Transaction]:
    db_transaction = get_transaction(db, trans_id)
    if db_transaction:
        for key, value in updates.items():
            setattr(db_transaction, key, value)
        db.commit()
        db.refresh(db_transaction)
    return db_transaction


def delete_transactions_for_accounts(db: Session, account_ids: Iterable[str]) -> int:
    account_ids = list(account_ids)
    if not account_ids:
        return 0
    count = (
        db.query(models.Transaction)
        .filter(models.Transaction.account_id.in_(account_ids))
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def delete_user_transactions(db: Session, user_id: str) -> int:
    """Delete transactions for all accounts belonging to the user."""
    return delete_transactions_for_accounts(db, get_account_ids(db, user_id))

"""Tests for manual expenses and user profiles."""

from datetime import date

import pytest

from writeoff.db import crud
from writeoff.models.results import ErrorKind
from writeoff.services import expenses, profiles


def test_add_manual_expense(db, connected_user):
    result = expenses.add_manual_expense(
        db,
        "user-1",
        description="Printer ink",
        amount=35.0,
        expense_date=date(2024, 3, 1),
        notes="Receipt in drawer",
    )

    assert result.success
    txn = result["transaction"]
    assert txn["trans_id"].startswith("manual-")
    assert txn["account_id"] == "manual-user-1"
    assert txn["amount"] == 35.0
    assert txn["category"] == "Office Supplies"
    assert txn["deductible_reason"] == "Entered manually"
    assert txn["deduction_score"] is None
    assert txn["source"] == "manual"
    assert [t.trans_id for t in crud.get_transactions(db, "user-1")] == [txn["trans_id"]]


def test_manual_account_is_reused(db, connected_user):
    for description in ("Coffee with client", "Parking"):
        expenses.add_manual_expense(
            db, "user-1", description=description, amount=5.0, category="Meals & Entertainment"
        )
    assert [a.account_id for a in crud.get_accounts(db, "user-1")] == ["manual-user-1"]
    assert len(crud.get_transactions(db, "user-1")) == 2


def test_non_deductible_expense_has_no_reason(db, connected_user):
    result = expenses.add_manual_expense(
        db, "user-1", description="Gym", amount=40.0, category="Other", is_deductible=False
    )
    assert result["transaction"]["deductible_reason"] is None
    assert result["transaction"]["is_deductible"] is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"description": "", "amount": 10.0},
        {"description": "Pens", "amount": 0},
        {"description": "Pens", "amount": None},
        {"description": "Pens", "amount": 10.0, "category": "Yachts"},
    ],
)
def test_invalid_expense(db, connected_user, kwargs):
    result = expenses.add_manual_expense(db, "user-1", **kwargs)
    assert result.error_kind == ErrorKind.INVALID_INPUT


def test_expense_for_unknown_user(db):
    result = expenses.add_manual_expense(db, "ghost", description="Pens", amount=3.0)
    assert result.error_kind == ErrorKind.NOT_FOUND


def test_profile_lifecycle(db):
    created = profiles.create_profile(
        db, "user-5", {"full_name": "Sam Lee", "profession": "Designer", "plaid_token": "x"}
    )
    assert created.success
    assert created["user"]["full_name"] == "Sam Lee"
    assert created["user"]["bank_connected"] is False
    assert "plaid_token" not in created["user"]

    updated = profiles.update_profile(db, "user-5", {"income": 85000, "state": "CA"})
    assert updated["user"]["income"] == 85000
    assert updated["user"]["profession"] == "Designer"

    assert profiles.create_profile(db, "user-5").error_kind == ErrorKind.INVALID_INPUT
    assert profiles.delete_profile(db, "user-5")["deleted"] == "user-5"
    assert profiles.get_profile(db, "user-5").error_kind == ErrorKind.NOT_FOUND


def test_profile_reports_bank_connection(db, connected_user):
    assert profiles.get_profile(db, "user-1")["user"]["bank_connected"] is True


def test_delete_profile_removes_ledger(db, stored_transactions):
    assert profiles.delete_profile(db, "user-1").success
    assert crud.get_transactions(db, "user-1") == []
    assert crud.get_accounts(db, "user-1") == []


def test_missing_profile(db):
    assert profiles.update_profile(db, "nobody", {"state": "NY"}).error_kind == ErrorKind.NOT_FOUND
    assert profiles.delete_profile(db, "nobody").error_kind == ErrorKind.NOT_FOUND

"""Tests for the storage layer and user lookup."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import StaticPool

from writeoff.db import crud
from writeoff.db.database import init_db, make_engine, make_session_factory
from writeoff.db.user_lookup import UserLookup


def test_transactions_are_scoped_to_user_and_newest_first(db, stored_transactions):
    crud.create_user(db, "user-2")
    crud.add_account(db, "acc-other", "user-2")
    crud.save_transaction(
        db,
        {"trans_id": "x-1", "account_id": "acc-other", "date": date(2024, 3, 1), "amount": 1.0},
    )

    ids = [t.trans_id for t in crud.get_transactions(db, "user-1")]
    assert ids == ["t-2", "t-1", "t-3"]
    assert [t.trans_id for t in crud.get_transactions(db, "user-2")] == ["x-1"]


def test_date_range(db, stored_transactions):
    rows = crud.get_transactions_by_date_range(
        db, "user-1", date(2024, 3, 1), date(2024, 3, 31)
    )
    assert {t.trans_id for t in rows} == {"t-1", "t-2"}


def test_account_ids(db, connected_user):
    crud.add_account(db, "acc-1", "user-1")
    crud.add_account(db, "acc-2", "user-1")
    assert crud.get_account_ids(db, "user-1") == {"acc-1", "acc-2"}
    assert crud.get_account_ids(db, "someone-else") == set()


def test_save_transaction_upserts(db, stored_transactions):
    crud.save_transaction(
        db,
        {
            "trans_id": "t-1",
            "account_id": "acc-1",
            "date": date(2024, 3, 2),
            "amount": 50.0,
            "merchant_name": "Staples",
        },
    )
    assert crud.get_transaction(db, "t-1").amount == 50.0
    assert len(crud.get_transactions(db, "user-1")) == 3


def test_as_dict_uses_iso_dates(db, stored_transactions):
    data = crud.get_transaction(db, "t-1").as_dict()
    assert data["date"] == "2024-03-02"
    assert data["source"] == "plaid"


def test_delete_user_transactions(db, stored_transactions):
    assert crud.delete_user_transactions(db, "user-1") == 3
    assert crud.get_transactions(db, "user-1") == []
    assert crud.delete_user_transactions(db, "nobody") == 0


def test_lookup_requires_a_source():
    with pytest.raises(ValueError):
        UserLookup([])


def test_lookup_prefers_primary(db, connected_user):
    fallback = MagicMock()
    user = UserLookup.for_sessions(db, fallback).get_user("user-1")

    assert user.plaid_token == "access-sandbox-1"
    fallback.query.assert_not_called()


def test_lookup_falls_back_when_primary_has_no_row(db, connected_user):
    empty_engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=empty_engine)
    empty = make_session_factory(empty_engine)()
    try:
        user = UserLookup([("primary", empty), ("fallback", db)]).get_user("user-1")
    finally:
        empty.close()
        empty_engine.dispose()

    assert user.id == "user-1"


def test_lookup_returns_none_when_every_source_fails():
    first, second = MagicMock(), MagicMock()
    first.query.side_effect = RuntimeError("denied")
    second.query.side_effect = RuntimeError("offline")

    assert UserLookup([("primary", first), ("fallback", second)]).get_user("u") is None
    first.rollback.assert_called_once()
    second.rollback.assert_called_once()

from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import StaticPool

from writeoff.banking.plaid_client import PlaidClient
from writeoff.db import crud
from writeoff.db.database import init_db, make_engine, make_session_factory


class FakeLLM:
    """Stands in for OpenAIClient; replies in order and records prompts."""

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    def complete(self, prompt, system, max_tokens=None, temperature=0.7):
        self.calls.append({"prompt": prompt, "system": system, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0] if self.replies else ""


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_llm():
    return FakeLLM(["Yes, office supplies for business use, 85%"])


@pytest.fixture
def plaid_client():
    """PlaidClient double with a connected sandbox-style account."""
    client = MagicMock(spec=PlaidClient)
    client.get_accounts.return_value = [
        {"account_id": "acc-1", "name": "Checking", "balances": {"current": 120.5}}
    ]
    client.get_transactions.return_value = {
        "transactions": [
            {
                "transaction_id": "tx-1",
                "date": "2024-03-02",
                "amount": 42.5,
                "merchant_name": "Staples",
                "category": ["Shops", "Office Supplies"],
            },
            {
                "transaction_id": "tx-2",
                "date": "2024-03-05",
                "amount": -1500.0,
                "name": "PAYROLL DEPOSIT",
                "category": None,
                "personal_finance_category": {"primary": "INCOME"},
            },
        ],
        "request_id": "req-123",
    }
    return client


@pytest.fixture
def connected_user(db):
    return crud.create_user(
        db, "user-1", plaid_token="access-sandbox-1", plaid_item_id="item-1"
    )


@pytest.fixture
def stored_transactions(db, connected_user):
    crud.add_account(db, "acc-1", connected_user.id)
    rows = [
        {
            "trans_id": "t-1",
            "account_id": "acc-1",
            "date": date(2024, 3, 2),
            "amount": 42.5,
            "merchant_name": "Staples",
            "category": "Office Supplies",
            "is_deductible": True,
            "deductible_reason": "Office supplies",
            "deduction_score": 0.9,
        },
        {
            "trans_id": "t-2",
            "account_id": "acc-1",
            "date": date(2024, 3, 10),
            "amount": 1500.0,
            "merchant_name": "Acme Payroll",
            "category": "Transfer, Deposit",
            "is_deductible": False,
            "deductible_reason": "Income",
            "deduction_score": 0.95,
        },
        {
            "trans_id": "t-3",
            "account_id": "acc-1",
            "date": date(2024, 1, 15),
            "amount": 12.0,
            "merchant_name": "Blue Bottle",
            "category": "Food and Drink",
            "is_deductible": None,
        },
    ]
    return [crud.save_transaction(db, row) for row in rows]

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    String,
    CheckConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base


class TransactionSource:
    PLAID = "plaid"
    MANUAL = "manual"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    plaid_token = Column(String, nullable=True)  # Plaid access token
    plaid_item_id = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    profession = Column(String, nullable=True)
    income = Column(Float, nullable=True)
    state = Column(String, nullable=True)
    filing_status = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    accounts = relationship(
        "Account", back_populates="user", cascade="all, delete-orphan"
    )


class Account(Base):
    __tablename__ = "accounts"

    account_id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    last_cursor = Column(String, nullable=True)  # Sync marker from the last fetch
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="accounts")
    transactions = relationship(
        "Transaction", back_populates="account", cascade="all, delete-orphan"
    )


class Transaction(Base):
    __tablename__ = "transactions"

    trans_id = Column(String, primary_key=True, index=True)
    account_id = Column(
        String, ForeignKey("accounts.account_id"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    amount = Column(Float, nullable=False)  # Absolute value, major currency unit
    merchant_name = Column(String, nullable=True)
    category = Column(String, nullable=True)  # Comma-joined labels
    is_deductible = Column(Boolean, nullable=True)
    deductible_reason = Column(String, nullable=True)
    deduction_score = Column(Float, nullable=True)  # 0.0 to 1.0
    notes = Column(String, nullable=True)
    source = Column(String, nullable=False, server_default=TransactionSource.PLAID)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "deduction_score IS NULL OR (deduction_score >= 0 AND deduction_score <= 1)",
            name="deduction_score_range",
        ),
        CheckConstraint("source IN ('plaid', 'manual')", name="source_types"),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")

    def as_dict(self) -> dict:
        return {
            "trans_id": self.trans_id,
            "account_id": self.account_id,
            "date": self.date.isoformat() if self.date else None,
            "amount": self.amount,
            "merchant_name": self.merchant_name,
            "category": self.category,
            "is_deductible": self.is_deductible,
            "deductible_reason": self.deductible_reason,
            "deduction_score": self.deduction_score,
            "notes": self.notes,
            "source": self.source,
        }

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class UserIdRequest(BaseModel):
    user_id: Optional[str] = Field(None, alias="userId")

    class Config:
        populate_by_name = True


class PublicTokenRequest(UserIdRequest):
    public_token: Optional[str] = None


class AnalyzeTransactionRequest(BaseModel):
    transaction: Optional[Dict[str, Any]] = None


class ProfileBase(BaseModel):
    full_name: Optional[str] = None
    profession: Optional[str] = None
    income: Optional[float] = None
    state: Optional[str] = None
    filing_status: Optional[str] = None


class ProfileCreate(ProfileBase):
    id: Optional[str] = None


class ProfileUpdate(ProfileBase):
    pass


class ExpenseCreate(UserIdRequest):
    description: Optional[str] = None
    amount: Optional[float] = None
    category: str = "Office Supplies"
    expense_date: Optional[date] = Field(None, alias="date")
    is_deductible: bool = Field(True, alias="isDeductible")
    notes: Optional[str] = None

"""
Pydantic models for AI deductibility responses.
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..utils.config import MANUAL_REVIEW_REASON


class DeductionVerdict(BaseModel):
    """Structured verdict parsed from the model's free-text reply."""

    is_deductible: bool = Field(
        ..., description="Whether the transaction is a deductible business expense"
    )
    deductible_reason: str = Field(..., description="Short explanation of the verdict")
    deduction_score: Optional[float] = Field(
        None, description="Model confidence on a 0-1 scale", ge=0.0, le=1.0
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True
        extra = "forbid"

    @classmethod
    def manual_review(cls) -> "DeductionVerdict":
        """Conservative verdict used when classification fails."""
        return cls(
            is_deductible=False,
            deductible_reason=MANUAL_REVIEW_REASON,
            deduction_score=0.0,
        )

    def as_updates(self) -> dict:
        """Column values for the transactions table."""
        return {
            "is_deductible": self.is_deductible,
            "deductible_reason": self.deductible_reason,
            "deduction_score": self.deduction_score,
        }

"""
Deduction Analyzer Agent

Asks the language model whether a transaction is a deductible business
expense and turns the reply into a ``DeductionVerdict``. Also re-analyses a
user's stored ledger and writes a short tax summary.
"""

import logging
import traceback
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..db import crud
from ..models.results import ErrorKind, Result
from ..utils.config import COMPLETION_SETTINGS, PROMPTS, SYSTEM_MESSAGES
from ..utils.openai_client import OpenAIClient
from .response_parser import parse_deduction_response

logger = logging.getLogger(__name__)


def _field(transaction: Any, name: str) -> Any:
    """Read a field from a mapping or an ORM row."""
    if isinstance(transaction, Mapping):
        return transaction.get(name)
    return getattr(transaction, name, None)


def build_analysis_prompt(transaction: Any) -> str:
    return PROMPTS["analyze_transaction"].format(
        merchant_name=_field(transaction, "merchant_name"),
        amount=_field(transaction, "amount"),
        category=_field(transaction, "category"),
        date=_field(transaction, "date"),
    )


def build_summary_prompt(transactions: List[Any], deductible: List[Any]) -> str:
    total_deductible = sum(t.amount or 0 for t in deductible)
    lines = "\n".join(
        f"- {t.merchant_name}: ${t.amount} ({t.deductible_reason})" for t in deductible
    )
    return PROMPTS["tax_summary"].format(
        total_count=len(transactions),
        deductible_count=len(deductible),
        total_deductible=total_deductible,
        deductible_lines=lines,
    )


class DeductionAnalyzer:
    """Classify transactions as tax deductible with a chat completion."""

    def __init__(self, llm: OpenAIClient, db: Optional[Session] = None):
        self.llm = llm
        self.db = db

    def analyze_transaction(self, transaction: Any) -> Result:
        """Analyze one transaction.

        The transaction may be a dict (as posted to the API) or a stored row.
        Returns ``Result.ok(verdict=DeductionVerdict)``; only a failed model
        call yields a failed result.
        """
        try:
            content = self.llm.complete(
                build_analysis_prompt(transaction),
                system=SYSTEM_MESSAGES["analyze_transaction"],
                **COMPLETION_SETTINGS["analyze_transaction"],
            )
        except Exception as e:
            logger.error(f"Error analyzing transaction: {str(e)}")
            logger.debug(traceback.format_exc())
            return Result.fail(ErrorKind.UPSTREAM, "Failed to analyze transaction")

        verdict = parse_deduction_response(content)
        logger.debug(
            f"Verdict for {_field(transaction, 'merchant_name')}: "
            f"{verdict.is_deductible} ({verdict.deduction_score})"
        )
        return Result.ok(verdict=verdict)

    def analyze_all_transactions(self, user_id: str) -> Result:
        """Re-analyze every stored transaction of a user, one at a time."""
        if self.db is None:
            raise ValueError("analyze_all_transactions needs a database session")

        try:
            transactions = crud.get_transactions(self.db, user_id)
        except Exception as e:
            logger.error(f"Error loading transactions for {user_id}: {str(e)}")
            logger.error(traceback.format_exc())
            return Result.fail(ErrorKind.UPSTREAM, "Failed to load transactions")

        if not transactions:
            return Result.fail(ErrorKind.NOT_FOUND, "No transactions found")

        total = len(transactions)
        analyzed = 0
        for transaction in transactions:
            analysis = self.analyze_transaction(transaction)
            if not analysis.success:
                continue
            try:
                crud.update_transaction(
                    self.db, transaction.trans_id, analysis["verdict"].as_updates()
                )
                analyzed += 1
            except Exception as e:
                logger.error(
                    f"Error saving verdict for {transaction.trans_id}: {str(e)}"
                )
                self.db.rollback()

        logger.info(f"Analyzed {analyzed}/{total} transactions for user {user_id}")
        return Result.ok(analyzed=analyzed, total=total)

    def generate_tax_summary(self, user_id: str) -> Result:
        """Summarize the user's deductible transactions in plain language."""
        if self.db is None:
            raise ValueError("generate_tax_summary needs a database session")

        try:
            transactions = crud.get_transactions(self.db, user_id)
        except Exception as e:
            logger.error(f"Error loading transactions for {user_id}: {str(e)}")
            logger.error(traceback.format_exc())
            return Result.fail(ErrorKind.UPSTREAM, "Failed to load transactions")

        if not transactions:
            return Result.fail(ErrorKind.NOT_FOUND, "No transactions found")

        deductible = [t for t in transactions if t.is_deductible]
        total_deductible = sum(t.amount or 0 for t in deductible)

        try:
            summary = self.llm.complete(
                build_summary_prompt(transactions, deductible),
                system=SYSTEM_MESSAGES["tax_summary"],
                **COMPLETION_SETTINGS["tax_summary"],
            )
        except Exception as e:
            logger.error(f"Error generating tax summary: {str(e)}")
            logger.debug(traceback.format_exc())
            return Result.fail(ErrorKind.UPSTREAM, "Failed to generate tax summary")

        return Result.ok(
            summary=summary,
            total_deductible=total_deductible,
            deductible_count=len(deductible),
        )


"""Tests for the deduction analyzer agent."""

import pytest

from conftest import FakeLLM
from writeoff.agents.deduction_analyzer import DeductionAnalyzer, build_analysis_prompt
from writeoff.db import crud
from writeoff.models.results import ErrorKind


def test_prompt_mentions_transaction_fields():
    prompt = build_analysis_prompt(
        {"merchant_name": "Staples", "amount": 42.5, "category": "Office", "date": "2024-03-02"}
    )
    assert "Staples" in prompt
    assert "42.5" in prompt
    assert "Office" in prompt
    assert "2024-03-02" in prompt


def test_analyze_transaction_parses_reply(fake_llm):
    analyzer = DeductionAnalyzer(fake_llm)
    result = analyzer.analyze_transaction({"merchant_name": "Staples", "amount": 42.5})

    assert result.success
    verdict = result["verdict"]
    assert verdict.is_deductible is True
    assert verdict.deductible_reason == "Office supplies for business use"
    assert verdict.deduction_score == 0.85
    assert fake_llm.calls[0]["max_tokens"] == 150


def test_analyze_transaction_reports_model_failure():
    analyzer = DeductionAnalyzer(FakeLLM(error=RuntimeError("rate limited")))
    result = analyzer.analyze_transaction({"merchant_name": "Staples"})

    assert not result.success
    assert result.error_kind == ErrorKind.UPSTREAM
    assert result.error == "Failed to analyze transaction"


def test_analyze_all_updates_every_row(db, stored_transactions):
    llm = FakeLLM(["No, personal expense, 80%"])
    result = DeductionAnalyzer(llm, db).analyze_all_transactions("user-1")

    assert result.success
    assert result["analyzed"] == 3
    assert result["total"] == 3
    assert len(llm.calls) == 3
    for row in crud.get_transactions(db, "user-1"):
        assert row.is_deductible is False
        assert row.deductible_reason == "Personal expense"
        assert row.deduction_score == 0.8


def test_analyze_all_keeps_going_after_failures(db, stored_transactions):
    llm = FakeLLM(error=RuntimeError("down"))
    result = DeductionAnalyzer(llm, db).analyze_all_transactions("user-1")

    assert result.success
    assert result["analyzed"] == 0
    assert result["total"] == 3
    assert crud.get_transaction(db, "t-1").deductible_reason == "Office supplies"


def test_analyze_all_without_transactions(db, connected_user, fake_llm):
    result = DeductionAnalyzer(fake_llm, db).analyze_all_transactions("user-1")
    assert result.error_kind == ErrorKind.NOT_FOUND
    assert result.error == "No transactions found"


def test_analyze_all_needs_session(fake_llm):
    with pytest.raises(ValueError):
        DeductionAnalyzer(fake_llm).analyze_all_transactions("user-1")


def test_tax_summary(db, stored_transactions):
    llm = FakeLLM(["You have one deductible office purchase."])
    result = DeductionAnalyzer(llm, db).generate_tax_summary("user-1")

    assert result.success
    assert result["summary"] == "You have one deductible office purchase."
    assert result["total_deductible"] == 42.5
    assert result["deductible_count"] == 1
    assert "Staples" in llm.calls[0]["prompt"]
    assert "Acme Payroll" not in llm.calls[0]["prompt"]


def test_tax_summary_model_failure(db, stored_transactions):
    llm = FakeLLM(error=RuntimeError("timeout"))
    result = DeductionAnalyzer(llm, db).generate_tax_summary("user-1")
    assert result.error_kind == ErrorKind.UPSTREAM

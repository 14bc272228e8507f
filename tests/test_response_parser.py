"""Tests for the deductibility response parser."""

import pytest

from writeoff.agents.response_parser import parse_deduction_response
from writeoff.models.verdict import DeductionVerdict


@pytest.mark.parametrize(
    "content,expected",
    [
        (
            "Yes, Office supplies for business operations, 85%",
            (True, "Office supplies for business operations", 0.85),
        ),
        (
            "No, Personal entertainment expense, 95%",
            (False, "Personal entertainment expense", 0.95),
        ),
        (
            "Yes, office supplies for business use, 85%",
            (True, "Office supplies for business use", 0.85),
        ),
        (
            "No, personal groceries, 90%",
            (False, "Personal groceries", 0.9),
        ),
        (
            "yes,, client dinner ,, 70%",
            (True, "Client dinner", 0.7),
        ),
        (
            "  YES, software subscription, 100%  ",
            (True, "Software subscription", 1.0),
        ),
    ],
)
def test_strict_format(content, expected):
    verdict = parse_deduction_response(content)
    assert (
        verdict.is_deductible,
        verdict.deductible_reason,
        verdict.deduction_score,
    ) == expected


def test_score_is_clamped():
    verdict = parse_deduction_response("Yes, travel, 150%")
    assert verdict.deduction_score == 1.0
    assert verdict.deductible_reason == "Travel"


def test_fallback_without_commas():
    verdict = parse_deduction_response("yes this seems fine 60%")
    assert verdict.is_deductible is True
    assert verdict.deductible_reason == "No reason provided"
    assert verdict.deduction_score == 0.6


def test_comma_only_needed_before_score():
    verdict = parse_deduction_response("Yes Office supplies, 85%")
    assert verdict.is_deductible is True
    assert verdict.deductible_reason == "Office supplies"
    assert verdict.deduction_score == 0.85


def test_fallback_score_with_space_before_percent():
    verdict = parse_deduction_response("Probably not. Confidence 40 %")
    assert verdict.is_deductible is False
    assert verdict.deduction_score == 0.4


def test_no_percentage_gives_no_score():
    verdict = parse_deduction_response("I cannot determine this.")
    assert verdict == DeductionVerdict(
        is_deductible=False,
        deductible_reason="No reason provided",
        deduction_score=None,
    )


@pytest.mark.parametrize("content", ["", None, "   "])
def test_empty_reply(content):
    verdict = parse_deduction_response(content)
    assert verdict.is_deductible is False
    assert verdict.deductible_reason == "No reason provided"
    assert verdict.deduction_score is None


def test_yes_must_be_a_whole_word():
    assert parse_deduction_response("Yesterday's lunch, personal, 80%").is_deductible is False


def test_parsing_is_deterministic():
    text = "Yes, home office internet, 65%"
    assert parse_deduction_response(text) == parse_deduction_response(text)


def test_manual_review_verdict():
    verdict = DeductionVerdict.manual_review()
    assert verdict.as_updates() == {
        "is_deductible": False,
        "deductible_reason": "Requires manual review",
        "deduction_score": 0.0,
    }

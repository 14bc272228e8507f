"""
Deductibility response parser.

The model is asked to answer in the form ``Yes/No, [brief reason], [score]%``
but does not always comply, so parsing degrades to a best-effort verdict
instead of rejecting the reply.
"""

import re
from typing import Optional

from ..models.verdict import DeductionVerdict
from ..utils.config import NO_REASON_PROVIDED

# The reason and the score must be separated by a comma
_SCORE_SEP = r"\s*,[,\s]*"

VERDICT_PATTERN = re.compile(r"^yes\b", re.IGNORECASE)
STRICT_PATTERN = re.compile(
    rf"^(yes|no)[,\s]+(.+?){_SCORE_SEP}(\d{{1,3}})%", re.IGNORECASE
)
SCORE_PATTERN = re.compile(r"(\d{1,3})\s*%")
REASON_PATTERN = re.compile(r"^[^,]+,\s*(.+?),\s*\d{1,3}%")


def _to_score(percent: str) -> float:
    """Clamp a percentage string to [0, 100] and scale to [0, 1]."""
    return min(100, max(0, int(percent))) / 100


def parse_deduction_response(content: Optional[str]) -> DeductionVerdict:
    """Parse a free-text deductibility reply into a verdict.

    Never raises. ``deduction_score`` is None when the text holds no
    percentage at all.
    """
    text = (content or "").strip()
    is_deductible = bool(VERDICT_PATTERN.match(text))

    match = STRICT_PATTERN.match(text)
    if match:
        reason = match.group(2).strip()
        score = _to_score(match.group(3))
    else:
        score_match = SCORE_PATTERN.search(text)
        score = _to_score(score_match.group(1)) if score_match else None
        reason_match = REASON_PATTERN.match(text)
        reason = reason_match.group(1).strip() if reason_match else NO_REASON_PROVIDED

    if reason:
        reason = reason[0].upper() + reason[1:]

    return DeductionVerdict(
        is_deductible=is_deductible,
        deductible_reason=reason,
        deduction_score=score,
    )

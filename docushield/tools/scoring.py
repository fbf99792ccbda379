from __future__ import annotations

from typing import Dict

from docushield.schemas.models import AuditResultModel, ReadinessBreakdownModel, ReadinessScoreModel, RiskLevel


OVERALL_BY_RISK: Dict[RiskLevel, int] = {"Low": 95, "Medium": 72, "High": 45}

CATEGORY_PASS_SCORE = 100
CATEGORY_DEFAULT_SCORE = 50
ELIGIBILITY_PLACEHOLDER = 80


def _category_score(result: AuditResultModel, keyword: str) -> int:
    # Only the first check naming the keyword decides.
    check = next((c for c in result.checks if keyword in c.category.lower()), None)
    if check is not None and check.status == "Pass":
        return CATEGORY_PASS_SCORE
    return CATEGORY_DEFAULT_SCORE


def score(result: AuditResultModel) -> ReadinessScoreModel:
    """Coarse readiness score: a fixed lookup on overall risk plus two binary sub-scores."""
    overall = OVERALL_BY_RISK[result.overall_risk]
    return ReadinessScoreModel(
        overall=overall,
        breakdown=ReadinessBreakdownModel(
            identity=_category_score(result, "identity"),
            financials=_category_score(result, "financial"),
            eligibility=ELIGIBILITY_PLACEHOLDER,
            risk=overall,
        ),
    )

from __future__ import annotations

import pytest

from docushield.schemas.models import AuditCheckModel, AuditResultModel
from docushield.tools.scoring import score


def _result(risk="Low", checks=None):
    return AuditResultModel(
        case_type="Express Entry",
        overall_risk=risk,
        summary="",
        checks=checks or [AuditCheckModel(category="Background", status="Pass")],
    )


@pytest.mark.parametrize("risk, expected", [("Low", 95), ("Medium", 72), ("High", 45)])
def test_overall_lookup(risk, expected):
    s = score(_result(risk))
    assert s.overall == expected
    assert s.breakdown.risk == expected
    assert s.breakdown.eligibility == 80


def test_category_scores_are_binary():
    checks = [
        AuditCheckModel(category="Identity Verification", status="Pass"),
        AuditCheckModel(category="Financial Sufficiency", status="Warning"),
    ]
    s = score(_result("Medium", checks))
    assert s.breakdown.identity == 100
    assert s.breakdown.financials == 50


def test_first_matching_check_decides():
    checks = [
        AuditCheckModel(category="Identity Verification", status="Fail"),
        AuditCheckModel(category="Identity (secondary)", status="Pass"),
        AuditCheckModel(category="Background", status="Pass"),
        AuditCheckModel(category="Financial Assessment", status="Pass"),
        AuditCheckModel(category="Key financial risks", status="Fail"),
    ]
    s = score(_result("High", checks))
    assert s.breakdown.identity == 50
    assert s.breakdown.financials == 100


def test_no_matching_category():
    s = score(_result())
    assert s.breakdown.identity == 50
    assert s.breakdown.financials == 50

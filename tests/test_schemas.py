from __future__ import annotations

import jsonschema
import pytest

from docushield.config import Settings
from docushield.pipeline import AuditOutcome, run_audit
from docushield.schemas.models import AuditResultModel, ReadinessScoreModel
from docushield.tools.bundles import build_bundle, render_request
from docushield.tools.llm import MockAuditEngine
from docushield.tools.normalizer import normalize


def test_audit_result_schema_valid():
    engine = MockAuditEngine()
    request = render_request(build_bundle("Study Permit", {}, {"s_loa": "LOA from DLI O19"}))
    response = engine.invoke(request)
    result = normalize("Study Permit", response.text, response.citations).model_dump()

    jsonschema.validate(result, AuditResultModel.model_json_schema())


def test_outcome_schema_valid():
    outcome = run_audit(
        "Work Permit",
        uploads={"w_cont": "Signed contract"},
        settings=Settings(llm_provider="mock"),
        engine=MockAuditEngine(),
    )
    jsonschema.validate(outcome.model_dump(), AuditOutcome.model_json_schema())
    jsonschema.validate(outcome.score.model_dump(), ReadinessScoreModel.model_json_schema())


def test_schema_rejects_non_canonical_status():
    bad = {
        "case_type": "Work Permit",
        "overall_risk": "Severe",
        "summary": "",
        "checks": [{"category": "X", "status": "Strong", "issues": [], "notes": ""}],
    }
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(bad, AuditResultModel.model_json_schema())

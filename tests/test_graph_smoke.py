from __future__ import annotations

import io
import zipfile

import pytest

from docushield.config import Settings
from docushield.errors import EngineInvocationError, ParseError
from docushield.pipeline import run_audit
from docushield.state.models import CASE_TYPES
from docushield.tools.llm import EngineResponse, MockAuditEngine


SETTINGS = Settings(llm_provider="mock")


def _events(outcome):
    return [e["event"] for e in outcome.audit_log]


@pytest.mark.parametrize("case_type", CASE_TYPES)
def test_every_case_type_runs_end_to_end(case_type):
    engine = MockAuditEngine()
    outcome = run_audit(case_type, settings=SETTINGS, engine=engine)

    assert engine.calls == 1
    assert outcome.result.case_type == case_type
    assert outcome.result.overall_risk in ("Low", "Medium", "High")
    assert outcome.result.checks
    assert outcome.score.overall in (95, 72, 45)
    assert _events(outcome) == [
        "intake_complete",
        "bundle_built",
        "engine_invoked",
        "response_normalized",
        "score_computed",
        "finalized",
    ]


def test_visitor_filenames_are_classified():
    outcome = run_audit(
        "visitor",
        filenames=["passport.pdf", "bank_statement.pdf", "Refusal_2022.pdf", ".DS_Store"],
        settings=SETTINGS,
        engine=MockAuditEngine(),
    )
    result = outcome.result

    assert _events(outcome)[0] == "files_classified"
    assert result.overall_risk == "Medium"
    assert [c.category for c in result.checks] == [
        "Risk Factors",
        "Mandatory Documents",
        "Financial Assessment",
        "Ties & Employment",
        "Refusal History",
    ]
    assert result.checks[-1].status == "Fail"
    assert outcome.score.overall == 72
    assert outcome.score.breakdown.financials == 100
    assert [i.id for i in outcome.issues] == ["issue_0_0"]


def test_visitor_archive_input():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("pkg/passport.pdf", "x")
        zf.writestr("pkg/hotel_booking.pdf", "x")
        zf.writestr("pkg/family_photos.jpg", "x")
        zf.writestr("pkg/invitation_from_sister.pdf", "x")
        zf.writestr("pkg/notes.txt", "x")
    buf.seek(0)

    outcome = run_audit("Visitor Visa", archive=buf, settings=SETTINGS, engine=MockAuditEngine())
    assert outcome.result.overall_risk == "Low"
    assert outcome.result.checks[0].category == "Mandatory Documents"
    assert outcome.score.overall == 95


def test_express_entry_full_package_scores_high():
    uploads = {
        "e_id": "Passport P123",
        "e_funds": "Savings 15,000 CAD",
        "e_lang": "CELPIP 9",
        "e_police": "Clean record",
    }
    outcome = run_audit("ee", uploads=uploads, settings=SETTINGS, engine=MockAuditEngine())
    result = outcome.result

    assert result.overall_risk == "Low"
    assert outcome.score.overall == 95
    assert outcome.score.breakdown.identity == 100
    assert outcome.score.breakdown.financials == 100
    eligibility = next(c for c in result.checks if c.category == "Program Eligibility")
    assert "FSW" in eligibility.notes
    assert result.citations and result.citations[0].uri.startswith("https://")


def test_no_citations_without_search():
    settings = Settings(llm_provider="mock", web_search=False)
    outcome = run_audit("Work Permit", settings=settings, engine=MockAuditEngine())
    assert outcome.result.citations == []


class _FailingEngine:
    def invoke(self, request):
        raise EngineInvocationError("quota exceeded")


class _GarbageEngine:
    def invoke(self, request):
        return EngineResponse(text="Sorry, I cannot help with that.")


def test_engine_failure_propagates():
    with pytest.raises(EngineInvocationError):
        run_audit("Study Permit", settings=SETTINGS, engine=_FailingEngine())


def test_unparseable_response_propagates():
    with pytest.raises(ParseError):
        run_audit("Study Permit", settings=SETTINGS, engine=_GarbageEngine())


def test_runs_do_not_share_state():
    engine = MockAuditEngine()
    first = run_audit("Study Permit", uploads={"s_sop": "Plan"}, settings=SETTINGS, engine=engine)
    second = run_audit("Study Permit", settings=SETTINGS, engine=engine)
    assert first.audit_id != second.audit_id
    assert len(first.audit_log) == len(second.audit_log)
    assert engine.calls == 2

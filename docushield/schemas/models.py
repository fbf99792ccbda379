from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from typing_extensions import Annotated

from docushield.state.models import CaseType


CheckStatus = Literal["Pass", "Warning", "Fail", "Not Provided"]
RiskLevel = Literal["Low", "Medium", "High"]
IssueSeverity = Literal["MUST_FIX", "RECOMMENDED", "OPTIONAL"]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Canonical result shapes
# ---------------------------------------------------------------------------


class CitationModel(BaseModel):
    title: Optional[str] = Field(default=None, description="Title of the web source, when the engine supplied one.")
    uri: str = Field(..., description="Source URL used to ground the audit.")


class AuditCheckModel(BaseModel):
    category: str
    status: CheckStatus
    issues: List[str] = Field(default_factory=list)
    notes: str = ""


class AuditResultModel(BaseModel):
    schema_version: str = Field(default="1.0", description="Schema version for audit/compatibility.")
    case_type: CaseType

    overall_risk: RiskLevel

    summary: str

    checks: List[AuditCheckModel] = Field(..., min_length=1)

    missing_documents: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    citations: List[CitationModel] = Field(default_factory=list)

    generated_at: str = Field(default_factory=now_iso, description="ISO timestamp when the result was normalized.")


class ReadinessBreakdownModel(BaseModel):
    identity: int = Field(..., ge=0, le=100)
    financials: int = Field(..., ge=0, le=100)
    eligibility: int = Field(..., ge=0, le=100)
    risk: int = Field(..., ge=0, le=100)


class ReadinessScoreModel(BaseModel):
    overall: int = Field(..., ge=0, le=100)
    breakdown: ReadinessBreakdownModel


class AuditIssueModel(BaseModel):
    id: str
    type: str = Field(..., description="Category of the check that raised the issue.")
    severity: IssueSeverity
    documents: List[str] = Field(default_factory=list)
    description: str
    why_it_matters: str = ""
    how_to_fix: str = ""


# ---------------------------------------------------------------------------
# Raw engine responses (one schema per case type)
#
# The engine's output is not contractually guaranteed, so every field is
# optional and coerced leniently. Missing sections validate as empty sections.
# ---------------------------------------------------------------------------

_TRUE_WORDS = ("true", "yes", "y", "1", "complete", "provided")


def _stringify(item: Any) -> str:
    if item is None:
        return ""
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, dict):
        for key in ("issue", "message", "description", "title", "name", "text"):
            val = item.get(key)
            if isinstance(val, str) and val.strip():
                return val.strip()
        try:
            return json.dumps(item, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(item)
    return str(item).strip()


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]
    out: List[str] = []
    for item in items:
        s = _stringify(item)
        if s:
            out.append(s)
    return out


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return False


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        return s or None
    if isinstance(value, (list, tuple, dict)):
        return _stringify(value) or None
    return str(value)


def _as_check_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    out: List[Dict[str, Any]] = []
    for item in value:
        if isinstance(item, dict):
            out.append(item)
        elif isinstance(item, str) and item.strip():
            out.append({"notes": item.strip()})
    return out


StrList = Annotated[List[str], BeforeValidator(_as_str_list)]
Flag = Annotated[bool, BeforeValidator(_as_bool)]
Text = Annotated[Optional[str], BeforeValidator(_as_text)]


class RawSection(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _non_object_as_empty(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        return data


# -- Visitor ---------------------------------------------------------------


class VisitorMandatoryStatus(RawSection):
    complete: Flag = False
    missing: StrList = Field(default_factory=list)


class VisitorAssessment(RawSection):
    status: Text = None
    notes: Text = None


class VisitorRefusalAnalysis(RawSection):
    has_refusal: Flag = False
    issues_addressed: Flag = False
    notes: Text = None


class VisitorResponseModel(RawSection):
    visa_type: Text = None
    sub_type: Text = None
    mandatory_documents_status: VisitorMandatoryStatus = Field(default_factory=VisitorMandatoryStatus)
    financial_assessment: VisitorAssessment = Field(default_factory=VisitorAssessment)
    ties_assessment: VisitorAssessment = Field(default_factory=VisitorAssessment)
    previous_refusal_analysis: VisitorRefusalAnalysis = Field(default_factory=VisitorRefusalAnalysis)
    overall_risk_factors: StrList = Field(default_factory=list)
    approval_chance: Text = None
    recommended_actions: StrList = Field(default_factory=list)


# -- Study / Work (shared building blocks) ---------------------------------


class MandatoryDocumentsStatus(RawSection):
    complete: Flag = False
    missing_documents: StrList = Field(default_factory=list)


class StatusWithIssues(RawSection):
    status: Text = None
    issues: StrList = Field(default_factory=list)


class BackgroundChecks(RawSection):
    medical_exam: Text = None
    police_certificate: Text = None


class StudyRefusalReview(RawSection):
    has_previous_refusal: Flag = False
    addressed_properly: Flag = False
    issues: StrList = Field(default_factory=list)


class StudyResponseModel(RawSection):
    application_type: Text = None
    stream: Text = None
    overall_risk_level: Text = None
    mandatory_documents_status: MandatoryDocumentsStatus = Field(default_factory=MandatoryDocumentsStatus)
    academic_assessment: StatusWithIssues = Field(default_factory=StatusWithIssues)
    financial_assessment: StatusWithIssues = Field(default_factory=StatusWithIssues)
    statement_of_purpose_assessment: StatusWithIssues = Field(default_factory=StatusWithIssues)
    previous_refusal_review: StudyRefusalReview = Field(default_factory=StudyRefusalReview)
    background_checks: BackgroundChecks = Field(default_factory=BackgroundChecks)
    key_risk_factors: StrList = Field(default_factory=list)
    audit_recommendations: StrList = Field(default_factory=list)
    final_audit_summary: Text = None


class EmploymentAssessment(RawSection):
    job_offer_valid: Flag = False
    experience_match: Text = None
    issues: StrList = Field(default_factory=list)


class AuthorizationStatus(RawSection):
    lmia_or_exemption_provided: Flag = False
    issues: StrList = Field(default_factory=list)


class WorkResponseModel(RawSection):
    application_type: Text = None
    overall_risk_level: Text = None
    mandatory_documents_status: MandatoryDocumentsStatus = Field(default_factory=MandatoryDocumentsStatus)
    employment_assessment: EmploymentAssessment = Field(default_factory=EmploymentAssessment)
    authorization_status: AuthorizationStatus = Field(default_factory=AuthorizationStatus)
    background_checks: BackgroundChecks = Field(default_factory=BackgroundChecks)
    key_risk_factors: StrList = Field(default_factory=list)
    audit_recommendations: StrList = Field(default_factory=list)
    final_audit_summary: Text = None


# -- Express Entry ---------------------------------------------------------


class RawCheck(RawSection):
    category: Text = None
    status: Text = None
    issues: StrList = Field(default_factory=list)
    notes: Text = None


class ExpressEntryRefusal(RawSection):
    has_refusal: Flag = Field(default=False, validation_alias=AliasChoices("hasRefusal", "has_refusal"))
    addressed: Flag = Field(default=False, validation_alias=AliasChoices("addressed", "issuesAddressed", "issues_addressed"))
    notes: Text = None


class ExpressEntryResponseModel(RawSection):
    visa_type: Text = Field(default=None, validation_alias=AliasChoices("visaType", "visa_type"))
    overall_risk: Text = Field(default=None, validation_alias=AliasChoices("overallRisk", "overall_risk", "overall_risk_level"))
    summary: Text = None
    stream: Text = None
    checks: Annotated[List[RawCheck], BeforeValidator(_as_check_list)] = Field(default_factory=list)
    missing_documents: StrList = Field(
        default_factory=list, validation_alias=AliasChoices("missingDocuments", "missing_documents")
    )
    recommendations: StrList = Field(default_factory=list)
    key_risk_factors: StrList = Field(
        default_factory=list, validation_alias=AliasChoices("keyRiskFactors", "key_risk_factors")
    )
    refusal_history: ExpressEntryRefusal = Field(
        default_factory=ExpressEntryRefusal, validation_alias=AliasChoices("refusalHistory", "refusal_history")
    )

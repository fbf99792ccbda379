"""Turn raw engine text into one canonical `AuditResultModel`.

Each case type answers in its own JSON schema with its own status words. The
text is unwrapped once (`unwrap_json`), validated against the case type's raw
model, then mapped check by check through explicit status tables. Unknown
status words resolve to Warning; unknown risk levels resolve to High.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from pydantic import ValidationError

from docushield.errors import ParseError
from docushield.schemas.models import (
    AuditCheckModel,
    AuditResultModel,
    BackgroundChecks,
    CheckStatus,
    CitationModel,
    ExpressEntryResponseModel,
    RawSection,
    RiskLevel,
    StudyResponseModel,
    VisitorResponseModel,
    WorkResponseModel,
)
from docushield.state.models import EXPRESS_ENTRY, STUDY, VISITOR, WORK, CaseType, resolve_case_type


logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_STREAM_RE = re.compile(r"stream\s+determination\s*:\s*([^\n.;]+)", re.IGNORECASE)

DEFAULT_STATUS: CheckStatus = "Warning"
FALLBACK_RISK: RiskLevel = "High"


# ---------------------------------------------------------------------------
# Unwrap
# ---------------------------------------------------------------------------


def unwrap_json(text: str) -> Dict[str, Any]:
    """Parse engine text as one JSON object.

    Accepts bare JSON or JSON inside a ```json / ``` fence. When that fails the
    outermost `{...}` span is tried. Anything else raises `ParseError`; no
    partial result is ever produced.
    """
    raw = text or ""
    body = raw.strip()
    m = _FENCE_RE.match(body)
    if m:
        body = m.group(1).strip()

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        start, end = body.find("{"), body.rfind("}")
        if start == -1 or end <= start:
            raise ParseError(f"Engine response is not valid JSON: {e}", raw_text=raw) from e
        try:
            data = json.loads(body[start : end + 1])
        except json.JSONDecodeError as e2:
            raise ParseError(f"Engine response is not valid JSON: {e2}", raw_text=raw) from e2

    if not isinstance(data, dict):
        raise ParseError(
            f"Engine response must be a JSON object, got {type(data).__name__}", raw_text=raw
        )
    return data


# ---------------------------------------------------------------------------
# Status tables
# ---------------------------------------------------------------------------


def _key(value: Any) -> str:
    return re.sub(r"[\s_\-]+", "", str(value or "").lower())


CANONICAL_STATUS: Dict[str, CheckStatus] = {
    "pass": "Pass",
    "warning": "Warning",
    "fail": "Fail",
    "notprovided": "Not Provided",
    "missing": "Not Provided",
    "n/a": "Not Provided",
}

ASSESSMENT_STATUS: Dict[str, CheckStatus] = {
    **CANONICAL_STATUS,
    "strong": "Pass",
    "clear": "Pass",
    "provided": "Pass",
    "adequate": "Pass",
    "notrequired": "Pass",
    "notrequiredyet": "Pass",
    "moderate": "Warning",
    "pending": "Warning",
    "weak": "Fail",
    "inconsistent": "Fail",
}

TIES_STATUS: Dict[str, CheckStatus] = {
    **CANONICAL_STATUS,
    "strong": "Pass",
    "moderate": "Pass",
    "weak": "Warning",
}

APPROVAL_CHANCE_TO_RISK: Dict[str, RiskLevel] = {
    "high": "Low",
    "medium": "Medium",
    "low": "High",
}

RISK_LEVELS: Dict[str, RiskLevel] = {"low": "Low", "medium": "Medium", "high": "High"}

# Worst first.
_SEVERITY_ORDER: Tuple[CheckStatus, ...] = ("Fail", "Not Provided", "Warning", "Pass")


def map_status(value: Any, table: Mapping[str, CheckStatus] = CANONICAL_STATUS) -> CheckStatus:
    status = table.get(_key(value))
    if status is None:
        if value not in (None, ""):
            logger.debug("Unrecognized status %r, using %s", value, DEFAULT_STATUS)
        return DEFAULT_STATUS
    return status


def normalize_risk(value: Any) -> RiskLevel:
    risk = RISK_LEVELS.get(_key(value))
    if risk is None:
        logger.warning("Unrecognized risk level %r, falling back to %s", value, FALLBACK_RISK)
        return FALLBACK_RISK
    return risk


def worst_status(statuses: Iterable[CheckStatus]) -> CheckStatus:
    seen = set(statuses)
    for s in _SEVERITY_ORDER:
        if s in seen:
            return s
    return DEFAULT_STATUS


# ---------------------------------------------------------------------------
# Shared check builders
# ---------------------------------------------------------------------------


def _check(category: str, status: CheckStatus, issues: Optional[List[str]] = None, notes: str = "") -> AuditCheckModel:
    return AuditCheckModel(category=category, status=status, issues=list(issues or []), notes=notes or "")


def _mandatory_check(complete: bool, missing: List[str]) -> AuditCheckModel:
    return _check(
        "Mandatory Documents",
        "Pass" if complete else "Fail",
        missing,
        "All core documents identified." if complete else "Missing mandatory documents.",
    )


def _background_check(bg: BackgroundChecks) -> AuditCheckModel:
    statuses = [map_status(v, ASSESSMENT_STATUS) for v in (bg.medical_exam, bg.police_certificate) if v]
    status = worst_status(statuses) if statuses else DEFAULT_STATUS
    return _check(
        "Background Checks",
        status,
        notes=f"Medical: {bg.medical_exam or 'Not stated'}, Police: {bg.police_certificate or 'Not stated'}",
    )


def _risk_factor_check(
    category: str, factors: List[str], risk: RiskLevel, *, escalate: bool = True
) -> Optional[AuditCheckModel]:
    if not factors:
        return None
    critical = escalate and risk == "High"
    return _check(
        category,
        "Fail" if critical else "Warning",
        factors,
        "Critical risks identified." if critical else "Potential risks identified.",
    )


def _refusal_check(category: str, addressed: bool, issues: List[str], notes: Optional[str]) -> AuditCheckModel:
    default_notes = "Refusal reasons addressed." if addressed else "Refusal reasons not adequately addressed."
    return _check(category, "Pass" if addressed else "Fail", issues, notes or default_notes)


def _assemble(
    risk_check: Optional[AuditCheckModel],
    checks: List[AuditCheckModel],
    refusal_check: Optional[AuditCheckModel],
) -> List[AuditCheckModel]:
    out: List[AuditCheckModel] = []
    if risk_check is not None:
        out.append(risk_check)
    out.extend(checks)
    if refusal_check is not None:
        out.append(refusal_check)
    return out


# ---------------------------------------------------------------------------
# Per case type mappers
# ---------------------------------------------------------------------------

Mapped = Dict[str, Any]


def _map_visitor(raw: VisitorResponseModel) -> Mapped:
    mandatory = raw.mandatory_documents_status
    risk = APPROVAL_CHANCE_TO_RISK.get(_key(raw.approval_chance))
    if risk is None:
        logger.warning("Unrecognized approval chance %r, falling back to %s", raw.approval_chance, FALLBACK_RISK)
        risk = FALLBACK_RISK

    checks = [
        _mandatory_check(mandatory.complete, mandatory.missing),
        _check(
            "Financial Assessment",
            map_status(raw.financial_assessment.status, ASSESSMENT_STATUS),
            notes=raw.financial_assessment.notes or "No financial docs detected.",
        ),
        _check(
            "Ties & Employment",
            map_status(raw.ties_assessment.status, TIES_STATUS),
            notes=raw.ties_assessment.notes or "Weak proof of ties.",
        ),
    ]

    refusal = raw.previous_refusal_analysis
    return {
        "overall_risk": risk,
        "summary": f"Audit complete. Approval Chance: {raw.approval_chance or 'Unknown'}.",
        "checks": _assemble(
            # Visitor risk factors stay advisory whatever the approval chance.
            _risk_factor_check("Risk Factors", raw.overall_risk_factors, risk, escalate=False),
            checks,
            _refusal_check("Refusal History", refusal.issues_addressed, [], refusal.notes) if refusal.has_refusal else None,
        ),
        "missing_documents": mandatory.missing,
        "recommendations": raw.recommended_actions,
    }


def _map_study(raw: StudyResponseModel) -> Mapped:
    risk = normalize_risk(raw.overall_risk_level)
    mandatory = raw.mandatory_documents_status

    def assessed(category: str, section: Any, label: str) -> AuditCheckModel:
        return _check(
            category,
            map_status(section.status, ASSESSMENT_STATUS),
            section.issues,
            f"{label}: {section.status or 'Not stated'}",
        )

    checks = [
        _mandatory_check(mandatory.complete, mandatory.missing_documents),
        assessed("Academic Assessment", raw.academic_assessment, "Assessment"),
        assessed("Financial Assessment", raw.financial_assessment, "Assessment"),
        assessed("Statement of Purpose", raw.statement_of_purpose_assessment, "Clarity"),
        _background_check(raw.background_checks),
    ]

    refusal = raw.previous_refusal_review
    summary = raw.final_audit_summary or "Audit complete."
    if raw.stream:
        summary = f"{summary} (Stream: {raw.stream})"
    return {
        "overall_risk": risk,
        "summary": summary,
        "checks": _assemble(
            _risk_factor_check("Key Risk Factors", raw.key_risk_factors, risk),
            checks,
            _refusal_check("Previous Refusal Analysis", refusal.addressed_properly, refusal.issues, None)
            if refusal.has_previous_refusal
            else None,
        ),
        "missing_documents": mandatory.missing_documents,
        "recommendations": raw.audit_recommendations,
    }


def _map_work(raw: WorkResponseModel) -> Mapped:
    risk = normalize_risk(raw.overall_risk_level)
    mandatory = raw.mandatory_documents_status
    employment = raw.employment_assessment
    auth = raw.authorization_status

    experience = map_status(employment.experience_match, ASSESSMENT_STATUS)
    checks = [
        _mandatory_check(mandatory.complete, mandatory.missing_documents),
        _check(
            "Employment Assessment",
            "Pass" if employment.job_offer_valid and experience == "Pass" else "Warning",
            employment.issues,
            f"Job Match: {employment.experience_match or 'Not stated'}",
        ),
        _check(
            "Authorization (LMIA/Exemption)",
            "Pass" if auth.lmia_or_exemption_provided else "Fail",
            auth.issues,
            "Authorization Present" if auth.lmia_or_exemption_provided else "Missing LMIA or Exemption Proof",
        ),
        _background_check(raw.background_checks),
    ]

    return {
        "overall_risk": risk,
        "summary": raw.final_audit_summary or "Audit complete.",
        "checks": _assemble(_risk_factor_check("Key Risk Factors", raw.key_risk_factors, risk), checks, None),
        "missing_documents": mandatory.missing_documents,
        "recommendations": raw.audit_recommendations,
    }


def stated_stream(raw: ExpressEntryResponseModel) -> Optional[str]:
    """The program stream the engine says it determined, if it said one."""
    if raw.stream:
        return raw.stream
    m = _STREAM_RE.search(raw.summary or "")
    if m:
        return m.group(1).strip() or None
    return None


def _map_express_entry(raw: ExpressEntryResponseModel) -> Mapped:
    risk = normalize_risk(raw.overall_risk)
    stream = stated_stream(raw)

    checks: List[AuditCheckModel] = []
    for rc in raw.checks:
        checks.append(
            _check(rc.category or "General", map_status(rc.status, CANONICAL_STATUS), rc.issues, rc.notes or "")
        )

    stream_note = f"Stream Determination: {stream}" if stream else "Stream determination not stated."
    eligibility = next((c for c in checks if "eligibility" in c.category.lower()), None)
    if eligibility is None:
        checks.append(_check("Program Eligibility", "Warning", notes=stream_note))
    elif stream and stream.lower() not in eligibility.notes.lower():
        idx = checks.index(eligibility)
        notes = f"{eligibility.notes} {stream_note}".strip()
        checks[idx] = eligibility.model_copy(update={"notes": notes})

    refusal = raw.refusal_history
    return {
        "overall_risk": risk,
        "summary": raw.summary or (f"Audit complete. {stream_note}"),
        "checks": _assemble(
            _risk_factor_check("Key Risk Factors", raw.key_risk_factors, risk),
            checks,
            _refusal_check("Refusal History", refusal.addressed, [], refusal.notes) if refusal.has_refusal else None,
        ),
        "missing_documents": raw.missing_documents,
        "recommendations": raw.recommendations,
    }


NormalizerEntry = Tuple[Type[RawSection], Callable[[Any], Mapped]]

NORMALIZERS: Dict[str, NormalizerEntry] = {
    VISITOR: (VisitorResponseModel, _map_visitor),
    STUDY: (StudyResponseModel, _map_study),
    WORK: (WorkResponseModel, _map_work),
    EXPRESS_ENTRY: (ExpressEntryResponseModel, _map_express_entry),
}


def _citations(citations: Iterable[Any]) -> List[CitationModel]:
    out: List[CitationModel] = []
    seen = set()
    for c in citations or ():
        if isinstance(c, CitationModel):
            c = c.model_dump()
        if not isinstance(c, Mapping):
            continue
        uri = str(c.get("uri") or "").strip()
        if not uri or uri in seen:
            continue
        seen.add(uri)
        title = c.get("title")
        out.append(CitationModel(title=str(title) if title else None, uri=uri))
    return out


def normalize_payload(case_type: str, payload: Mapping[str, Any], citations: Iterable[Any] = ()) -> AuditResultModel:
    ct: CaseType = resolve_case_type(case_type)
    raw_model, mapper = NORMALIZERS[ct]
    try:
        raw = raw_model.model_validate(dict(payload))
    except ValidationError as e:
        # The raw models coerce leniently; reaching here means the payload is unusable.
        raise ParseError(f"{ct} response does not match its schema: {e}", raw_text=json.dumps(payload, default=str)) from e

    mapped = mapper(raw)
    result = AuditResultModel(case_type=ct, citations=_citations(citations), **mapped)
    logger.info(
        "Normalized %s response: risk=%s, %d checks, %d missing documents",
        ct,
        result.overall_risk,
        len(result.checks),
        len(result.missing_documents),
    )
    return result


def normalize(case_type: str, text: str, citations: Iterable[Any] = ()) -> AuditResultModel:
    return normalize_payload(case_type, unwrap_json(text), citations)

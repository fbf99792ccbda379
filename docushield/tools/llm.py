from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from docushield.errors import EngineInvocationError
from docushield.state.models import EXPRESS_ENTRY, STUDY, VISITOR, WORK, CaseType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineRequest:
    case_type: CaseType
    system_instruction: str
    prompt: str
    enable_search: bool = True
    json_only: bool = True
    # Section key -> whether content was supplied. Not sent to the provider.
    sections_present: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_type": self.case_type,
            "system_instruction": self.system_instruction,
            "prompt": self.prompt,
            "enable_search": self.enable_search,
            "json_only": self.json_only,
            "sections_present": dict(self.sections_present),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EngineRequest":
        return EngineRequest(
            case_type=data["case_type"],
            system_instruction=data.get("system_instruction", ""),
            prompt=data.get("prompt", ""),
            enable_search=bool(data.get("enable_search", True)),
            json_only=bool(data.get("json_only", True)),
            sections_present=dict(data.get("sections_present") or {}),
        )


@dataclass(frozen=True)
class EngineResponse:
    text: str
    citations: List[Dict[str, Optional[str]]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "citations": [dict(c) for c in self.citations]}


class AuditEngine(Protocol):
    """The reasoning engine seen from the pipeline: one opaque call per audit.

    Implementations raise `EngineInvocationError` on provider failure and never
    retry; retrying is the caller's decision.
    """

    def invoke(self, request: EngineRequest) -> EngineResponse:
        ...


def _fenced(payload: Dict[str, Any]) -> str:
    return "```json\n" + json.dumps(payload, ensure_ascii=False, indent=2) + "\n```"


@dataclass
class MockAuditEngine:
    """Deterministic placeholder that makes the pipeline runnable without external APIs.

    Answers in each case type's own response schema, judging only which prompt
    sections were supplied.
    """

    calls: int = 0

    def invoke(self, request: EngineRequest) -> EngineResponse:
        self.calls += 1
        present = request.sections_present or {}
        missing = [k for k, ok in present.items() if not ok]

        builders = {
            VISITOR: self._visitor,
            STUDY: self._study,
            WORK: self._work,
            EXPRESS_ENTRY: self._express_entry,
        }
        payload = builders[request.case_type](present, missing)

        citations: List[Dict[str, Optional[str]]] = []
        if request.enable_search:
            citations.append(
                {
                    "title": "Immigration, Refugees and Citizenship Canada",
                    "uri": "https://www.canada.ca/en/immigration-refugees-citizenship.html",
                }
            )
        return EngineResponse(text=_fenced(payload), citations=citations)

    @staticmethod
    def _risk_for(missing: List[str]) -> str:
        if not missing:
            return "Low"
        if len(missing) <= 2:
            return "Medium"
        return "High"

    def _visitor(self, present: Dict[str, bool], missing: List[str]) -> Dict[str, Any]:
        has_current = bool(present.get("current"))
        has_refusal = bool(present.get("refusal"))
        has_support = bool(present.get("supporting"))

        risks: List[str] = []
        if not has_current:
            risks.append("No current-submission documents were found in the package.")
        if has_refusal and not has_support:
            risks.append("Previous refusal on file without supporting explanation.")

        if not has_current:
            chance = "Low"
        elif risks:
            chance = "Medium"
        else:
            chance = "High"

        return {
            "visa_type": "Visitor Visa",
            "sub_type": "Tourism",
            "mandatory_documents_status": {
                "complete": has_current,
                "missing": [] if has_current else ["Application Form", "Passport", "Proof of Funds"],
            },
            "financial_assessment": {
                "status": "Adequate" if has_current else "Missing",
                "notes": "Mock assessment based on folder presence.",
            },
            "ties_assessment": {
                "status": "Moderate" if has_current else "Weak",
                "notes": "Mock assessment based on folder presence.",
            },
            "previous_refusal_analysis": {
                "has_refusal": has_refusal,
                "issues_addressed": has_refusal and has_support,
                "notes": "Refusal documents detected." if has_refusal else "No refusal history detected.",
            },
            "overall_risk_factors": risks,
            "approval_chance": chance,
            "recommended_actions": ["Replace MockAuditEngine with a real engine for production audits."],
        }

    def _study(self, present: Dict[str, bool], missing: List[str]) -> Dict[str, Any]:
        def status(key: str, good: str = "Strong") -> str:
            return good if present.get(key) else "Weak"

        has_refusal = bool(present.get("background"))
        return {
            "application_type": "Study Permit",
            "stream": "Non-SDS",
            "overall_risk_level": self._risk_for(missing),
            "mandatory_documents_status": {"complete": not missing, "missing_documents": list(missing)},
            "academic_assessment": {"status": status("academics"), "issues": []},
            "financial_assessment": {"status": status("financials"), "issues": []},
            "statement_of_purpose_assessment": {"status": status("sop", "Clear"), "issues": []},
            "previous_refusal_review": {
                "has_previous_refusal": has_refusal,
                "addressed_properly": has_refusal,
                "issues": [],
            },
            "background_checks": {
                "medical_exam": "Provided" if present.get("background") else "Not Required Yet",
                "police_certificate": "Provided" if present.get("background") else "Not Required Yet",
            },
            "key_risk_factors": [f"Section not provided: {k}" for k in missing],
            "audit_recommendations": [f"Provide the documents for: {k}" for k in missing],
            "final_audit_summary": "Mock evaluation. Replace MockAuditEngine with a real engine for production.",
        }

    def _work(self, present: Dict[str, bool], missing: List[str]) -> Dict[str, Any]:
        has_employment = bool(present.get("employment"))
        return {
            "application_type": "Work Permit",
            "overall_risk_level": self._risk_for(missing),
            "mandatory_documents_status": {"complete": not missing, "missing_documents": list(missing)},
            "employment_assessment": {
                "job_offer_valid": has_employment,
                "experience_match": "Strong" if has_employment else "Weak",
                "issues": [] if has_employment else ["No employment documents supplied."],
            },
            "authorization_status": {
                "lmia_or_exemption_provided": has_employment,
                "issues": [] if has_employment else ["LMIA or exemption proof not found."],
            },
            "background_checks": {
                "medical_exam": "Provided" if present.get("conditional") else "Pending",
                "police_certificate": "Not Required",
            },
            "key_risk_factors": [f"Section not provided: {k}" for k in missing],
            "audit_recommendations": [f"Provide the documents for: {k}" for k in missing],
            "final_audit_summary": "Mock evaluation. Replace MockAuditEngine with a real engine for production.",
        }

    def _express_entry(self, present: Dict[str, bool], missing: List[str]) -> Dict[str, Any]:
        def st(key: str) -> str:
            return "Pass" if present.get(key) else "Fail"

        # Catch-all section is optional; do not count it against the applicant.
        missing = [k for k in missing if k != "other"]
        return {
            "visaType": "Express Entry",
            "overallRisk": self._risk_for(missing),
            "stream": "FSW",
            "summary": "Mock evaluation. Stream Determination: FSW",
            "checks": [
                {"category": "Identity Verification", "status": st("passport"), "issues": [], "notes": "Mock"},
                {"category": "Financial Sufficiency", "status": st("funds"), "issues": [], "notes": "Mock"},
                {"category": "Program Eligibility", "status": st("qualifications"), "issues": [], "notes": "Mock"},
                {"category": "Background", "status": st("background"), "issues": [], "notes": "Mock"},
            ],
            "keyRiskFactors": [f"Section not provided: {k}" for k in missing],
            "refusalHistory": {"hasRefusal": False, "addressed": False, "notes": ""},
            "missingDocuments": list(missing),
            "recommendations": [f"Provide the documents for: {k}" for k in missing],
        }


class OpenAIResponsesAuditEngine:
    """Engine backed by the OpenAI Responses API.

    Web search is attached as the `web_search_preview` tool; its `url_citation`
    annotations become the audit's citations. Retries are disabled on the client.

    Install extras:
        pip install -e ".[openai]"

    Environment:
        OPENAI_API_KEY=...
        DOCUSHIELD_OPENAI_MODEL=...
    """

    def __init__(self, *, model: str, timeout: float = 120.0):
        try:
            # Lazy import to allow missing dependency when provider is not openai
            import openai  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ImportError(
                "openai python package is not installed. Run: pip install -e '.[openai]'"
            ) from e

        self._openai = openai
        self._client = openai.OpenAI(timeout=timeout, max_retries=0)
        self.model_name = model

    @staticmethod
    def _extract_citations(output_items: Any) -> List[Dict[str, Optional[str]]]:
        def get(obj: Any, key: str, default: Any = None):
            if isinstance(obj, dict):
                return obj.get(key, default)
            return getattr(obj, key, default)

        citations: List[Dict[str, Optional[str]]] = []
        for item in output_items or []:
            if get(item, "type") != "message":
                continue
            for part in get(item, "content", []) or []:
                for ann in get(part, "annotations", []) or []:
                    if get(ann, "type") != "url_citation":
                        continue
                    url = get(ann, "url")
                    if url:
                        citations.append({"title": get(ann, "title"), "uri": url})
        return citations

    def invoke(self, request: EngineRequest) -> EngineResponse:
        kwargs: Dict[str, Any] = {
            "model": self.model_name,
            "instructions": request.system_instruction,
            "input": request.prompt,
        }
        if request.enable_search:
            kwargs["tools"] = [{"type": "web_search_preview"}]
        elif request.json_only:
            kwargs["text"] = {"format": {"type": "json_object"}}

        logger.info("Invoking %s for %s audit (search=%s)", self.model_name, request.case_type, request.enable_search)
        try:
            resp = self._client.responses.create(**kwargs)
        except self._openai.OpenAIError as e:
            raise EngineInvocationError(f"OpenAI request failed: {e}") from e

        text = getattr(resp, "output_text", None) or ""
        citations = self._extract_citations(getattr(resp, "output", None))
        logger.debug("Engine returned %d chars, %d citations: %.500s", len(text), len(citations), text)
        return EngineResponse(text=text, citations=citations)


def build_engine(settings: Any) -> AuditEngine:
    if getattr(settings, "llm_provider", "mock") == "openai":
        return OpenAIResponsesAuditEngine(model=settings.openai_model, timeout=settings.request_timeout)
    return MockAuditEngine()

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Union
from typing_extensions import Annotated, TypedDict
from operator import add
from datetime import datetime, timezone
import uuid

from docushield.errors import UnknownCaseTypeError


CaseType = Literal["Visitor Visa", "Study Permit", "Work Permit", "Express Entry"]

VISITOR: CaseType = "Visitor Visa"
STUDY: CaseType = "Study Permit"
WORK: CaseType = "Work Permit"
EXPRESS_ENTRY: CaseType = "Express Entry"

CASE_TYPES: tuple = (VISITOR, STUDY, WORK, EXPRESS_ENTRY)

_CASE_TYPE_ALIASES = {
    "visitor_visa": VISITOR,
    "visitor": VISITOR,
    "trv": VISITOR,
    "study_permit": STUDY,
    "study": STUDY,
    "student": STUDY,
    "work_permit": WORK,
    "work": WORK,
    "express_entry": EXPRESS_ENTRY,
    "expressentry": EXPRESS_ENTRY,
    "ee": EXPRESS_ENTRY,
}

Phase = Literal["START", "INTAKE", "BUNDLE", "INVOKE", "NORMALIZE", "SCORE", "DONE"]

FileCategory = Literal["current", "refusal", "supporting"]


def resolve_case_type(value: str) -> CaseType:
    """Map a display name or a common alias onto one of the four case types."""
    raw = str(value or "").strip()
    if raw in CASE_TYPES:
        return raw  # type: ignore[return-value]
    key = raw.lower().replace("-", "_").replace(" ", "_")
    case_type = _CASE_TYPE_ALIASES.get(key)
    if case_type is None:
        raise UnknownCaseTypeError(f"Unknown case type: {value!r}")
    return case_type


@dataclass(frozen=True)
class DocumentRequirement:
    id: str
    label: str
    category: str
    description: str = ""
    required: bool = False
    group: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category,
            "description": self.description,
            "required": self.required,
            "group": self.group,
        }


@dataclass(frozen=True)
class UploadedDocument:
    requirement_id: str
    content: str


@dataclass(frozen=True)
class ClassifiedFileSet:
    current: List[str] = field(default_factory=list)
    refusal: List[str] = field(default_factory=list)
    supporting: List[str] = field(default_factory=list)

    def total(self) -> int:
        return len(self.current) + len(self.refusal) + len(self.supporting)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "current": list(self.current),
            "refusal": list(self.refusal),
            "supporting": list(self.supporting),
        }


Uploads = Union[Mapping[str, str], Iterable[UploadedDocument]]


def collect_uploads(uploads: Optional[Uploads]) -> Dict[str, str]:
    """Snapshot uploads as {requirement_id: content}; a re-upload replaces the earlier one."""
    if uploads is None:
        return {}
    if isinstance(uploads, Mapping):
        return {str(k): str(v if v is not None else "") for k, v in uploads.items()}
    out: Dict[str, str] = {}
    for doc in uploads:
        out[doc.requirement_id] = doc.content or ""
    return out


class AuditEvent(TypedDict):
    ts: str  # ISO timestamp
    event: str
    details: Dict[str, Any]


class AuditState(TypedDict, total=False):
    # identity / workflow
    audit_id: str
    phase: Phase
    case_type: CaseType

    # inputs (immutable snapshot taken when the audit starts)
    context: Dict[str, str]
    uploads: Dict[str, str]
    filenames: List[str]

    # intake
    classified_files: Optional[Dict[str, List[str]]]

    # bundle + engine request
    bundle: Optional[Dict[str, Any]]
    request: Optional[Dict[str, Any]]

    # engine output
    raw_response: Optional[Dict[str, Any]]

    # canonical outputs
    audit_result: Optional[Dict[str, Any]]
    readiness_score: Optional[Dict[str, Any]]
    issues: List[Dict[str, Any]]

    # audit trail
    audit_log: Annotated[List[AuditEvent], add]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_audit_state(
    case_type: str,
    *,
    context: Optional[Mapping[str, Any]] = None,
    uploads: Optional[Uploads] = None,
    filenames: Optional[Iterable[str]] = None,
    audit_id: Optional[str] = None,
) -> AuditState:
    aid = audit_id or f"audit_{uuid.uuid4().hex}"
    ctx = {
        str(k): str(v).strip()
        for k, v in (context or {}).items()
        if v is not None and str(v).strip()
    }
    return {
        "audit_id": aid,
        "phase": "START",
        "case_type": resolve_case_type(case_type),
        "context": ctx,
        "uploads": collect_uploads(uploads),
        "filenames": [str(f) for f in (filenames or [])],
        "classified_files": None,
        "bundle": None,
        "request": None,
        "raw_response": None,
        "audit_result": None,
        "readiness_score": None,
        "issues": [],
        "audit_log": [],
    }

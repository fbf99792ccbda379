from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from docushield.state.models import (
    EXPRESS_ENTRY,
    STUDY,
    VISITOR,
    WORK,
    CaseType,
    ClassifiedFileSet,
    DocumentRequirement,
    resolve_case_type,
)
from docushield.tools.llm import EngineRequest
from docushield.tools.prompts import INTROS, OUTPUT_SCHEMAS, RULES, SYSTEM_INSTRUCTIONS, TASKS


logger = logging.getLogger(__name__)

# Rendered in place of any section with no supplied content. Both the engine
# instructions and the missing-document reporting key off this exact text.
NOT_PROVIDED = "NOT PROVIDED"

UNDECLARED_CONTEXT = "Determine from documents"

VISITOR_FOLDER_IDS = {
    "current": "v_folder_current",
    "refusal": "v_folder_refusal",
    "supporting": "v_folder_support",
}


@dataclass(frozen=True)
class SectionSpec:
    key: str
    title: str
    requirement_ids: Tuple[str, ...] = ()
    # Label every entry, even a single one.
    always_label: bool = False
    # Collect every upload no other section claims.
    catch_all: bool = False


@dataclass(frozen=True)
class CaseProfile:
    case_type: CaseType
    sections: Tuple[SectionSpec, ...]
    context_fields: Tuple[Tuple[str, str], ...]

    def mapped_ids(self) -> Set[str]:
        ids: Set[str] = set()
        for s in self.sections:
            ids.update(s.requirement_ids)
        return ids


_COUNTRY = ("country_of_residence", "Country of residence")

CASE_PROFILES: Dict[str, CaseProfile] = {
    VISITOR: CaseProfile(
        case_type=VISITOR,
        sections=(
            SectionSpec("current", "\"Mandatory / Current Submission\" List", (VISITOR_FOLDER_IDS["current"],)),
            SectionSpec("refusal", "\"Refusal History\" List", (VISITOR_FOLDER_IDS["refusal"],)),
            SectionSpec("supporting", "\"Supporting Documents\" List", (VISITOR_FOLDER_IDS["supporting"],)),
        ),
        context_fields=(
            _COUNTRY,
            ("purpose", "Purpose of visit"),
            ("travel_duration", "Travel duration (days)"),
            ("start_date", "Start date"),
            ("end_date", "End date"),
        ),
    ),
    STUDY: CaseProfile(
        case_type=STUDY,
        sections=(
            SectionSpec("forms", "Forms (IMM 1294, 5645)", ("s_form_app", "s_form_fam")),
            SectionSpec("loa", "Letter of Acceptance (LOA)", ("s_loa",)),
            SectionSpec("sop", "Statement of Purpose (SOP)", ("s_sop",)),
            SectionSpec("identity", "Identity (Passport, Photo)", ("s_id", "s_photo")),
            SectionSpec(
                "academics",
                "Academic & Language (Transcripts, Degrees, IELTS/PTE, ECA)",
                ("s_acad_docs", "s_eca", "s_lang"),
            ),
            SectionSpec(
                "financials",
                "Financials (Bank, GIC, Loan, Scholarships, Parent Income)",
                ("s_fin_bank", "s_fin_gic", "s_fin_loan", "s_fin_scholar", "s_fin_parent"),
            ),
            SectionSpec("background", "Background (Refusal Letters, Police, Medical)", ("s_police", "s_med", "s_bg_refusal")),
        ),
        context_fields=(
            _COUNTRY,
            ("level_of_study", "Level of Study"),
            ("program_name", "Program"),
            ("institution_name", "Institution"),
            ("study_duration", "Study Duration"),
            ("intake", "Intake"),
            ("previous_background", "Previous Background"),
            ("career_objective", "Career Objective"),
        ),
    ),
    WORK: CaseProfile(
        case_type=WORK,
        sections=(
            SectionSpec("forms", "Forms (IMM 1295, 5645)", ("w_form_app", "w_form_fam")),
            SectionSpec("identity", "Identity (Passport, Photo)", ("w_id", "w_photo")),
            SectionSpec("employment", "Employment (Contract, LMIA/Exemption, Experience)", ("w_cont", "w_lmia", "w_exp")),
            SectionSpec("financials", "Financials (Bank, Assets)", ("w_fin_bank", "w_fin_letter", "w_fin_ca")),
            SectionSpec(
                "conditional",
                "Conditional/Support (Language, Certs, Ties, Marriage, Police, Medical)",
                ("w_lang", "w_cert", "w_ties", "w_marriage", "w_police", "w_med"),
            ),
        ),
        context_fields=(
            _COUNTRY,
            ("work_permit_type", "Work Permit Type"),
            ("job_title", "Job Title"),
            ("employer_name", "Employer"),
            ("work_location", "Work Location"),
            ("employment_duration", "Employment Duration"),
            ("lmia_status", "LMIA Status"),
            ("experience_summary", "Experience Summary"),
            ("post_work_intent", "Intent after work period"),
        ),
    ),
    EXPRESS_ENTRY: CaseProfile(
        case_type=EXPRESS_ENTRY,
        sections=(
            SectionSpec("passport", "Passport Bio Page", ("e_id",)),
            SectionSpec("funds", "Proof of Funds", ("e_funds",), always_label=True),
            SectionSpec(
                "qualifications",
                "Education, Work Experience & Language",
                (
                    "e_offer", "e_pnp", "e_trade_cert", "e_ref_letter", "e_emp_proof",
                    "e_degree", "e_transcripts", "e_eca", "e_lang", "e_cec_docs",
                ),
            ),
            SectionSpec(
                "background",
                "Civil Documents & Background",
                (
                    "e_police", "e_med", "e_form_travel", "e_form_sch_a",
                    "e_marriage", "e_divorce", "e_birth", "e_dep_docs",
                ),
            ),
            SectionSpec("other", "Other Documents (merged)", always_label=True, catch_all=True),
        ),
        context_fields=(
            _COUNTRY,
            ("total_work_years", "Total skilled work experience (years)"),
            ("canadian_work_months", "Skilled work experience in Canada (months)"),
            ("noc_code", "Current occupation / NOC"),
            ("is_skilled_trade", "Is skilled trade?"),
            ("has_job_offer", "Valid Canadian job offer?"),
            ("has_trade_certificate", "Canadian trade certificate?"),
            ("has_provincial_nomination", "Provincial nomination?"),
            ("highest_education", "Highest level of education"),
            ("pr_goal", "Intended Express Entry goal"),
        ),
    ),
}


@dataclass(frozen=True)
class CaseBundle:
    """Everything the engine gets to see for one audit.

    `sections` keeps profile order; a value of None means nothing was supplied.
    """

    case_type: CaseType
    context: Dict[str, str] = field(default_factory=dict)
    sections: Dict[str, Optional[str]] = field(default_factory=dict)

    def missing_sections(self) -> List[str]:
        return [k for k, v in self.sections.items() if v is None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_type": self.case_type,
            "context": dict(self.context),
            "sections": dict(self.sections),
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "CaseBundle":
        return CaseBundle(
            case_type=resolve_case_type(data["case_type"]),
            context=dict(data.get("context") or {}),
            sections=dict(data.get("sections") or {}),
        )


def get_profile(case_type: str) -> CaseProfile:
    return CASE_PROFILES[resolve_case_type(case_type)]


def visitor_uploads(files: ClassifiedFileSet) -> Dict[str, str]:
    """Turn the three filename buckets into virtual folder documents.

    An empty bucket produces no upload, so its section renders as not provided.
    """
    uploads: Dict[str, str] = {}
    if files.current:
        uploads[VISITOR_FOLDER_IDS["current"]] = (
            "SCANNED FILE LIST:\n"
            + "\n".join(files.current)
            + "\n\n(Context: these files contain Forms, Financials, Identity, and Employment Documents.)"
        )
    if files.refusal:
        uploads[VISITOR_FOLDER_IDS["refusal"]] = "SCANNED FILE LIST:\n" + "\n".join(files.refusal)
    if files.supporting:
        uploads[VISITOR_FOLDER_IDS["supporting"]] = "SCANNED FILE LIST:\n" + "\n".join(files.supporting)
    return uploads


def _section_text(
    ids: Sequence[str],
    uploads: Mapping[str, str],
    labels: Mapping[str, str],
    always_label: bool,
) -> Optional[str]:
    entries: List[Tuple[str, str]] = []
    for rid in ids:
        text = uploads.get(rid)
        if text is None or not str(text).strip():
            continue
        entries.append((labels.get(rid, rid), str(text).strip()))

    if not entries:
        return None
    if len(entries) == 1 and not always_label:
        return entries[0][1]
    return "\n\n".join(f"[{label}]: {text}" for label, text in entries)


def build_bundle(
    case_type: str,
    context: Optional[Mapping[str, Any]],
    uploads: Mapping[str, str],
    requirements: Optional[Sequence[DocumentRequirement]] = None,
) -> CaseBundle:
    profile = get_profile(case_type)
    labels = {r.id: r.label for r in (requirements or [])}
    mapped = profile.mapped_ids()

    sections: Dict[str, Optional[str]] = {}
    for section in profile.sections:
        if section.catch_all:
            ids: Sequence[str] = [rid for rid in uploads if rid not in mapped]
        else:
            ids = section.requirement_ids
        sections[section.key] = _section_text(ids, uploads, labels, section.always_label)

    ctx = {str(k): str(v).strip() for k, v in (context or {}).items() if v is not None and str(v).strip()}
    bundle = CaseBundle(case_type=profile.case_type, context=ctx, sections=sections)

    logger.info(
        "Built %s bundle: %d/%d sections supplied",
        profile.case_type,
        len(sections) - len(bundle.missing_sections()),
        len(sections),
    )
    return bundle


def render_context(bundle: CaseBundle) -> str:
    profile = get_profile(bundle.case_type)
    lines = [
        f"- {label}: {bundle.context.get(key) or UNDECLARED_CONTEXT}"
        for key, label in profile.context_fields
    ]
    return "\n".join(lines)


def render_prompt(bundle: CaseBundle) -> str:
    profile = get_profile(bundle.case_type)
    ct = profile.case_type

    doc_blocks: List[str] = []
    for idx, section in enumerate(profile.sections, start=1):
        content = bundle.sections.get(section.key)
        doc_blocks.append(f"{idx}. {section.title}:\n{content if content is not None else NOT_PROVIDED}")

    heading = "FILE LISTS:" if ct == VISITOR else "DOCUMENTS PROVIDED (Text Extracted):"
    parts = [
        INTROS[ct],
        "APPLICANT CONTEXT:\n" + render_context(bundle),
        heading + "\n\n" + "\n\n".join(doc_blocks),
        RULES[ct],
        TASKS[ct],
        "OUTPUT STRICTLY IN THIS JSON FORMAT (no markdown, no extra text):\n\n" + OUTPUT_SCHEMAS[ct],
    ]
    return "\n\n".join(p.strip() for p in parts if p and p.strip()) + "\n"


def render_request(bundle: CaseBundle, *, enable_search: bool = True) -> EngineRequest:
    return EngineRequest(
        case_type=bundle.case_type,
        system_instruction=SYSTEM_INSTRUCTIONS[bundle.case_type],
        prompt=render_prompt(bundle),
        enable_search=enable_search,
        json_only=True,
        sections_present={k: v is not None for k, v in bundle.sections.items()},
    )

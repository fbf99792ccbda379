"""Fixed instruction templates, one set per case type.

Each case type owns: a system instruction, an opening brief, the mandatory and
conditional document rules, the audit tasks and the exact JSON shape the engine
must answer with. The normalizer in `docushield.tools.normalizer` reads that
same shape back, so the two must change together.
"""

from __future__ import annotations

from typing import Dict

from docushield.state.models import EXPRESS_ENTRY, STUDY, VISITOR, WORK


_BASE_SYSTEM = (
    "You are DocuShield, a conservative immigration document auditor. "
    "Sections whose content is NOT PROVIDED were not supplied by the applicant; treat them as missing documents. "
    "Always output strictly valid JSON."
)

SYSTEM_INSTRUCTIONS: Dict[str, str] = {
    VISITOR: (
        "You are DocuShield. You audit file lists for visa compliance. "
        "A list whose content is NOT PROVIDED contained no files. Output strictly valid JSON."
    ),
    STUDY: _BASE_SYSTEM,
    WORK: _BASE_SYSTEM,
    EXPRESS_ENTRY: (
        "You are DocuShield, a conservative immigration document auditor. "
        "You parse document text and applicant context to identify refusal risks based on IRCC guidelines. "
        "Sections whose content is NOT PROVIDED were not supplied. You output strictly valid JSON."
    ),
}


INTROS: Dict[str, str] = {
    VISITOR: (
        "You are given lists of files extracted from a user's ZIP package for a Visitor Visa application.\n"
        "The files have been auto-categorized into three lists by filename.\n"
        "Scan the filenames provided in ALL lists to determine if the application is complete."
    ),
    STUDY: (
        "Audit the following Canadian Study Permit application.\n"
        "Use web search to verify DLI status, program eligibility for PGWP, or country requirements (SDS) if relevant.\n\n"
        "APPLICATION TYPE:\n"
        "- Study Permit\n"
        "- Stream: SDS or Non-SDS"
    ),
    WORK: (
        "Audit the following Canadian Work Permit application.\n"
        "Use web search to verify current LMIA exemption codes (e.g., C50, C11) or country requirements if relevant."
    ),
    EXPRESS_ENTRY: (
        "Audit the following documents for Express Entry.\n"
        "Use web search to verify current official requirements, CRS trends, or stream criteria (FSW/CEC/FST)."
    ),
}


RULES: Dict[str, str] = {
    VISITOR: (
        "STEP 1: Verify Mandatory Documents\n"
        "Look for these items (by filename keywords):\n"
        "- Application Form: Keywords \"IMM\", \"5257\", \"Application\"\n"
        "- Family Information: Keywords \"IMM\", \"5645\", \"Family\"\n"
        "- Passport: Keywords \"Passport\"\n"
        "- Proof of Funds: Keywords \"Bank\", \"Statement\", \"Fund\", \"Balance\", \"Account\", \"Asset\", \"Tax\", \"Pay\", \"Salary\", \"GIC\"\n"
        "- Proof of Employment/Ties: Keywords \"Job\", \"Offer\", \"Letter\", \"Employment\", \"Work\", \"Experience\"\n"
        "- Purpose: Keywords \"Itinerary\", \"Ticket\", \"Invitation\", \"SOP\", \"Letter\"\n\n"
        "RULE: If a mandatory document is missing from the \"Mandatory\" list but present in \"Supporting Documents\", mark it as PRESENT.\n\n"
        "STEP 2: Financial Assessment\n"
        "- Do filenames suggest strong financials (e.g. \"Bank Statement\", \"CA Report\")?\n"
        "- If no financial documents are found in ANY list, mark as Missing.\n\n"
        "STEP 3: Refusal History\n"
        "- If the \"Refusal History\" list contains files, set has_refusal to true and judge whether supporting files address it."
    ),
    STUDY: (
        "MANDATORY DOCUMENTS (ALL STUDY PERMITS):\n"
        "- IMM 1294 (Study Permit Application)\n"
        "- IMM 5645 (Family Information)\n"
        "- Letter of Acceptance (from a DLI-approved institution)\n"
        "- Statement of Purpose (Study Plan)\n"
        "- Passport Bio-page\n"
        "- Digital Photograph\n"
        "- Language Test Results\n"
        "- Academic Documents (degrees, diplomas, transcripts)\n"
        "- Proof of Funds (at least one strong source)\n\n"
        "ACADEMIC RULES:\n"
        "- Academic documents must support logical study progression\n"
        "- ECA is REQUIRED only if education is from outside Canada AND the officer needs equivalency clarification\n"
        "- Missing or inconsistent academics increase refusal risk\n\n"
        "PROOF OF FUNDS - ACCEPTABLE DOCUMENTS:\n"
        "- Bank Statements (last 6 months) - Mandatory\n"
        "- GIC (Mandatory for SDS)\n"
        "- Education Loan Approval (if applicable)\n"
        "- Scholarship / Funding Letter (if applicable)\n"
        "- Parent Income Documents (if sponsored)\n\n"
        "FINANCIAL RULES:\n"
        "- SDS applications MUST include GIC\n"
        "- Funds must reasonably cover tuition + living expenses\n"
        "- Multiple weak documents do NOT replace a strong financial source\n\n"
        "BACKGROUND & HISTORY DOCUMENTS:\n"
        "- Previous Refusal Letters (MANDATORY if any past refusal exists)\n"
        "- Police Clearance Certificate (if requested / applicable)\n"
        "- Medical Examination (upfront or when requested)"
    ),
    WORK: (
        "MANDATORY DOCUMENTS:\n"
        "- IMM 1295 (Application)\n"
        "- IMM 5645 (Family Information)\n"
        "- Passport Bio-page\n"
        "- Digital Photo\n"
        "- Job Contract / Offer Letter\n"
        "- LMIA OR LMIA Exemption proof\n"
        "- Proof of Work Experience\n\n"
        "CONDITIONAL / OPTIONAL DOCUMENTS:\n"
        "- Proof of Funds (supporting only)\n"
        "- Language Test Results (if provided)\n"
        "- Professional Certificates (if job requires)\n"
        "- Proof of Ties (optional, intent support)\n"
        "- Marriage Certificate (if applicable)\n"
        "- Police Certificates (if requested)\n"
        "- Upfront Medical Exam (only if job/country requires)"
    ),
    EXPRESS_ENTRY: (
        "CRITICAL INSTRUCTION: DETERMINE THE APPLICABLE EXPRESS ENTRY STREAM (FSW | CEC | FST).\n\n"
        "Decision Rules (Strictly Follow):\n"
        "1. If Canadian skilled work experience is 12 months or more -> CEC\n"
        "2. Else if the occupation is a skilled trade AND (valid job offer OR trade certificate exists) -> FST\n"
        "3. Else -> FSW\n\n"
        "You must:\n"
        "- Analyze the Work Experience / Reference Letters and the Education, Work Experience & Language section.\n"
        "- State the determined stream in the \"stream\" field and in the summary (e.g., \"Stream Determination: CEC\").\n"
        "- Add a check with category \"Program Eligibility\" whose status is \"Pass\" (eligible) or \"Fail\", with reasoning.\n\n"
        "MANDATORY DOCUMENTS:\n"
        "- Passport, digital photo, birth certificate\n"
        "- Language results (IELTS / CELPIP / TEF / TCF)\n"
        "- ECA report, degree/diploma, transcripts\n"
        "- Reference letters and employment proof\n"
        "- Police certificates and medical exam\n"
        "- Proof of funds (mandatory for FSW/FST, not for CEC or with a valid job offer)"
    ),
}


TASKS: Dict[str, str] = {
    VISITOR: (
        "Important:\n"
        "- Base your audit purely on the filenames provided.\n"
        "- Be generous with filename matching (e.g., \"stmt.pdf\" likely means Statement)."
    ),
    STUDY: (
        "RISK EVALUATION TASKS:\n"
        "1. Verify presence of all mandatory documents\n"
        "2. Identify SDS vs Non-SDS compliance\n"
        "3. Validate consistency between the Letter of Acceptance, Statement of Purpose, academic background and financial capacity\n"
        "4. Review previous refusal reasons and check if addressed\n"
        "5. Identify gaps, inconsistencies, or unexplained changes\n"
        "6. Assess refusal risk based on a weak SOP, weak or unclear finances, poor academic progression, unaddressed previous refusals"
    ),
    WORK: (
        "AUDIT TASKS:\n"
        "1. Verify presence of all mandatory documents\n"
        "2. Confirm LMIA OR valid exemption is provided\n"
        "3. Check alignment between the job offer, applicant experience and professional qualifications\n"
        "4. Identify missing or weak mandatory documents\n"
        "5. Assess risk based on job-experience mismatch, missing authorization (LMIA/exemption), weak intent explanation (if provided)"
    ),
    EXPRESS_ENTRY: (
        "Audit Instructions:\n"
        "- Evaluate documents strictly for Express Entry\n"
        "- Do not assume approval or refusal authority\n"
        "- Identify missing, weak, inconsistent, or risky elements\n"
        "- Use conservative reasoning aligned with common IRCC assessment factors\n"
        "- Base conclusions only on provided document content\n"
        "- If a document is MISSING (content says NOT PROVIDED), flag it in missingDocuments or checks."
    ),
}


OUTPUT_SCHEMAS: Dict[str, str] = {
    VISITOR: """{
  "visa_type": "Visitor Visa",
  "sub_type": "Tourism | Invitation-Based",
  "mandatory_documents_status": {
    "complete": true | false,
    "missing": ["List of missing mandatory docs"]
  },
  "financial_assessment": {
    "status": "Strong | Adequate | Weak | Missing",
    "notes": "brief explanation based on filenames"
  },
  "ties_assessment": {
    "status": "Strong | Moderate | Weak",
    "notes": "brief explanation based on filenames"
  },
  "previous_refusal_analysis": {
    "has_refusal": true | false,
    "issues_addressed": true | false,
    "notes": "brief explanation"
  },
  "overall_risk_factors": ["Risk 1", "Risk 2"],
  "approval_chance": "High | Medium | Low",
  "recommended_actions": ["Action 1", "Action 2"]
}""",
    STUDY: """{
  "application_type": "Study Permit",
  "stream": "SDS | Non-SDS",
  "overall_risk_level": "Low | Medium | High",
  "mandatory_documents_status": {
    "complete": true | false,
    "missing_documents": []
  },
  "academic_assessment": {
    "status": "Strong | Moderate | Weak",
    "issues": []
  },
  "financial_assessment": {
    "status": "Strong | Moderate | Weak",
    "issues": []
  },
  "statement_of_purpose_assessment": {
    "status": "Clear | Weak | Inconsistent",
    "issues": []
  },
  "previous_refusal_review": {
    "has_previous_refusal": true | false,
    "addressed_properly": true | false,
    "issues": []
  },
  "background_checks": {
    "medical_exam": "Provided | Pending | Not Required Yet",
    "police_certificate": "Provided | Pending | Not Required Yet"
  },
  "key_risk_factors": [],
  "audit_recommendations": [],
  "final_audit_summary": "Short, neutral audit conclusion"
}""",
    WORK: """{
  "application_type": "Work Permit",
  "overall_risk_level": "Low | Medium | High",
  "mandatory_documents_status": {
    "complete": true | false,
    "missing_documents": []
  },
  "employment_assessment": {
    "job_offer_valid": true | false,
    "experience_match": "Strong | Moderate | Weak",
    "issues": []
  },
  "authorization_status": {
    "lmia_or_exemption_provided": true | false,
    "issues": []
  },
  "background_checks": {
    "medical_exam": "Provided | Not Required | Pending",
    "police_certificate": "Provided | Not Required | Pending"
  },
  "key_risk_factors": [],
  "audit_recommendations": [],
  "final_audit_summary": "Short, neutral audit conclusion"
}""",
    EXPRESS_ENTRY: """{
  "visaType": "Express Entry",
  "overallRisk": "Low | Medium | High",
  "stream": "FSW | CEC | FST",
  "summary": "Executive summary string, including \\"Stream Determination: <stream>\\"",
  "checks": [
    {
      "category": "Identity Verification",
      "status": "Pass | Warning | Fail",
      "issues": ["Issue 1", "Issue 2"],
      "notes": "Observation notes"
    }
  ],
  "keyRiskFactors": [],
  "refusalHistory": {
    "hasRefusal": true | false,
    "addressed": true | false,
    "notes": "brief explanation"
  },
  "missingDocuments": ["Doc Name 1"],
  "recommendations": ["Rec 1"]
}
Include at least the checks: Identity Verification, Financial Sufficiency, Program Eligibility, Background.""",
}

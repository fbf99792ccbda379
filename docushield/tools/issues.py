from __future__ import annotations

from typing import Dict, List

from docushield.schemas.models import AuditIssueModel, AuditResultModel, IssueSeverity


SEVERITY_BY_STATUS: Dict[str, IssueSeverity] = {
    "Fail": "MUST_FIX",
    "Warning": "RECOMMENDED",
}

HOW_TO_FIX = "See detailed recommendations."


def derive_issues(result: AuditResultModel) -> List[AuditIssueModel]:
    """Flatten failing and warning checks into one actionable issue per issue string.

    Ids are `issue_<n>_<i>` where n counts flagged checks only.
    """
    flagged = [c for c in result.checks if c.status in SEVERITY_BY_STATUS]
    issues: List[AuditIssueModel] = []
    for idx, check in enumerate(flagged):
        for i, text in enumerate(check.issues):
            issues.append(
                AuditIssueModel(
                    id=f"issue_{idx}_{i}",
                    type=check.category,
                    severity=SEVERITY_BY_STATUS[check.status],
                    documents=[],
                    description=text,
                    why_it_matters=check.notes,
                    how_to_fix=HOW_TO_FIX,
                )
            )
    return issues

from __future__ import annotations

from typing import Any, Dict

from docushield.schemas.models import AuditResultModel
from docushield.state.models import AuditState
from docushield.tools.audit import make_event
from docushield.tools.issues import derive_issues
from docushield.tools.scoring import score as score_result


def score(state: AuditState) -> Dict[str, Any]:
    result = AuditResultModel.model_validate(state["audit_result"])
    readiness = score_result(result)
    issues = derive_issues(result)
    return {
        "phase": "SCORE",
        "readiness_score": readiness.model_dump(),
        "issues": [i.model_dump() for i in issues],
        "audit_log": [
            make_event(
                "score_computed",
                {"overall": readiness.overall, "issues": len(issues)},
            )
        ],
    }

from __future__ import annotations

from typing import Any, Dict

from docushield.state.models import AuditState
from docushield.tools.audit import make_event


def finalize(state: AuditState) -> Dict[str, Any]:
    result = state.get("audit_result") or {}
    readiness = state.get("readiness_score") or {}
    return {
        "phase": "DONE",
        "audit_log": [
            make_event(
                "finalized",
                {
                    "audit_id": state.get("audit_id"),
                    "overall_risk": result.get("overall_risk"),
                    "readiness": readiness.get("overall"),
                },
            )
        ],
    }

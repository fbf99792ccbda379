from __future__ import annotations

from typing import Any, Dict

from docushield.state.models import AuditState
from docushield.tools.audit import make_event
from docushield.tools.normalizer import normalize as normalize_response


def normalize(state: AuditState) -> Dict[str, Any]:
    raw = state.get("raw_response") or {}
    result = normalize_response(state["case_type"], raw.get("text") or "", raw.get("citations") or [])
    return {
        "phase": "NORMALIZE",
        "audit_result": result.model_dump(),
        "audit_log": [
            make_event(
                "response_normalized",
                {
                    "overall_risk": result.overall_risk,
                    "checks": [f"{c.category}: {c.status}" for c in result.checks],
                    "missing_documents": len(result.missing_documents),
                },
            )
        ],
    }

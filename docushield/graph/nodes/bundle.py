from __future__ import annotations

from typing import Any, Dict

from docushield.state.models import AuditState
from docushield.tools.audit import make_event
from docushield.tools.bundles import build_bundle, render_request
from docushield.tools.checklists import ChecklistRepository


def make_bundle_node(checklists: ChecklistRepository, *, enable_search: bool = True):
    def bundle(state: AuditState) -> Dict[str, Any]:
        case_type = state["case_type"]
        b = build_bundle(
            case_type,
            state.get("context") or {},
            state.get("uploads") or {},
            requirements=checklists.list_requirements(case_type),
        )
        request = render_request(b, enable_search=enable_search)
        return {
            "phase": "BUNDLE",
            "bundle": b.to_dict(),
            "request": request.to_dict(),
            "audit_log": [
                make_event(
                    "bundle_built",
                    {
                        "sections": list(b.sections),
                        "not_provided": b.missing_sections(),
                        "prompt_chars": len(request.prompt),
                        "enable_search": request.enable_search,
                    },
                )
            ],
        }

    return bundle

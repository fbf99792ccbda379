from __future__ import annotations

import logging
from typing import Any, Dict, List

from docushield.state.models import VISITOR, AuditState
from docushield.tools.audit import make_event
from docushield.tools.bundles import visitor_uploads
from docushield.tools.checklists import ChecklistRepository
from docushield.tools.classifier import classify_files
from docushield.tools.grouping import group_requirements


logger = logging.getLogger(__name__)


def make_intake_node(checklists: ChecklistRepository):
    def intake(state: AuditState) -> Dict[str, Any]:
        case_type = state["case_type"]
        uploads = dict(state.get("uploads") or {})
        events = []
        package_supplied = False
        update: Dict[str, Any] = {"phase": "INTAKE"}

        # Visitor files arrive unlabeled; their names decide which folder they belong to.
        filenames = state.get("filenames") or []
        if case_type == VISITOR and filenames:
            classified = classify_files(filenames)
            uploads.update(visitor_uploads(classified))
            package_supplied = classified.total() > 0
            update["classified_files"] = classified.to_dict()
            events.append(
                make_event(
                    "files_classified",
                    {
                        "total": classified.total(),
                        "current": len(classified.current),
                        "refusal": len(classified.refusal),
                        "supporting": len(classified.supporting),
                    },
                )
            )

        requirements = checklists.list_requirements(case_type)
        entries = group_requirements(requirements)
        # A Visitor package is one archive; its requirement is met once any file survives filtering.
        missing_required: List[str] = [] if package_supplied else [
            r.id for r in requirements if r.required and not str(uploads.get(r.id) or "").strip()
        ]
        if missing_required:
            logger.info("%s audit %s is missing required documents: %s", case_type, state.get("audit_id"), missing_required)

        update["uploads"] = uploads
        events.append(
            make_event(
                "intake_complete",
                {
                    "case_type": case_type,
                    "uploads": sorted(uploads),
                    "checklist_entries": len(entries),
                    "missing_required": missing_required,
                },
            )
        )
        update["audit_log"] = events
        return update

    return intake

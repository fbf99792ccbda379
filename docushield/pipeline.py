from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from docushield.config import Settings
from docushield.graph.build import build_graph
from docushield.schemas.models import AuditIssueModel, AuditResultModel, ReadinessScoreModel
from docushield.state.models import Uploads, new_audit_state
from docushield.tools.checklists import ChecklistRepository
from docushield.tools.classifier import list_archive_filenames
from docushield.tools.llm import AuditEngine


logger = logging.getLogger(__name__)


class AuditOutcome(BaseModel):
    audit_id: str
    result: AuditResultModel
    score: ReadinessScoreModel
    issues: List[AuditIssueModel] = Field(default_factory=list)
    audit_log: List[Dict[str, Any]] = Field(default_factory=list)


def run_audit(
    case_type: str,
    *,
    context: Optional[Mapping[str, Any]] = None,
    uploads: Optional[Uploads] = None,
    filenames: Optional[Iterable[str]] = None,
    archive: Union[str, Path, BinaryIO, None] = None,
    engine: Optional[AuditEngine] = None,
    settings: Optional[Settings] = None,
    checklists: Optional[ChecklistRepository] = None,
    audit_id: Optional[str] = None,
) -> AuditOutcome:
    """Run one audit end to end and return the canonical result.

    Inputs are snapshotted into fresh state, so nothing is shared between calls.
    `archive` (a ZIP path or file object) contributes its filenames to the
    Visitor classification path. Any failure (parse, engine, config) propagates.
    """
    names = list(filenames or [])
    if archive is not None:
        names.extend(list_archive_filenames(archive))

    graph = build_graph(settings=settings, engine=engine, checklists=checklists)
    state = new_audit_state(case_type, context=context, uploads=uploads, filenames=names, audit_id=audit_id)
    logger.info("Starting %s audit %s", state["case_type"], state["audit_id"])

    final = graph.invoke(state)

    outcome = AuditOutcome(
        audit_id=final["audit_id"],
        result=AuditResultModel.model_validate(final["audit_result"]),
        score=ReadinessScoreModel.model_validate(final["readiness_score"]),
        issues=[AuditIssueModel.model_validate(i) for i in final.get("issues") or []],
        audit_log=list(final.get("audit_log") or []),
    )
    logger.info(
        "Finished audit %s: risk=%s readiness=%d",
        outcome.audit_id,
        outcome.result.overall_risk,
        outcome.score.overall,
    )
    return outcome

from __future__ import annotations

from typing import Optional

from langgraph.graph import StateGraph, START, END

from docushield.config import Settings
from docushield.state.models import AuditState
from docushield.tools.checklists import ChecklistRepository, YamlChecklistRepository
from docushield.tools.llm import AuditEngine, build_engine
from docushield.graph.nodes import (
    make_intake_node,
    make_bundle_node,
    make_invoke_node,
    normalize,
    score,
    finalize,
)


def build_checklists(settings: Settings) -> YamlChecklistRepository:
    return YamlChecklistRepository(settings.checklists_path or None)


def build_graph(
    *,
    settings: Optional[Settings] = None,
    engine: Optional[AuditEngine] = None,
    checklists: Optional[ChecklistRepository] = None,
):
    settings = settings or Settings.from_env()
    if engine is None:
        engine = build_engine(settings)
    if checklists is None:
        checklists = build_checklists(settings)

    builder = StateGraph(AuditState)

    # Nodes
    builder.add_node("intake", make_intake_node(checklists))
    builder.add_node("build_bundle", make_bundle_node(checklists, enable_search=settings.web_search))
    builder.add_node("invoke_engine", make_invoke_node(engine))
    builder.add_node("normalize", normalize)
    builder.add_node("score", score)
    builder.add_node("finalize", finalize)

    # Node names must not collide with state keys (e.g. "bundle").
    # One straight pass per audit; nothing pauses, so no checkpointer.
    builder.add_edge(START, "intake")
    builder.add_edge("intake", "build_bundle")
    builder.add_edge("build_bundle", "invoke_engine")
    builder.add_edge("invoke_engine", "normalize")
    builder.add_edge("normalize", "score")
    builder.add_edge("score", "finalize")
    builder.add_edge("finalize", END)

    return builder.compile()

from __future__ import annotations

from typing import Any, Dict

from docushield.state.models import AuditState
from docushield.tools.audit import make_event
from docushield.tools.llm import AuditEngine, EngineRequest


def make_invoke_node(engine: AuditEngine):
    # One call per audit. Failures propagate to the caller untouched.
    def invoke(state: AuditState) -> Dict[str, Any]:
        request = EngineRequest.from_dict(state["request"] or {})
        response = engine.invoke(request)
        return {
            "phase": "INVOKE",
            "raw_response": response.to_dict(),
            "audit_log": [
                make_event(
                    "engine_invoked",
                    {
                        "engine": type(engine).__name__,
                        "response_chars": len(response.text),
                        "citations": len(response.citations),
                    },
                )
            ],
        }

    return invoke

from __future__ import annotations

import json
from pathlib import Path

from docushield.pipeline import AuditOutcome
from docushield.schemas.models import (
    AuditIssueModel,
    AuditResultModel,
    ReadinessScoreModel,
)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "docushield" / "schemas" / "json"


def write_schema(name: str, schema: dict) -> None:
    SCHEMA_DIR.mkdir(parents=True, exist_ok=True)
    path = SCHEMA_DIR / f"{name}.schema.json"
    path.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    print(f"Wrote {path}")


def main() -> None:
    write_schema("audit_result", AuditResultModel.model_json_schema())
    write_schema("readiness_score", ReadinessScoreModel.model_json_schema())
    write_schema("audit_issue", AuditIssueModel.model_json_schema())
    write_schema("audit_outcome", AuditOutcome.model_json_schema())


if __name__ == "__main__":
    main()

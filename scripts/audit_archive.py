"""Run one audit from the command line and print the outcome as JSON.

    python scripts/audit_archive.py visitor --archive applicant.zip
    python scripts/audit_archive.py study --uploads uploads.json --context context.json

`--uploads` is a JSON object of {requirement_id: text}; `--context` a JSON
object of applicant facts.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from docushield.config import Settings
from docushield.errors import AuditError
from docushield.pipeline import run_audit


def _read_json_object(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise SystemExit(f"{path}: expected a JSON object")
    return data


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Audit an applicant's document bundle.")
    parser.add_argument("case_type", help="Visitor Visa | Study Permit | Work Permit | Express Entry (aliases accepted)")
    parser.add_argument("--archive", help="ZIP archive whose filenames are classified (Visitor)")
    parser.add_argument("--uploads", help="JSON file mapping requirement ids to extracted text")
    parser.add_argument("--context", help="JSON file with applicant context")
    parser.add_argument("--no-search", action="store_true", help="Do not attach web search to the engine call")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.no_search:
        settings = dataclasses.replace(settings, web_search=False)

    try:
        outcome = run_audit(
            args.case_type,
            context=_read_json_object(args.context),
            uploads=_read_json_object(args.uploads),
            archive=args.archive,
            settings=settings,
        )
    except AuditError as e:
        logging.getLogger("docushield").error("Audit failed: %s", e)
        return 1

    print(json.dumps(outcome.model_dump(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import yaml

from docushield.errors import ChecklistConfigError
from docushield.state.models import CASE_TYPES, DocumentRequirement, resolve_case_type


logger = logging.getLogger(__name__)

DEFAULT_CHECKLISTS_PATH = Path(__file__).resolve().parent.parent / "data" / "checklists.v1.yaml"


class ChecklistRepository(Protocol):
    def list_requirements(self, case_type: str) -> List[DocumentRequirement]:
        ...


class YamlChecklistRepository:
    """Per-case-type document checklists loaded from a versioned YAML file.

    Layout:

        version: 1
        checklists:
          Study Permit:
            - {id: s_form_app, label: ..., category: Forms, required: true}
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else DEFAULT_CHECKLISTS_PATH
        self._cache: Optional[Dict[str, List[DocumentRequirement]]] = None

    def _load(self) -> Dict[str, List[DocumentRequirement]]:
        if self._cache is not None:
            return self._cache
        if not self.path.exists():
            raise ChecklistConfigError(f"Checklist file not found: {self.path}")

        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ChecklistConfigError(f"Invalid checklist YAML in {self.path}: {e}") from e

        raw_lists = data.get("checklists") or {}
        if not isinstance(raw_lists, dict):
            raise ChecklistConfigError("'checklists' must be a mapping of case type to requirement list")

        loaded: Dict[str, List[DocumentRequirement]] = {}
        for raw_case_type, items in raw_lists.items():
            case_type = resolve_case_type(str(raw_case_type))
            loaded[case_type] = self._parse_items(case_type, items or [])

        logger.debug("Loaded checklists for %s from %s", sorted(loaded), self.path)
        self._cache = loaded
        return loaded

    @staticmethod
    def _parse_items(case_type: str, items: List[Dict[str, Any]]) -> List[DocumentRequirement]:
        reqs: List[DocumentRequirement] = []
        seen: set[str] = set()
        for r in items:
            rid = str(r.get("id") or "").strip()
            if not rid:
                raise ChecklistConfigError(f"{case_type}: requirement without an id")
            if rid in seen:
                raise ChecklistConfigError(f"{case_type}: duplicate requirement id {rid!r}")
            seen.add(rid)
            group = str(r.get("group") or "").strip() or None
            reqs.append(
                DocumentRequirement(
                    id=rid,
                    label=str(r.get("label") or rid),
                    category=str(r.get("category") or "Other"),
                    description=str(r.get("description") or ""),
                    required=bool(r.get("required", False)),
                    group=group,
                )
            )
        return reqs

    def list_requirements(self, case_type: str) -> List[DocumentRequirement]:
        return list(self._load().get(resolve_case_type(case_type), []))

    def case_types(self) -> List[str]:
        loaded = self._load()
        return [c for c in CASE_TYPES if c in loaded]

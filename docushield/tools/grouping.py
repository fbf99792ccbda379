from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Set, Tuple, Union

from docushield.state.models import DocumentRequirement


@dataclass(frozen=True)
class SingleEntry:
    requirement: DocumentRequirement

    @property
    def kind(self) -> str:
        return "single"

    def requirement_ids(self) -> List[str]:
        return [self.requirement.id]


@dataclass(frozen=True)
class GroupEntry:
    name: str
    items: Tuple[DocumentRequirement, ...]

    @property
    def kind(self) -> str:
        return "group"

    def requirement_ids(self) -> List[str]:
        return [r.id for r in self.items]


ChecklistEntry = Union[SingleEntry, GroupEntry]


def group_requirements(requirements: Sequence[DocumentRequirement]) -> List[ChecklistEntry]:
    """Fold grouped requirements into one entry placed where the group first appears.

    Ungrouped requirements stay where they are. A group entry holds every
    requirement of that group, in checklist order; later members are skipped
    because the group already represents them.
    """
    reqs = list(requirements)
    entries: List[ChecklistEntry] = []
    processed: Set[str] = set()

    for req in reqs:
        if req.group:
            if req.group in processed:
                continue
            members = tuple(r for r in reqs if r.group == req.group)
            entries.append(GroupEntry(name=req.group, items=members))
            processed.add(req.group)
        else:
            entries.append(SingleEntry(requirement=req))
    return entries


def flatten_entries(entries: Iterable[ChecklistEntry]) -> List[str]:
    out: List[str] = []
    for entry in entries:
        out.extend(entry.requirement_ids())
    return out

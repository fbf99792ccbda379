from __future__ import annotations

from docushield.state.models import DocumentRequirement
from docushield.tools.checklists import YamlChecklistRepository
from docushield.tools.grouping import GroupEntry, SingleEntry, flatten_entries, group_requirements


def _req(rid, group=None):
    return DocumentRequirement(id=rid, label=rid.upper(), category="X", group=group)


def test_group_placed_at_first_member():
    reqs = [
        _req("r1"),
        _req("r2"),
        _req("r3", "Proof of Funds"),
        _req("r4"),
        _req("r5"),
        _req("r6"),
        _req("r7", "Proof of Funds"),
    ]
    entries = group_requirements(reqs)

    assert [e.kind for e in entries] == ["single", "single", "group", "single", "single", "single"]
    group = entries[2]
    assert isinstance(group, GroupEntry)
    assert group.name == "Proof of Funds"
    assert [r.id for r in group.items] == ["r3", "r7"]
    assert isinstance(entries[0], SingleEntry)


def test_output_is_a_partition_of_input():
    reqs = YamlChecklistRepository().list_requirements("Express Entry")
    ids = flatten_entries(group_requirements(reqs))
    assert sorted(ids) == sorted(r.id for r in reqs)
    assert len(ids) == len(set(ids))


def test_no_resorting():
    reqs = [_req("z"), _req("b", "G2"), _req("a", "G1"), _req("c", "G2")]
    entries = group_requirements(reqs)
    assert [getattr(e, "name", None) or e.requirement.id for e in entries] == ["z", "G2", "G1"]
    assert entries[1].requirement_ids() == ["b", "c"]


def test_empty():
    assert group_requirements([]) == []

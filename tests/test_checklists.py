from __future__ import annotations

import pytest

from docushield.errors import ChecklistConfigError, UnknownCaseTypeError
from docushield.state.models import CASE_TYPES
from docushield.tools.checklists import YamlChecklistRepository


def test_default_checklists_cover_every_case_type():
    repo = YamlChecklistRepository()
    assert repo.case_types() == list(CASE_TYPES)
    for ct in CASE_TYPES:
        reqs = repo.list_requirements(ct)
        assert reqs
        ids = [r.id for r in reqs]
        assert len(ids) == len(set(ids))


def test_aliases_resolve():
    repo = YamlChecklistRepository()
    assert repo.list_requirements("study") == repo.list_requirements("Study Permit")
    with pytest.raises(UnknownCaseTypeError):
        repo.list_requirements("tourist")


def test_groups_loaded():
    reqs = YamlChecklistRepository().list_requirements("Study Permit")
    funds = [r.id for r in reqs if r.group == "Proof of Funds"]
    assert funds == ["s_fin_bank", "s_fin_gic", "s_fin_loan", "s_fin_scholar", "s_fin_parent"]
    assert next(r for r in reqs if r.id == "s_loa").group is None


def test_duplicate_ids_rejected(tmp_path):
    path = tmp_path / "dup.yaml"
    path.write_text(
        "version: 1\n"
        "checklists:\n"
        "  Work Permit:\n"
        "    - {id: w_id, label: Passport, category: Identity}\n"
        "    - {id: w_id, label: Passport again, category: Identity}\n",
        encoding="utf-8",
    )
    with pytest.raises(ChecklistConfigError):
        YamlChecklistRepository(path).list_requirements("Work Permit")


def test_missing_file_and_bad_yaml(tmp_path):
    with pytest.raises(ChecklistConfigError):
        YamlChecklistRepository(tmp_path / "nope.yaml").list_requirements("Work Permit")

    bad = tmp_path / "bad.yaml"
    bad.write_text("checklists: [unclosed\n", encoding="utf-8")
    with pytest.raises(ChecklistConfigError):
        YamlChecklistRepository(bad).list_requirements("Work Permit")

from __future__ import annotations

from docushield.state.models import ClassifiedFileSet
from docushield.tools.bundles import (
    NOT_PROVIDED,
    UNDECLARED_CONTEXT,
    CaseBundle,
    build_bundle,
    render_request,
    visitor_uploads,
)
from docushield.tools.checklists import YamlChecklistRepository


def test_absent_sections_are_none_not_sentinel():
    bundle = build_bundle("Study Permit", {}, {"s_loa": "Accepted to UBC"})
    assert bundle.sections["loa"] == "Accepted to UBC"
    assert bundle.sections["sop"] is None
    assert NOT_PROVIDED not in bundle.sections.values()
    assert "sop" in bundle.missing_sections()


def test_blank_upload_counts_as_absent():
    bundle = build_bundle("Study Permit", {}, {"s_sop": "   \n"})
    assert bundle.sections["sop"] is None


def test_multiple_uploads_are_labelled_in_section_order():
    reqs = YamlChecklistRepository().list_requirements("Study Permit")
    bundle = build_bundle(
        "Study Permit",
        {},
        {"s_fin_gic": "GIC 20,635 CAD", "s_fin_bank": "Balance 40,000 CAD"},
        requirements=reqs,
    )
    assert bundle.sections["financials"] == (
        "[Bank Statements]: Balance 40,000 CAD\n\n[GIC (Mandatory for SDS)]: GIC 20,635 CAD"
    )


def test_label_falls_back_to_requirement_id():
    bundle = build_bundle("Work Permit", {}, {"w_id": "P1234567", "w_photo": "photo.jpg"})
    assert bundle.sections["identity"] == "[w_id]: P1234567\n\n[w_photo]: photo.jpg"


def test_express_entry_funds_always_labelled_and_other_catch_all():
    reqs = YamlChecklistRepository().list_requirements("Express Entry")
    bundle = build_bundle(
        "Express Entry",
        {},
        {"e_funds": "Savings 15,000 CAD", "e_loe": "Gap in 2019 explained", "e_id": "Passport X"},
        requirements=reqs,
    )
    assert bundle.sections["funds"] == "[Proof of Funds]: Savings 15,000 CAD"
    assert bundle.sections["passport"] == "Passport X"
    assert bundle.sections["other"] == "[Letter of Explanation]: Gap in 2019 explained"
    assert bundle.sections["background"] is None


def test_visitor_uploads_from_classified_files():
    files = ClassifiedFileSet(current=["passport.pdf", "bank.pdf"], refusal=[], supporting=["notes.txt"])
    uploads = visitor_uploads(files)
    assert set(uploads) == {"v_folder_current", "v_folder_support"}
    assert uploads["v_folder_current"].startswith("SCANNED FILE LIST:\npassport.pdf\nbank.pdf")

    bundle = build_bundle("Visitor Visa", {"purpose": "Tourism"}, uploads)
    assert bundle.sections["refusal"] is None
    assert bundle.sections["supporting"] == "SCANNED FILE LIST:\nnotes.txt"


def test_rendered_prompt_embeds_sentinel_context_and_schema():
    bundle = build_bundle("Work Permit", {"job_title": "Welder", "country_of_residence": " "}, {"w_cont": "Contract"})
    request = render_request(bundle)

    assert request.case_type == "Work Permit"
    assert request.enable_search is True
    assert request.json_only is True
    assert "- Job Title: Welder" in request.prompt
    assert f"- Country of residence: {UNDECLARED_CONTEXT}" in request.prompt
    assert NOT_PROVIDED in request.prompt
    assert "Contract" in request.prompt
    assert "overall_risk_level" in request.prompt
    assert request.sections_present == {
        "forms": False,
        "identity": False,
        "employment": True,
        "financials": False,
        "conditional": False,
    }


def test_search_can_be_disabled():
    bundle = build_bundle("Express Entry", {}, {})
    assert render_request(bundle, enable_search=False).enable_search is False


def test_bundle_round_trips_through_state():
    bundle = build_bundle("study", {"intake": "Fall 2025"}, {"s_sop": "Plan"})
    again = CaseBundle.from_dict(bundle.to_dict())
    assert again == bundle
    assert again.case_type == "Study Permit"

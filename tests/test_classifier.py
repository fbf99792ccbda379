from __future__ import annotations

import io
import zipfile

import pytest

from docushield.errors import ArchiveError
from docushield.tools.classifier import (
    CLASSIFICATION_RULES,
    classify,
    classify_files,
    is_hidden_entry,
    list_archive_filenames,
    matching_rule,
)


def test_documented_examples():
    names = ["Refusal_Letter_2023.pdf", "bank_statement_march.pdf", "cover_letter.pdf"]
    assert [classify(n) for n in names] == ["refusal", "current", "supporting"]


@pytest.mark.parametrize(
    "name",
    [
        "refusal_explanation_letter.pdf",
        "Passport_refusal.pdf",
        "bank_statement_denied.pdf",
        "IMM5257_previous_application.pdf",
        "procedural_fairness_letter.pdf",
    ],
)
def test_refusal_keyword_wins_over_everything(name):
    assert classify(name) == "refusal"
    assert matching_rule(name) == "refusal_history"


@pytest.mark.parametrize(
    "name, rule",
    [
        ("IMM5257_form.pdf", "application_forms"),
        ("passport_bio.jpg", "identity_status"),
        ("national_id.png", "identity_status"),
        ("GIC_certificate.pdf", "identity_status"),
        ("salary_slips.pdf", "financial_proof"),
        ("CA_report_2024.pdf", "financial_proof"),
        ("job_offer.pdf", "employment_ties"),
        ("flight_itinerary.pdf", "travel_purpose"),
        ("SOP_final.docx", "travel_purpose"),
        ("ielts_trf.pdf", "official_records"),
    ],
)
def test_current_rules_in_priority_order(name, rule):
    assert classify(name) == "current"
    assert matching_rule(name) == rule


def test_short_tokens_do_not_match_inside_words():
    # "id" inside "affidavit", "pic" inside "topic", "noc" inside "innocent"
    assert classify("affidavit.pdf") == "supporting"
    assert classify("topic_notes.txt") == "supporting"
    assert classify("innocent.txt") == "supporting"


def test_case_insensitive_and_total():
    assert classify("BANK_STATEMENT.PDF") == classify("bank_statement.pdf") == "current"
    for name in ["x", "README", "photo", "zzz.zip", "12345"]:
        assert classify(name) in ("current", "refusal", "supporting")


def test_every_rule_is_reachable():
    samples = {
        "refusal_history": "refusal.pdf",
        "application_forms": "application.pdf",
        "identity_status": "passport.pdf",
        "financial_proof": "bank.pdf",
        "employment_ties": "employment.pdf",
        "travel_purpose": "itinerary.pdf",
        "official_records": "medical.pdf",
    }
    assert [r.name for r in CLASSIFICATION_RULES] == list(samples)
    for rule in CLASSIFICATION_RULES:
        assert rule.matches(samples[rule.name])


def test_hidden_entries():
    assert is_hidden_entry(".DS_Store")
    assert is_hidden_entry("__MACOSX/._passport.pdf")
    assert is_hidden_entry("docs/")
    assert is_hidden_entry("")
    assert not is_hidden_entry("docs/passport.pdf")
    assert not is_hidden_entry("./passport.pdf")
    assert is_hidden_entry("__MACOSX/passport.pdf")


def test_underscore_folders_keep_their_files():
    assert not is_hidden_entry("__docs/passport.pdf")
    assert not is_hidden_entry(".hidden_dir/bank_statement.pdf")
    files = classify_files(["__docs/passport.pdf", "__docs/__init__.py", "__MACOSX/__docs/bank.pdf"])
    assert files.current == ["passport.pdf"]
    assert files.total() == 1


def test_classify_files_keeps_order_and_duplicates():
    files = classify_files(
        [
            "a/passport.pdf",
            ".DS_Store",
            "refusal_2022.pdf",
            "notes.txt",
            "b/passport.pdf",
            "__MACOSX/._notes.txt",
        ]
    )
    assert files.current == ["passport.pdf", "passport.pdf"]
    assert files.refusal == ["refusal_2022.pdf"]
    assert files.supporting == ["notes.txt"]
    assert files.total() == 4


def test_classification_is_independent_of_batch():
    alone = classify_files(["hotel_booking.pdf"])
    mixed = classify_files(["refusal.pdf", "hotel_booking.pdf", "notes.txt"])
    assert alone.current == ["hotel_booking.pdf"]
    assert "hotel_booking.pdf" in mixed.current


def _zip_bytes(names):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for n in names:
            if n.endswith("/"):
                zf.writestr(zipfile.ZipInfo(n), "")
            else:
                zf.writestr(n, "x")
    buf.seek(0)
    return buf


def test_list_archive_filenames_flattens_and_filters():
    archive = _zip_bytes(
        ["applicant/", "applicant/passport.pdf", "applicant/.hidden", "__MACOSX/applicant/._passport.pdf", "bank.pdf"]
    )
    assert list_archive_filenames(archive) == ["passport.pdf", "bank.pdf"]


def test_list_archive_filenames_rejects_non_zip():
    with pytest.raises(ArchiveError):
        list_archive_filenames(io.BytesIO(b"not a zip"))

from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, List, Tuple, Union

from docushield.errors import ArchiveError
from docushield.state.models import ClassifiedFileSet, FileCategory


logger = logging.getLogger(__name__)


def _word(token: str) -> str:
    """Match a short token only when it is not part of a longer alphabetic word.

    Filenames use `_`, `-`, digits and dots as separators, so `\\b` is not usable
    here (`passport_id` has no word boundary before `id`).
    """
    return r"(?<![a-z])" + token + r"(?![a-z])"


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    category: FileCategory
    pattern: "re.Pattern[str]"

    def matches(self, name: str) -> bool:
        return bool(self.pattern.search(name))


def _rule(name: str, category: FileCategory, *alternatives: str) -> ClassificationRule:
    return ClassificationRule(name=name, category=category, pattern=re.compile("|".join(alternatives)))


# Evaluated top to bottom; the first matching rule wins.
# Refusal/history sits first so a refusal document is never filed as part of the
# current submission even when it also carries a form or letter keyword.
CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    _rule(
        "refusal_history",
        "refusal",
        r"refusal", r"reject", r"denied", r"denial", r"previous", r"explanation",
        r"history", r"adverse", r"procedural",
    ),
    _rule(
        "application_forms",
        "current",
        r"imm", r"application", r"form", r"schedule", r"family", r"representative",
        r"use of rep", r"info",
    ),
    _rule(
        "identity_status",
        "current",
        r"passport", r"photo", r"digital", _word("pic"), _word("id"), r"aadhar", r"birth",
        r"marriage", r"certificate", r"pr card", r"status", r"license",
    ),
    _rule(
        "financial_proof",
        "current",
        r"bank", r"statement", r"fund", r"balance", r"account", r"profile", r"net worth",
        _word("ca") + r"[\s_-]*report", r"evaluation", r"asset", r"property", r"valuation",
        r"tax", _word("noa"), _word("t4"), r"pay", r"salary", r"slip", r"income",
        _word("gic"), r"loan", r"scholarship",
    ),
    _rule(
        "employment_ties",
        "current",
        r"job", r"offer", r"employ", r"work", r"experience", r"contract", r"reference",
        r"leave", _word("noc"), r"company",
    ),
    _rule(
        "travel_purpose",
        "current",
        r"itinerary", r"ticket", r"booking", r"flight", r"hotel", r"invitation",
        r"purpose", r"travel", r"plan", _word("sop"), r"letter of acceptance",
        _word("loa"), r"host",
    ),
    _rule(
        "official_records",
        "current",
        r"medical", r"police", _word("pcc"), r"clearance", r"ielts", r"celpip",
        r"language", r"transcript", r"degree", r"diploma",
    ),
)


def classify(filename: str) -> FileCategory:
    """Assign a filename to a bucket from its name alone (content is never read)."""
    name = str(filename or "").lower()
    for rule in CLASSIFICATION_RULES:
        if rule.matches(name):
            return rule.category
    return "supporting"


def matching_rule(filename: str) -> str:
    """Name of the rule that decided `classify(filename)` (`fallback` if none did)."""
    name = str(filename or "").lower()
    for rule in CLASSIFICATION_RULES:
        if rule.matches(name):
            return rule.name
    return "fallback"


def is_hidden_entry(path: str) -> bool:
    """Directory entries, hidden/system files (`.DS_Store`) and the `__MACOSX/` resource folder.

    Only the basename is judged otherwise, so a user folder such as `__docs/` keeps its files.
    """
    raw = str(path or "").replace("\\", "/")
    if not raw.strip() or raw.endswith("/"):
        return True
    if raw.lstrip("./").startswith("__MACOSX/"):
        return True
    name = raw.split("/")[-1]
    return name.startswith(".") or name.startswith("__")


def _basename(path: str) -> str:
    return str(path).replace("\\", "/").split("/")[-1]


def classify_files(filenames: Iterable[str]) -> ClassifiedFileSet:
    current: List[str] = []
    refusal: List[str] = []
    supporting: List[str] = []

    for raw in filenames:
        if is_hidden_entry(raw):
            continue
        name = _basename(raw)
        category = classify(name)
        if category == "refusal":
            refusal.append(name)
        elif category == "current":
            current.append(name)
        else:
            supporting.append(name)

    logger.debug(
        "Classified %d files: current=%d refusal=%d supporting=%d",
        len(current) + len(refusal) + len(supporting),
        len(current),
        len(refusal),
        len(supporting),
    )
    return ClassifiedFileSet(current=current, refusal=refusal, supporting=supporting)


def list_archive_filenames(archive: Union[str, Path, IO[bytes]]) -> List[str]:
    """List file entries of a ZIP archive flattened to their basenames.

    Folder structure inside the archive is ignored; hidden/system entries are dropped.
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            names: List[str] = []
            for info in zf.infolist():
                if info.is_dir() or is_hidden_entry(info.filename):
                    continue
                names.append(_basename(info.filename))
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveError(f"Failed to read ZIP archive: {e}") from e

    logger.info("Read %d file entries from archive", len(names))
    return names

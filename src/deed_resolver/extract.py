from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from deed_resolver.errors import ExtractionFailure
from deed_resolver.models import ParcelRecord


_DATE_RE = re.compile(r"\b(\d{2}/\d{2}/\d{4})\b")
_TWO_LETTERS_RE = re.compile(r"[A-Za-z]{2}")
_PARCEL_ID_RE = re.compile(r"\b\d{2}\s+\d{4}\s+[A-Za-z0-9]{6}\b")
_MAILING_LABEL_RE = re.compile(r"mailing\s+address\s*:?\s*(.*)$", re.IGNORECASE)

_SECTION_START = "ownership history"
_SECTION_STOPS = ("building summary", "legal disclaimer")


def extract_ownership(text: str) -> Tuple[Optional[str], Optional[str]]:
    """Most recent (owner, effective date) from an ownership history table.

    Rows read like ``XU HUIPING  07/25/2023``; the table is taken to be
    newest-first, so the first qualifying row wins. Returns ``(None, None)``
    when the section is missing or has no usable row.
    """

    lines = (text or "").splitlines()
    start = None
    for idx, line in enumerate(lines):
        if _SECTION_START in line.lower():
            start = idx + 1
            break
    if start is None:
        return None, None

    for line in lines[start:]:
        lowered = line.lower()
        if any(stop in lowered for stop in _SECTION_STOPS):
            return None, None
        if "owner" in lowered and "effective date" in lowered:
            continue
        match = _DATE_RE.search(line)
        if not match:
            continue
        owner = line[: match.start()].strip()
        if _TWO_LETTERS_RE.search(owner):
            return owner, match.group(1)
    return None, None


def extract_parcel_id(text: str) -> Optional[str]:
    match = _PARCEL_ID_RE.search(text or "")
    return match.group(0) if match else None


def extract_mailing_address(text: str) -> Optional[str]:
    lines = (text or "").splitlines()
    for idx, line in enumerate(lines):
        match = _MAILING_LABEL_RE.search(line)
        if not match:
            continue
        inline = match.group(1).strip()
        if inline:
            return inline
        for following in lines[idx + 1:]:
            if following.strip():
                return following.strip()
        return None
    return None


def extract(
    text: str,
    known_parcel_id: Optional[str] = None,
    required: Iterable[str] = (),
    county: Optional[str] = None,
    state: Optional[str] = None,
) -> ParcelRecord:
    owner, effective_date = extract_ownership(text)
    record = ParcelRecord(
        parcel_id=known_parcel_id or extract_parcel_id(text),
        owner_name=owner,
        effective_date=effective_date,
        mailing_address=extract_mailing_address(text),
        county=county,
        state=state,
    )
    missing = [name for name in required if not getattr(record, name, None)]
    if missing:
        raise ExtractionFailure(missing, record=record)
    return record

import re
from typing import Optional

from deed_resolver.models import Address, split_street


STREET_SUFFIXES = (
    "street", "st", "drive", "dr", "road", "rd", "avenue", "ave",
    "boulevard", "blvd", "lane", "ln", "court", "ct", "circle", "cir",
    "way", "place", "pl", "trail", "parkway", "pkwy",
)

_SUFFIX_RES = tuple(
    re.compile(rf"\b{suffix}\b", re.IGNORECASE) for suffix in STREET_SUFFIXES
)
_ANY_SUFFIX_RE = re.compile(
    r"\b(?:" + "|".join(STREET_SUFFIXES) + r")\b\.?", re.IGNORECASE
)
_WHITESPACE_RE = re.compile(r"\s+")
_ZIP_RE = re.compile(r"^\d{5}(?:-\d{4})?$")

US_STATES = frozenset(
    "AL AK AZ AR CA CO CT DE DC FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN "
    "MS MO MT NE NV NH NJ NM NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA "
    "WV WI WY".split()
)


def normalize_text(value: Optional[str]) -> str:
    if value is None:
        return ""
    cleaned = _WHITESPACE_RE.sub(" ", str(value)).strip()
    return cleaned.casefold()


def _truncate_once(value: str) -> str:
    term = value.lower().strip()
    for suffix_re in _SUFFIX_RES:
        match = suffix_re.search(term)
        if match:
            term = term[: match.start()]
            break
    term = term.replace(",", "")
    return _WHITESPACE_RE.sub(" ", term).strip()


def normalize_search_term(raw: Optional[str]) -> str:
    """Reduce a free-text address to the street number + name a portal searches on.

    ``"6409 Winding Arch Dr Durham NC 27713"`` becomes ``"6409 winding arch"``:
    the string is cut before the first street suffix found, taking suffixes in
    ``STREET_SUFFIXES`` order rather than position order. The pass is repeated
    until the value stops changing, so the result is a fixed point and
    normalizing it again is a no-op.
    """

    term = _truncate_once(raw or "")
    while True:
        again = _truncate_once(term)
        if again == term:
            return term
        term = again


def locality_text(raw: Optional[str]) -> str:
    """The part of an address after its street suffix (city, state, ZIP).

    ``"100 Durham Rd Raleigh NC"`` gives ``"Raleigh NC"``. Without a suffix
    the whole string is returned.
    """

    value = raw or ""
    match = _ANY_SUFFIX_RE.search(value)
    return value[match.end():].strip() if match else value.strip()


def canonicalize_county_name(name: Optional[str]) -> str:
    if not name:
        return ""
    cleaned = name.strip().lower()
    cleaned = re.sub(r"\s+county$", "", cleaned)
    cleaned = re.sub(r"[\s\-]+", "_", cleaned)
    cleaned = re.sub(r"[^a-z0-9_]", "", cleaned)
    cleaned = re.sub(r"_+", "_", cleaned).strip("_")
    return cleaned


def infer_state(raw: Optional[str]) -> str:
    """Best-effort state code from the tail of an address.

    A two-letter token counts when it is written upper-case (``Durham NC``) or
    sits right before a ZIP code (``durham nc 27713``), so a lower-case
    ``Ct`` street suffix is not mistaken for Connecticut.
    """

    tokens = [t.strip(",.") for t in (raw or "").split()]
    tokens = [t for t in tokens if t]
    saw_zip = False
    for token in reversed(tokens):
        if _ZIP_RE.match(token):
            saw_zip = True
            continue
        upper = token.upper()
        if upper in US_STATES and (token.isupper() or saw_zip):
            return upper
        return ""
    return ""


def parse_address(
    raw: str,
    county: Optional[str] = None,
    state: Optional[str] = None,
) -> Address:
    raw = (raw or "").strip()
    state_code = (state or "").strip().upper() or infer_state(raw)
    return Address(
        raw=raw,
        search_term=normalize_search_term(raw),
        county=canonicalize_county_name(county),
        state=state_code,
    )


__all__ = [
    "STREET_SUFFIXES",
    "canonicalize_county_name",
    "infer_state",
    "locality_text",
    "normalize_search_term",
    "normalize_text",
    "parse_address",
    "split_street",
]

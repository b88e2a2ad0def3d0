import re
from typing import Callable, Optional, Tuple

from deed_resolver.errors import UnsupportedJurisdiction
from deed_resolver.models import Address
from deed_resolver.normalize import canonicalize_county_name, locality_text


_JURISDICTION_ENTRIES = {
    "harris_tx": {
        "slug": "harris_tx",
        "county": "harris",
        "state": "TX",
        "adapter_key": "harris",
        "portal": "HCAD property search",
        "localities": ["houston", "pasadena", "baytown", "katy", "humble"],
        "supports_documents": False,
        "notes": "Results render inside an embedded search frame; ownership history on detail view.",
    },
    "durham_nc": {
        "slug": "durham_nc",
        "county": "durham",
        "state": "NC",
        "adapter_key": "durham",
        "portal": "Spatialest Durham tax search",
        "localities": ["durham"],
        "supports_documents": True,
        "notes": "Single search box; first parcel row opens the detail view.",
    },
    "wake_nc": {
        "slug": "wake_nc",
        "county": "wake",
        "state": "NC",
        "adapter_key": "wake",
        "portal": "Wake County real estate search",
        "localities": ["raleigh", "cary", "apex", "wake forest", "garner", "holly springs"],
        "supports_documents": True,
        "notes": "Street number and street name are separate form fields.",
    },
    "mecklenburg_nc": {
        "slug": "mecklenburg_nc",
        "county": "mecklenburg",
        "state": "NC",
        "adapter_key": "mecklenburg",
        "portal": "Polaris 3G",
        "localities": ["charlotte", "huntersville", "matthews", "cornelius", "mint hill"],
        "supports_documents": True,
        "notes": "Deed images open in a PDF.js viewer (file= indirection).",
    },
    "guilford_nc": {
        "slug": "guilford_nc",
        "county": "guilford",
        "state": "NC",
        "adapter_key": "guilford",
        "portal": "NCPTS Guilford tax search",
        "localities": ["greensboro", "high point", "jamestown", "summerfield"],
        "supports_documents": True,
        "notes": "Location-address tab must be selected before fields enable.",
    },
    "orange_fl": {
        "slug": "orange_fl",
        "county": "orange",
        "state": "FL",
        "adapter_key": "orange",
        "portal": "OCPA parcel search",
        "localities": ["orlando", "windermere", "winter park", "apopka", "ocoee", "winter garden"],
        "supports_documents": True,
        "notes": "Recorded documents are served through an embedded viewer with a file= parameter.",
    },
    "fulton_ga": {
        "slug": "fulton_ga",
        "county": "fulton",
        "state": "GA",
        "adapter_key": "fulton",
        "portal": "Fulton County iasWorld public access",
        "localities": ["atlanta", "sandy springs", "roswell", "alpharetta", "johns creek"],
        "supports_documents": False,
        "notes": "Parcel ids look like '17 0036 LL0847'.",
    },
}


def enabled_jurisdictions() -> list:
    return sorted(_JURISDICTION_ENTRIES.keys())


def get_entry(slug: str) -> Optional[dict]:
    entry = _JURISDICTION_ENTRIES.get(canonicalize_county_name(slug))
    return dict(entry) if entry else None


def describe_jurisdictions() -> list:
    out = []
    for slug in enabled_jurisdictions():
        entry = _JURISDICTION_ENTRIES[slug]
        out.append(
            {
                "slug": slug,
                "county": entry["county"].replace("_", " ").title(),
                "state": entry["state"],
                "portal": entry["portal"],
                "supports_documents": entry["supports_documents"],
                "notes": entry["notes"],
            }
        )
    return out


def _last_mention(text: str, name: str) -> int:
    pattern = r"\b" + re.escape(name.replace("_", " ")) + r"\b"
    positions = [m.start() for m in re.finditer(pattern, text, re.IGNORECASE)]
    return positions[-1] if positions else -1


def _match_position(entry: dict, address: Address) -> int:
    """Where ``entry`` matches ``address``, or -1 when it does not.

    County and locality names are only looked for after the street suffix,
    so a street named after a county (``Durham Rd``) does not route there.
    """

    if address.state and address.state.upper() != entry["state"]:
        return -1
    if address.county:
        return 0 if entry["county"] in address.county.lower() else -1
    tail = locality_text(address.raw)
    names = [entry["county"]] + list(entry.get("localities", []))
    return max(_last_mention(tail, name) for name in names)


def find_entry(address: Address) -> dict:
    """Pure lookup of the jurisdiction entry for an address.

    When several entries match, the one named latest in the address wins.
    """

    best, best_pos = None, -1
    for slug in enabled_jurisdictions():
        pos = _match_position(_JURISDICTION_ENTRIES[slug], address)
        if pos > best_pos:
            best, best_pos = slug, pos
    if best is None:
        raise UnsupportedJurisdiction(county=address.county, state=address.state, raw=address.raw)
    return dict(_JURISDICTION_ENTRIES[best])


def build_search_plan(address: Address) -> dict:
    try:
        entry = find_entry(address)
    except UnsupportedJurisdiction as exc:
        return {"jurisdiction": None, "search_term": address.search_term, "error": str(exc)}
    return {
        "jurisdiction": entry["slug"],
        "adapter": entry["adapter_key"],
        "portal": entry["portal"],
        "search_term": address.search_term,
    }


class JurisdictionRouter:
    """Maps an address to the adapter for its portal.

    ``session_factory`` is handed to every adapter it builds; the router
    itself holds no browsing state.
    """

    def __init__(self, session_factory: Callable, settings=None, adapter_lookup=None):
        self.session_factory = session_factory
        self.settings = settings
        if adapter_lookup is None:
            from deed_resolver.portals.registry import get_adapter_class

            adapter_lookup = get_adapter_class
        self._adapter_lookup = adapter_lookup

    def resolve(self, address: Address) -> Tuple[dict, object]:
        """Jurisdiction entry and a fresh adapter for ``address``."""

        entry = find_entry(address)
        adapter_cls = self._adapter_lookup(entry["adapter_key"])
        if adapter_cls is None:
            raise UnsupportedJurisdiction(county=entry["county"], state=entry["state"], raw=address.raw)
        return entry, adapter_cls(self.session_factory, settings=self.settings)

    def route(self, address: Address):
        return self.resolve(address)[1]

import pytest

from deed_resolver.errors import UnsupportedJurisdiction
from deed_resolver.jurisdiction_router import (
    JurisdictionRouter,
    build_search_plan,
    describe_jurisdictions,
    enabled_jurisdictions,
    find_entry,
    get_entry,
)
from deed_resolver.normalize import parse_address
from deed_resolver.portals.durham import DurhamAdapter
from deed_resolver.portals.harris import HarrisAdapter
from deed_resolver.portals.registry import get_adapter_class, supported_adapters


def test_every_jurisdiction_has_an_adapter():
    for slug in enabled_jurisdictions():
        entry = get_entry(slug)
        assert get_adapter_class(entry["adapter_key"]) is not None
    assert len(supported_adapters()) == len(enabled_jurisdictions())


def test_route_by_locality_and_state():
    entry = find_entry(parse_address("6409 Winding Arch Dr Durham NC 27713"))
    assert entry["slug"] == "durham_nc"


def test_route_by_explicit_county():
    entry = find_entry(parse_address("6409 Winding Arch Dr", county="Harris County", state="TX"))
    assert entry["slug"] == "harris_tx"


def test_state_mismatch_is_unsupported():
    with pytest.raises(UnsupportedJurisdiction):
        find_entry(parse_address("6409 Winding Arch Dr", county="Harris", state="NC"))


def test_unknown_address_is_unsupported():
    with pytest.raises(UnsupportedJurisdiction) as excinfo:
        find_entry(parse_address("1 Nowhere Rd Smallville KS 66002"))
    assert excinfo.value.error_type == "UnsupportedJurisdiction"
    assert excinfo.value.retryable is False


def test_locality_matches_whole_words():
    # "Cary" must not match inside "Caryville".
    with pytest.raises(UnsupportedJurisdiction):
        find_entry(parse_address("5 Elm Ave Caryville"))


def test_router_builds_adapter_with_session_factory():
    factory = object()
    router = JurisdictionRouter(factory)
    adapter = router.route(parse_address("100 Main St Houston TX 77002"))
    assert isinstance(adapter, HarrisAdapter)
    assert adapter.session_factory is factory


def test_router_resolve_returns_entry_and_adapter():
    router = JurisdictionRouter(None)
    entry, adapter = router.resolve(parse_address("5 Elm Ave", county="durham"))
    assert entry["state"] == "NC"
    assert isinstance(adapter, DurhamAdapter)


def test_router_missing_adapter_is_unsupported():
    router = JurisdictionRouter(None, adapter_lookup=lambda key: None)
    with pytest.raises(UnsupportedJurisdiction):
        router.route(parse_address("100 Main St Houston TX 77002"))


def test_build_search_plan():
    plan = build_search_plan(parse_address("6409 Winding Arch Dr Raleigh NC"))
    assert plan == {
        "jurisdiction": "wake_nc",
        "adapter": "wake",
        "portal": "Wake County real estate search",
        "search_term": "6409 winding arch",
    }
    missing = build_search_plan(parse_address("1 Nowhere Rd"))
    assert missing["jurisdiction"] is None
    assert "error" in missing


def test_describe_jurisdictions_lists_all():
    described = describe_jurisdictions()
    assert [d["slug"] for d in described] == enabled_jurisdictions()
    assert {"slug", "county", "state", "portal", "supports_documents", "notes"} <= set(described[0])


@pytest.mark.parametrize(
    "raw, slug",
    [
        ("100 Durham Rd Raleigh NC 27601", "wake_nc"),
        ("200 Guilford Ave Charlotte NC 28202", "mecklenburg_nc"),
        ("12 Wake Forest Rd Durham NC 27713", "durham_nc"),
    ],
)
def test_street_named_after_a_county_routes_by_locality(raw, slug):
    assert find_entry(parse_address(raw))["slug"] == slug


def test_street_name_alone_does_not_route():
    with pytest.raises(UnsupportedJurisdiction):
        find_entry(parse_address("100 Durham Rd Smallville"))

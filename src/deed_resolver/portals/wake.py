from __future__ import annotations

from deed_resolver.portals.base import PortalConfig, SplitStreetAdapter


WAKE_CONFIG = PortalConfig(
    name="wake",
    search_url="https://services.wake.gov/realestate/",
    settle_seconds=3.0,
    ready_markers=("street",),
    field_selectors={
        "street_number": 'input[name="stnum"]',
        "street_name": 'input[name="stname"]',
    },
    submit_selector='input[type="image"][name="Search by Address"]',
    results_markers=("account", "no records"),
    results_timeout=10.0,
    result_link_pattern=r"^\d{7}$",
    detail_markers=("real estate id", "owner"),
    required_fields=("parcel_id",),
)


class WakeAdapter(SplitStreetAdapter):
    config = WAKE_CONFIG

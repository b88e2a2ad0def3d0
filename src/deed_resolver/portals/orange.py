from __future__ import annotations

from deed_resolver.portals.base import PortalAdapter, PortalConfig


ORANGE_CONFIG = PortalConfig(
    name="orange",
    search_url="https://ocpaweb.ocpafl.org/parcelsearch",
    settle_seconds=4.0,
    ready_markers=("address",),
    field_selectors={
        "search": 'input[name*="Address"], input[placeholder*="Address"], input[id*="address"]',
    },
    submit_selector='button[type="submit"], input[type="submit"], #btnSearch, .btn-search',
    results_markers=("parcel id", "no results"),
    results_timeout=15.0,
    result_link_pattern=r"^\d{2}-\d{2}-\d{2}-\d{4}-\d{2}-\d{3}$",
    detail_markers=("owner",),
    required_fields=("parcel_id",),
)


class OrangeAdapter(PortalAdapter):
    config = ORANGE_CONFIG

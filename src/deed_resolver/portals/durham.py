from __future__ import annotations

from deed_resolver.portals.base import PortalAdapter, PortalConfig


DURHAM_CONFIG = PortalConfig(
    name="durham",
    search_url="https://property.spatialest.com/nc/durham-tax/#/",
    settle_seconds=3.0,
    ready_markers=("search",),
    field_selectors={"search": "#searchTerm"},
    submit_selector='button[type="submit"], button.search-button, [aria-label="Search"]',
    results_markers=("parcel", "no results"),
    results_timeout=15.0,
    result_link_pattern=r"^\d{5,}$",
    detail_markers=("owner", "deed"),
    required_fields=("parcel_id",),
)


class DurhamAdapter(PortalAdapter):
    config = DURHAM_CONFIG

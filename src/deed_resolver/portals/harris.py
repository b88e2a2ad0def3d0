from __future__ import annotations

from deed_resolver.portals.base import PortalAdapter, PortalConfig


# The HCAD search app lives in iframe#parentIframe; the results grid and the
# account detail page both render inside that frame.
HARRIS_CONFIG = PortalConfig(
    name="harris",
    search_url="https://hcad.org/property-search/property-search",
    settle_seconds=5.0,
    ready_markers=("property address", "owner name", "account"),
    search_frame_pattern="testsearch.hcad",
    mode_selector='input[type="radio"]',
    mode_label="property address",
    field_selectors={"search": 'input[type="search"]'},
    submit_selector='button[type="submit"], input[type="submit"]',
    results_markers=("account", "no results"),
    results_timeout=20.0,
    results_frame_pattern="testsearch.hcad",
    result_link_pattern=r"^\d{13}$",
    detail_markers=("ownership history",),
    required_fields=("owner_name", "effective_date"),
)


class HarrisAdapter(PortalAdapter):
    config = HARRIS_CONFIG
